import os
from pathlib import Path

from appdirs import AppDirs

import litgate

# Environment variables
LITGATE_ENVVAR_PRIVATE_KEY = "LITGATE_PRIVATE_KEY"
LEGACY_ENVVAR_PRIVATE_KEY = "PRIVATE_KEY"
LITGATE_ENVVAR_CHAIN = "LITGATE_CHAIN"
LITGATE_ENVVAR_NETWORK = "LITGATE_NETWORK"
LITGATE_ENVVAR_RPC_ENDPOINT = "LITGATE_RPC_ENDPOINT"
LITGATE_ENVVAR_RATE_LIMIT_NFT_ADDRESS = "LITGATE_RATE_LIMIT_NFT_ADDRESS"
LITGATE_ENVVAR_NODE_CLIENT = "LITGATE_NODE_CLIENT"
LITGATE_ENVVAR_LOG_LEVEL = "LITGATE_LOG_LEVEL"

# Base Filepaths
LITGATE_PACKAGE = Path(litgate.__file__).parent.resolve()
BASE_DIR = LITGATE_PACKAGE.parent.resolve()

# User Application Filepaths
APP_DIR = AppDirs(litgate.__title__, litgate.__author__)
DEFAULT_CONFIG_ROOT = Path(os.getenv('LITGATE_CONFIG_ROOT', default=APP_DIR.user_data_dir))
USER_LOG_DIR = Path(os.getenv('LITGATE_USER_LOG_DIR', default=APP_DIR.user_log_dir))
DEFAULT_CONFIG_FILENAME = "litgate.json"
DEFAULT_LOG_FILENAME = "litgate.log"
DEFAULT_JSON_LOG_FILENAME = "litgate.log.json"

# Chronicle Yellowstone, the chain hosting the rate-limit NFT contract
DEFAULT_RPC_ENDPOINT = "https://yellowstone-rpc.litprotocol.com"

DEFAULT_CHAIN = "arbitrum"
DEFAULT_NETWORK = "datil-dev"
DEFAULT_LOG_LEVEL = "info"

# Capacity credits
DEFAULT_REQUESTS_PER_KILOSECOND = 80
DEFAULT_DAYS_UNTIL_UTC_MIDNIGHT_EXPIRATION = 2
DEFAULT_DELEGATION_USES = 1_000_000_000_000_000

# Demo
DEMO_NFT_CONTRACT_ADDRESS = "0xfE34a72c55e512601E7d491A9c5b36373cE34d63"
DEMO_MESSAGE = "Hello, world!"
