import click
from eth_utils import to_checksum_address

from litgate.blockchain.chains import SUPPORTED_CHAINS, SUPPORTED_NETWORKS


class ChecksumAddress(click.ParamType):
    name = 'checksum_address'

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail("Invalid ethereum address")
        else:
            return value


CHECKSUM_ADDRESS = ChecksumAddress()
CHAIN_NAME = click.Choice(sorted(SUPPORTED_CHAINS))
NETWORK_NAME = click.Choice(sorted(SUPPORTED_NETWORKS))
