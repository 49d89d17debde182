import functools
import inspect
from typing import Callable

import eth_utils

from litgate.utilities.logging import Logger

log = Logger("address-validator")


class InvalidChecksumAddress(eth_utils.exceptions.ValidationError):
    pass


def _is_address_parameter(name: str) -> bool:
    return name.endswith("_address") or name in ("account", "address")


def validate_checksum_address(func: Callable) -> Callable:
    """
    Rejects calls whose address parameters (`account`, `address` or `*_address`) are not
    EIP-55 checksummed strings. Optional parameters left as None are skipped.
    """

    signature = inspect.signature(func)
    address_parameters = [name for name in signature.parameters if _is_address_parameter(name)]

    @functools.wraps(func)
    def wrapped(*args, **kwargs):
        bound = signature.bind(*args, **kwargs)
        for name in address_parameters:
            if name not in bound.arguments:
                continue
            value = bound.arguments[name]
            if value is None and signature.parameters[name].default is None:
                continue
            if not isinstance(value, str):
                message = f'{type(value).__name__} is an invalid type for parameter "{name}".'
                log.debug(message)
                raise TypeError(message)
            if not eth_utils.is_checksum_address(value):
                message = f'"{value}" is not a valid EIP-55 checksum address.'
                log.debug(message)
                raise InvalidChecksumAddress(message)
        return func(*args, **kwargs)

    return wrapped
