from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from litgate.utilities.logging import Logger

LOG = Logger("litgate")


class Stage(Enum):
    """The step of the protocol that produced an error."""

    CONNECT = "connect"
    MINT = "mint"
    DELEGATE = "delegate"
    ENCRYPT = "encrypt"
    AUTHORIZE = "authorize"
    DECRYPT = "decrypt"


class LitgateError(Exception):
    """Base class for errors raised by litgate itself."""

    stage: Optional[Stage] = None


#
# Precondition errors - raised locally, before any network call
#

class PreconditionError(LitgateError):
    """A local precondition was not met; retrying without a fix will not help."""


class ConfigurationError(PreconditionError):
    """Missing or invalid configuration (key material, chain, network, client path)."""


class MissingAuthCallbackParameter(PreconditionError):
    """The network asked for a credential without the claims a statement must carry."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"{parameter} is required")


class ConditionMismatch(PreconditionError):
    """The conditions supplied for decryption differ from the ones used to encrypt."""


class InvalidDelegationRequest(PreconditionError):
    """A capacity delegation was requested with unusable parameters."""


class SessionNotConnected(PreconditionError):
    """An operation needing the network was attempted outside of a connected session."""


class InvalidInputFile(PreconditionError):
    """A serialized encrypted message or delegation could not be read."""


class PlaintextNotText(LitgateError):
    """The decrypted payload is not UTF-8 text; use `decrypt` for binary payloads."""

    stage = Stage.DECRYPT


@contextmanager
def stage(current: Stage) -> Iterator[None]:
    """
    Tags any exception escaping the block with the stage that produced it, then re-raises
    the very same exception object. Errors from external collaborators are never wrapped or
    retyped; callers can read `error.stage` to see where the flow broke.
    """
    try:
        yield
    except Exception as error:
        if getattr(error, "stage", None) is None:
            try:
                error.stage = current
            except AttributeError:
                # some extension types refuse new attributes; propagate untagged
                pass
        LOG.warn(f"{current.value} failed: {error.__class__.__name__} - {error}")
        raise
