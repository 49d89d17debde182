import pytest

from litgate.exceptions import (
    ConditionMismatch,
    ConfigurationError,
    InvalidDelegationRequest,
    InvalidInputFile,
    LitgateError,
    MissingAuthCallbackParameter,
    PreconditionError,
    SessionNotConnected,
    Stage,
    stage,
)


@pytest.mark.parametrize(
    "error_class",
    [ConfigurationError, ConditionMismatch, InvalidDelegationRequest, InvalidInputFile, SessionNotConnected],
)
def test_precondition_errors(error_class):
    assert issubclass(error_class, PreconditionError)
    assert issubclass(error_class, LitgateError)


def test_missing_parameter_message():
    error = MissingAuthCallbackParameter("uri")
    assert str(error) == "uri is required"
    assert error.parameter == "uri"


def test_stage_reraises_the_same_object():
    failure = TimeoutError("node timed out")
    with pytest.raises(TimeoutError) as error:
        with stage(Stage.DECRYPT):
            raise failure
    assert error.value is failure
    assert error.value.stage == Stage.DECRYPT


def test_innermost_stage_wins():
    with pytest.raises(KeyError) as error:
        with stage(Stage.DECRYPT):
            with stage(Stage.AUTHORIZE):
                raise KeyError("session")
    assert error.value.stage == Stage.AUTHORIZE


def test_stage_is_silent_on_success():
    with stage(Stage.ENCRYPT):
        value = 1
    assert value == 1
