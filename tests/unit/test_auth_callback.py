import maya
import pytest

from litgate.auth.recap import Recap
from litgate.auth.session import AuthCallback, AuthCallbackParams, SessionCredentialIssuer
from litgate.auth.siwe import AuthSig
from litgate.exceptions import MissingAuthCallbackParameter, PreconditionError

NONCE = "0x" + "42" * 32
SESSION_URI = "lit:session:" + "9f" * 32


@pytest.fixture(scope="function")
def auth_callback(signer):
    return AuthCallback(signer=signer, nonce=NONCE)


@pytest.fixture(scope="function")
def params():
    return AuthCallbackParams(
        uri=SESSION_URI,
        expiration=maya.now().add(minutes=10).iso8601(),
        resource_ability_requests=SessionCredentialIssuer.resource_ability_requests(),
        chain="arbitrum",
    )


def test_auth_callback_signs_session_statement(auth_callback, params, signer):
    auth_sig = auth_callback(params)
    assert isinstance(auth_sig, AuthSig)
    assert auth_sig.is_valid()
    assert auth_sig.address == signer.address

    message = auth_sig.siwe_message()
    assert message.nonce == NONCE
    assert str(message.uri) == SESSION_URI
    assert message.address == signer.address
    recap = Recap.extract(message.resources)
    assert recap.has_capability("lit-accesscontrolcondition://*", "Threshold", "Decryption")


def test_auth_callback_accepts_network_dict(auth_callback, params):
    data = {
        "uri": params.uri,
        "expiration": params.expiration,
        "resourceAbilityRequests": [r.to_dict() for r in params.resource_ability_requests],
        "chain": "arbitrum",
    }
    auth_sig = auth_callback(data)
    assert auth_sig.is_valid()


@pytest.mark.parametrize(
    "missing, override",
    [
        ("resourceAbilityRequests", {"resource_ability_requests": None}),
        ("resourceAbilityRequests", {"resource_ability_requests": []}),
        ("uri", {"uri": None}),
        ("uri", {"uri": ""}),
        ("expiration", {"expiration": None}),
    ],
)
def test_auth_callback_rejects_incomplete_requests(auth_callback, params, signer, mocker, missing, override):
    spy = mocker.spy(signer, "sign_message")
    with pytest.raises(MissingAuthCallbackParameter, match=f"{missing} is required") as error:
        auth_callback(params._replace(**override))
    assert error.value.parameter == missing
    assert isinstance(error.value, PreconditionError)
    assert spy.call_count == 0


def test_auth_callback_is_reusable(auth_callback, params):
    first, second = auth_callback(params), auth_callback(params)
    assert first.address == second.address
    assert first.siwe_message().nonce == second.siwe_message().nonce == auth_callback.nonce


def test_auth_callback_requires_nonce(signer):
    with pytest.raises(ValueError):
        AuthCallback(signer=signer, nonce="")
