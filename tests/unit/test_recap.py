import json
from base64 import urlsafe_b64decode

import pytest

from litgate.auth.recap import InvalidRecap, Recap
from litgate.auth.resources import (
    LitAbility,
    LitAccessControlConditionResource,
    LitRateLimitIncreaseResource,
    ResourceAbilityRequest,
    parse_resource_key,
)

DECRYPTION_REQUEST = ResourceAbilityRequest(
    resource=LitAccessControlConditionResource("*"),
    ability=LitAbility.AccessControlConditionDecryption,
)


def test_resource_keys():
    assert LitAccessControlConditionResource("*").get_resource_key() == "lit-accesscontrolcondition://*"
    assert LitRateLimitIncreaseResource("42").get_resource_key() == "lit-ratelimitincrease://42"
    assert LitAccessControlConditionResource("*").is_wildcard
    assert parse_resource_key("lit-ratelimitincrease://42") == LitRateLimitIncreaseResource("42")
    with pytest.raises(ValueError):
        parse_resource_key("lit-pkp://1")
    with pytest.raises(ValueError):
        LitRateLimitIncreaseResource("")


def test_resource_ability_validation():
    assert DECRYPTION_REQUEST.validate() is DECRYPTION_REQUEST
    assert DECRYPTION_REQUEST.recap_ability == ("Threshold", "Decryption")
    mismatched = ResourceAbilityRequest(
        resource=LitAccessControlConditionResource("*"),
        ability=LitAbility.RateLimitIncreaseAuth,
    )
    with pytest.raises(ValueError):
        mismatched.validate()


def test_resource_ability_request_from_dict():
    data = {
        "resource": {"resource": "*", "resourcePrefix": "lit-accesscontrolcondition"},
        "ability": "access-control-condition-decryption",
    }
    assert ResourceAbilityRequest.from_dict(data) == DECRYPTION_REQUEST
    assert ResourceAbilityRequest.from_dict(DECRYPTION_REQUEST.to_dict()) == DECRYPTION_REQUEST
    assert ResourceAbilityRequest.from_dict(
        {"resource": "lit-accesscontrolcondition://*", "ability": LitAbility.AccessControlConditionDecryption}
    ) == DECRYPTION_REQUEST


def test_recap_encoding():
    recap = Recap.from_requests([DECRYPTION_REQUEST])
    uri = recap.encode()
    assert uri.startswith("urn:recap:")
    assert "=" not in uri

    payload = uri[len("urn:recap:"):]
    decoded = json.loads(urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    assert decoded == {"att": {"lit-accesscontrolcondition://*": {"Threshold/Decryption": [{}]}}, "prf": []}
    assert Recap.decode(uri) == recap


def test_recap_statement():
    recap = Recap.from_requests([DECRYPTION_REQUEST])
    assert recap.statement() == (
        "I further authorize the stated URI to perform the following actions on my behalf: "
        "(1) 'Threshold': 'Decryption' for 'lit-accesscontrolcondition://*'."
    )


def test_recap_capabilities_and_restrictions():
    recap = Recap()
    recap.add_capability("lit-ratelimitincrease://7", "Auth", "Auth", nota_bene={"uses": "3"})
    assert recap.has_capability("lit-ratelimitincrease://7", "Auth", "Auth")
    assert not recap.has_capability("lit-ratelimitincrease://7", "Threshold", "Decryption")
    assert recap.nota_bene("lit-ratelimitincrease://7", "Auth", "Auth") == {"uses": "3"}
    with pytest.raises(InvalidRecap):
        recap.nota_bene("lit-ratelimitincrease://8", "Auth", "Auth")
    with pytest.raises(InvalidRecap):
        recap.add_capability("lit-ratelimitincrease://7", "Auth/Auth", "Auth")

    # attenuations are copies
    recap.attenuations["lit-ratelimitincrease://7"].clear()
    assert recap.has_capability("lit-ratelimitincrease://7", "Auth", "Auth")


@pytest.mark.parametrize("uri", ["urn:other:abc", "urn:recap:!!!", "urn:recap:e30"])
def test_invalid_recaps(uri):
    with pytest.raises(InvalidRecap):
        Recap.decode(uri)


def test_recap_extraction():
    recap = Recap.from_requests([DECRYPTION_REQUEST])
    assert Recap.extract(["https://example.com", recap.encode()]) == recap
    with pytest.raises(InvalidRecap):
        Recap.extract([recap.encode(), "https://example.com"])
    with pytest.raises(InvalidRecap):
        Recap.extract(None)
