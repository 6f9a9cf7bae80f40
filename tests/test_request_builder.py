import pytest

from passkey_bridge.builder import (
    build_authentication_request,
    build_create_request,
    encode_challenge,
    transports_for,
)
from passkey_bridge.config import BridgeConfig
from passkey_bridge.errors import InvalidChallengeError, InvalidOptionError, InvalidUserIdError
from passkey_bridge.models import CredentialDescriptor, UserEntity


USER = {"id": "0x0102", "name": "alice", "displayName": "Alice"}


def test_create_defaults(config):
    request = build_create_request(USER, "0xdeadbeef", config=config)

    assert request.challenge == "3q2-7w"
    assert request.rp.to_dict() == {"id": "example.com", "name": "Example"}
    assert request.user.to_dict() == {"id": "AQI", "name": "alice", "displayName": "Alice"}
    assert [p.to_dict() for p in request.pub_key_cred_params] == [
        {"type": "public-key", "alg": -7}
    ]

    selection = request.to_dict()["authenticatorSelection"]
    assert selection == {
        "authenticatorAttachment": "platform",
        "residentKey": "required",
        "requireResidentKey": True,
        "userVerification": "preferred",
    }
    assert "attestation" not in request.to_dict()
    assert "timeout" not in request.to_dict()


def test_create_override_replaces_field_wholesale(config):
    request = build_create_request(
        USER,
        "deadbeef",
        {
            "authenticatorSelection": {"userVerification": "required"},
            "pubKeyCredParams": [{"type": "public-key", "alg": -257}, {"alg": -8}],
            "rp": {"id": "wallet.example", "name": "Wallet"},
            "timeout": 60000,
            "attestation": "direct",
        },
        config=config,
    )

    # No nested merge: the default platform attachment and resident key are gone.
    assert request.authenticator_selection.to_dict() == {
        "residentKey": "discouraged",
        "requireResidentKey": False,
        "userVerification": "required",
    }
    assert [p.alg for p in request.pub_key_cred_params] == [-257, -8]
    assert request.rp.id == "wallet.example"
    assert request.timeout == 60000
    assert request.attestation == "direct"


def test_create_shorthand_options(config):
    request = build_create_request(
        USER,
        "deadbeef",
        {
            "authenticatorType": "roaming",
            "discoverable": "preferred",
            "userVerification": "required",
            "attestation": True,
            "displayName": "Alice's phone",
        },
        config=config,
    )

    selection = request.authenticator_selection
    assert selection.authenticator_attachment == "cross-platform"
    assert selection.resident_key == "preferred"
    assert selection.require_resident_key is False
    assert selection.user_verification == "required"
    assert request.attestation == "direct"
    assert request.user.display_name == "Alice's phone"


def test_create_attestation_false_means_none(config):
    request = build_create_request(USER, "deadbeef", {"attestation": False}, config=config)
    assert request.attestation == "none"


def test_create_uses_configured_timeout():
    config = BridgeConfig(timeout=30000)
    request = build_create_request(USER, "deadbeef", config=config)
    assert request.timeout == 30000
    assert request.rp.id == "localhost"


def test_create_accepts_bytes_and_entities(config):
    request = build_create_request({"id": b"\xfb\xff", "name": "bob"}, "00", config=config)
    assert request.user == UserEntity(id="-_8", name="bob", display_name="bob")

    entity = UserEntity(id="AQI", name="carol", display_name="Carol")
    assert build_create_request(entity, "00", config=config).user is entity


def test_create_exclude_credentials(config):
    request = build_create_request(
        USER,
        "deadbeef",
        {"excludeCredentials": ["0xfbff", {"id": "0102", "transports": ["usb"]}]},
        config=config,
    )
    assert [c.to_dict() for c in request.exclude_credentials] == [
        {"type": "public-key", "id": "-_8"},
        {"type": "public-key", "id": "AQI", "transports": ["usb"]},
    ]


@pytest.mark.parametrize("challenge", ["", "0x", "abc", "not-hex", None])
def test_invalid_challenge(config, challenge):
    with pytest.raises(InvalidChallengeError):
        build_create_request(USER, challenge, config=config)
    with pytest.raises(InvalidChallengeError):
        build_authentication_request(["fbff"], challenge, config=config)


@pytest.mark.parametrize("user_id", ["xyz", "", b"", 12])
def test_invalid_user_id(config, user_id):
    with pytest.raises(InvalidUserIdError):
        build_create_request({"id": user_id, "name": "alice"}, "deadbeef", config=config)


def test_missing_user_id(config):
    with pytest.raises(InvalidUserIdError):
        build_create_request({"name": "alice"}, "deadbeef", config=config)


def test_challenge_is_checked_before_user(config):
    with pytest.raises(InvalidChallengeError):
        build_create_request({"id": "xyz"}, "xyz", config=config)


def test_encode_challenge():
    assert encode_challenge("0xdeadbeef") == "3q2-7w"
    assert encode_challenge("DEADBEEF") == "3q2-7w"


@pytest.mark.parametrize(
    "hint, expected",
    [
        (None, ("internal",)),
        ("auto", ("internal",)),
        ("local", ("internal",)),
        ("roaming", ("hybrid", "usb", "ble", "nfc")),
        ("extern", ("hybrid", "usb", "ble", "nfc")),
        ("both", ("internal", "hybrid", "usb", "ble", "nfc")),
        ("Roaming", ("hybrid", "usb", "ble", "nfc")),
        ("unexpected", ("internal",)),
    ],
)
def test_transports_for_authenticator_type(hint, expected):
    assert transports_for(hint) == expected


def test_authentication_defaults(config):
    request = build_authentication_request(["0xfbff", b"\x01\x02"], "0xdeadbeef", config=config)

    assert request.to_dict() == {
        "challenge": "3q2-7w",
        "rpId": "example.com",
        "allowCredentials": [
            {"type": "public-key", "id": "-_8", "transports": ["internal"]},
            {"type": "public-key", "id": "AQI", "transports": ["internal"]},
        ],
        "userVerification": "preferred",
    }


def test_authentication_overrides(config):
    request = build_authentication_request(
        ["fbff"],
        "deadbeef",
        {
            "rpId": "wallet.example",
            "authenticatorType": "both",
            "userVerification": "required",
            "timeout": 10000,
        },
        config=config,
    )

    assert request.rp_id == "wallet.example"
    assert request.user_verification == "required"
    assert request.timeout == 10000
    assert request.allow_credentials == (
        CredentialDescriptor(
            id="-_8", transports=("internal", "hybrid", "usb", "ble", "nfc")
        ),
    )


def test_authentication_preserves_credentials_on_request(config):
    request = build_authentication_request(
        ["deadbeef"], "deadbeef", {"preserveCredentials": True}, config=config
    )
    assert request.allow_credentials[0].id == "deadbeef"


def test_authentication_without_credentials(config):
    request = build_authentication_request([], "deadbeef", config=config)
    assert request.to_dict()["allowCredentials"] == []


def test_authentication_never_reinterprets_base64url_ids(config):
    # "deadbeefcafe" is also valid base64url; only preserveCredentials keeps it as is.
    converted = build_authentication_request(["deadbeefcafe"], "00", config=config)
    kept = build_authentication_request(
        ["deadbeefcafe"], "00", {"preserveCredentials": True}, config=config
    )

    assert converted.allow_credentials[0].id == "3q2-78r-"
    assert kept.allow_credentials[0].id == "deadbeefcafe"


@pytest.mark.parametrize("credential_id", ["cred1", "+/8=", "AQI", "", 12])
def test_authentication_rejects_non_hex_ids(config, credential_id):
    with pytest.raises(InvalidOptionError) as excinfo:
        build_authentication_request([credential_id], "00", config=config)
    assert excinfo.value.option == "credentialIds"


def test_authentication_accepts_descriptors_as_canonical(config):
    descriptor = CredentialDescriptor(id="AQI", transports=("usb",))
    request = build_authentication_request([descriptor], "00", config=config)
    assert request.allow_credentials == (descriptor,)


def test_authentication_forwards_mediation(config):
    request = build_authentication_request(
        ["fbff"], "00", {"mediation": "conditional"}, config=config
    )
    assert request.mediation == "conditional"
    assert request.to_dict()["mediation"] == "conditional"
    assert "mediation" not in build_authentication_request(["fbff"], "00", config=config).to_dict()


@pytest.mark.parametrize(
    "overrides, option",
    [
        ({"userVerification": "bogus"}, "userVerification"),
        ({"discoverable": "maybe"}, "discoverable"),
        ({"attestation": "bogus"}, "attestation"),
        ({"timeout": "soon"}, "timeout"),
        ({"timeout": 0}, "timeout"),
        ({"timeout": True}, "timeout"),
        ({"authenticatorSelection": {"authenticatorAttachment": "pocket"}}, "authenticatorAttachment"),
        ({"authenticatorSelection": {"residentKey": "sometimes"}}, "residentKey"),
        ({"authenticatorSelection": "platform"}, "authenticatorSelection"),
        ({"excludeCredentials": [{"id": "0102", "transports": ["carrier-pigeon"]}]}, "transports"),
        ({"excludeCredentials": "0102"}, "excludeCredentials"),
        ({"pubKeyCredParams": [{"type": "public-key"}]}, "pubKeyCredParams"),
        ({"pubKeyCredParams": [{"alg": "ES256"}]}, "pubKeyCredParams"),
        ({"rp": {"name": "Nameless"}}, "rp"),
        ({"extensions": ["credProps"]}, "extensions"),
    ],
)
def test_create_rejects_bad_options(config, overrides, option):
    with pytest.raises(InvalidOptionError) as excinfo:
        build_create_request(USER, "deadbeef", overrides, config=config)
    assert excinfo.value.option == option


@pytest.mark.parametrize(
    "overrides, option",
    [
        ({"userVerification": "bogus"}, "userVerification"),
        ({"timeout": "soon"}, "timeout"),
        ({"mediation": "eventually"}, "mediation"),
        ({"allowCredentials": 5}, "allowCredentials"),
    ],
)
def test_authentication_rejects_bad_options(config, overrides, option):
    with pytest.raises(InvalidOptionError) as excinfo:
        build_authentication_request(["fbff"], "deadbeef", overrides, config=config)
    assert excinfo.value.option == option
