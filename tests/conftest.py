import base64
import json

import pytest

from passkey_bridge.config import BridgeConfig
from passkey_bridge.support import PlatformInfo


CREDENTIAL_ID = bytes.fromhex("622518ecb4dd41109f3a62008c269c085f63ff")
CLIENT_DATA = json.dumps(
    {"type": "webauthn.get", "challenge": "3q2-7w", "origin": "https://example.com"}
).encode()
AUTH_DATA = b"\xa3" * 37
SIGNATURE = bytes.fromhex("3006020101020102")
ATTESTATION_OBJECT = b"\xa3\x63fmt\x64none" + b"\xff" * 30
USER_HANDLE = b"\xfb\xff\xbe"


def b64(data):
    return base64.b64encode(data).decode("ascii")


def b64url(data):
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


class FakeIOSProvider:
    """Stands in for the AuthenticationServices bridge."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def register(self, rp_id, challenge, display_name, user_id, excluded, security_key):
        self.calls.append(("register", rp_id, challenge, display_name, user_id, excluded, security_key))
        if self.error is not None:
            raise self.error
        return {
            "credentialID": b64(CREDENTIAL_ID),
            "response": {
                "rawClientDataJSON": b64(CLIENT_DATA),
                "rawAttestationObject": b64(ATTESTATION_OBJECT),
            },
        }

    async def authenticate(self, rp_id, challenge, allowed, security_key):
        self.calls.append(("authenticate", rp_id, challenge, allowed, security_key))
        if self.error is not None:
            raise self.error
        return {
            "credentialID": b64(CREDENTIAL_ID),
            "userID": b64(USER_HANDLE),
            "response": {
                "rawClientDataJSON": b64(CLIENT_DATA),
                "rawAuthenticatorData": b64(AUTH_DATA),
                "signature": b64(SIGNATURE),
            },
        }


class FakeAndroidProvider:
    """Stands in for the Credential Manager bridge; synchronous on purpose."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def register(self, request_json):
        self.calls.append(("register", json.loads(request_json)))
        if self.error is not None:
            raise self.error
        return json.dumps(
            {
                "id": b64url(CREDENTIAL_ID),
                "type": "public-key",
                "response": {
                    "clientDataJSON": b64url(CLIENT_DATA),
                    "attestationObject": b64url(ATTESTATION_OBJECT),
                },
                "authenticatorAttachment": "platform",
            }
        )

    def authenticate(self, request_json):
        self.calls.append(("authenticate", json.loads(request_json)))
        if self.error is not None:
            raise self.error
        return json.dumps(
            {
                "id": b64url(CREDENTIAL_ID),
                "type": "public-key",
                "response": {
                    "clientDataJSON": b64url(CLIENT_DATA),
                    "authenticatorData": b64url(AUTH_DATA),
                    "signature": b64url(SIGNATURE),
                    "userHandle": b64url(USER_HANDLE),
                },
            }
        )


@pytest.fixture
def config():
    return BridgeConfig(rp_id="example.com", rp_name="Example")


@pytest.fixture
def ios_platform():
    return PlatformInfo("ios", "17.4")


@pytest.fixture
def android_platform():
    return PlatformInfo("android", 34)


@pytest.fixture
def ios_provider():
    return FakeIOSProvider()


@pytest.fixture
def android_provider():
    return FakeAndroidProvider()
