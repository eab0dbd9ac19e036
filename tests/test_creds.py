import keyring
import pytest
from keyring.errors import KeyringError

from saml2alibabacloud.creds import CLIENT_SECRET_SUFFIX, CredentialStore, LoginDetails
from saml2alibabacloud.errors import ValidationError


class MemoryKeyring:
    def __init__(self, broken=False):
        self.secrets = {}
        self.broken = broken

    def get_password(self, service, key):
        if self.broken:
            raise KeyringError("locked")
        return self.secrets.get((service, key))

    def set_password(self, service, key, secret):
        self.secrets[(service, key)] = secret


@pytest.fixture
def memory_keyring(monkeypatch):
    backend = MemoryKeyring()
    monkeypatch.setattr(keyring, "get_password", backend.get_password)
    monkeypatch.setattr(keyring, "set_password", backend.set_password)
    return backend


def test_password_round_trip_through_keychain(memory_keyring):
    store = CredentialStore()
    store.save_login_details(LoginDetails(url="https://idp.example.com", username="monty",
                                          password="python", provider="ADFS"))

    details = store.load_login_details(LoginDetails(url="https://idp.example.com", provider="ADFS"))

    assert details.password == "python"
    assert ("saml2alibabacloud", "https://idp.example.com") in memory_keyring.secrets


def test_onelogin_client_credentials(memory_keyring):
    store = CredentialStore()
    store.save_login_details(LoginDetails(url="https://corp.onelogin.com", password="pw", provider="OneLogin",
                                          client_id="cid", client_secret="cs"))

    details = store.load_login_details(LoginDetails(url="https://corp.onelogin.com", provider="OneLogin"))

    assert details.client_id == "cid"
    assert details.client_secret == "cs"
    key = ("saml2alibabacloud", "https://corp.onelogin.com" + CLIENT_SECRET_SUFFIX)
    assert memory_keyring.secrets[key] == "cs"


def test_entered_password_wins_over_keychain(memory_keyring):
    memory_keyring.secrets[("saml2alibabacloud", "https://idp.example.com")] = "stale"

    details = CredentialStore().load_login_details(
        LoginDetails(url="https://idp.example.com", password="fresh", provider="ADFS")
    )

    assert details.password == "fresh"


def test_broken_keychain_reads_as_empty(monkeypatch):
    monkeypatch.setattr(keyring, "get_password", MemoryKeyring(broken=True).get_password)

    details = CredentialStore().load_login_details(LoginDetails(url="https://idp.example.com", provider="ADFS"))

    assert details.password == ""


@pytest.mark.parametrize("fields, field", [
    ({"username": "monty", "password": "python"}, "url"),
    ({"url": "https://idp.example.com", "password": "python"}, "username"),
    ({"url": "https://idp.example.com", "username": "monty"}, "password"),
])
def test_login_details_validation(fields, field):
    with pytest.raises(ValidationError) as excinfo:
        LoginDetails(provider="ADFS", **fields).validate()
    assert excinfo.value.field == field


def test_browser_needs_no_password():
    LoginDetails(url="https://idp.example.com", provider="Browser").validate()


def test_missing_keyring_backend_is_not_fatal(no_keyring):
    store = CredentialStore()
    details = LoginDetails(url="https://corp.onelogin.com", password="pw", provider="OneLogin",
                           client_id="cid", client_secret="cs")

    store.save_login_details(details)

    assert store.get("https://corp.onelogin.com") is None
    loaded = store.load_login_details(LoginDetails(url="https://corp.onelogin.com", provider="OneLogin"))
    assert (loaded.password, loaded.client_id, loaded.client_secret) == ("", "", "")
