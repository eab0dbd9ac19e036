import keyring
import pytest
from keyring.backends import fail

from saml2alibabacloud.config import IDPAccount
from saml2alibabacloud.creds import LoginDetails
from saml2alibabacloud.transport import HTTPClient
from tests import ScriptedPrompter


@pytest.fixture
def prompter():
    return ScriptedPrompter()


@pytest.fixture
def client():
    return HTTPClient(sleep=lambda seconds: None)


@pytest.fixture
def idp_account():
    return IDPAccount(url="https://idp.example.com/login", username="monty", provider="Custom", mfa="Auto")


@pytest.fixture
def login_details():
    return LoginDetails(
        url="https://idp.example.com/login",
        username="monty",
        password="python",
        provider="Custom",
    )


@pytest.fixture
def no_keyring():
    """Install keyring's fail backend, as on a headless box without a keychain."""
    previous = keyring.get_keyring()
    keyring.set_keyring(fail.Keyring())
    yield
    keyring.set_keyring(previous)
