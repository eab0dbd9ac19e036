import pytest
import responses

from saml2alibabacloud.config import IDPAccount
from saml2alibabacloud.errors import UnknownProvider, UnsupportedMFA
from saml2alibabacloud.providers import PROVIDERS
from saml2alibabacloud.registry import (
    MFAS_BY_PROVIDER,
    ProviderList,
    Registry,
    new_saml_client,
)

VALID_PAIRS = [(p, m) for p in MFAS_BY_PROVIDER.names() for m in MFAS_BY_PROVIDER.mfas(p)]


def test_every_provider_has_a_flow():
    assert sorted(PROVIDERS) == MFAS_BY_PROVIDER.names()


@pytest.mark.parametrize("provider, mfa", VALID_PAIRS)
def test_valid_pairs_resolve(provider, mfa):
    assert Registry().resolve(provider, mfa) is PROVIDERS[provider]


@pytest.mark.parametrize("provider, mfa", [
    ("Okta", "push"),  # case sensitive
    ("ShibbolethECP", "Auto"),
    ("KeyCloak", "TOTP"),
    ("ADFS", ""),
    ("AzureAD", "SMS"),
])
def test_invalid_mfa(provider, mfa):
    with pytest.raises(UnsupportedMFA):
        Registry().resolve(provider, mfa)


@pytest.mark.parametrize("provider", ["Browser", "Shell"])
def test_self_negotiating_providers_skip_mfa_check(provider):
    assert Registry().resolve(provider, "anything") is PROVIDERS[provider]


def test_unknown_provider():
    with pytest.raises(UnknownProvider):
        Registry().resolve("Keycloak", "Auto")


def test_substitute_table():
    class Fake:
        def __init__(self, idp_account, prompter=None):
            self.idp_account = idp_account

    registry = Registry(ProviderList({"Fake": ["Only"]}), {"Fake": Fake}, self_negotiating=())

    assert registry.resolve("Fake", "Only") is Fake
    with pytest.raises(UnsupportedMFA):
        registry.resolve("Fake", "Auto")
    with pytest.raises(UnknownProvider):
        registry.resolve("Okta", "Auto")


def test_provider_list_sorts_copies():
    mfas = MFAS_BY_PROVIDER.mfas("Okta")
    mfas.append("bogus")

    assert "bogus" not in MFAS_BY_PROVIDER.mfas("Okta")
    assert MFAS_BY_PROVIDER.mfas("ShibbolethECP") == ["auto", "passcode", "phone", "push"]


@responses.activate
def test_invalid_mfa_never_reaches_the_network():
    account = IDPAccount(url="https://corp.okta.com/home/app", provider="Okta", mfa="SMS OTP")

    with pytest.raises(UnsupportedMFA):
        new_saml_client(account)
    assert len(responses.calls) == 0


def test_new_saml_client_builds_flow(prompter):
    account = IDPAccount(url="https://sso.example.com", provider="KeyCloak", mfa="Auto")

    client = new_saml_client(account, prompter=prompter)

    assert isinstance(client, PROVIDERS["KeyCloak"])
    assert client.idp_account is account
    assert client.prompter is prompter
