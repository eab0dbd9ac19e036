"""Provider lookup and MFA validation.

Runs before any network call, so a misconfigured provider or MFA fails
without touching the IdP.
"""

import logging

from saml2alibabacloud.errors import UnknownProvider, UnsupportedMFA
from saml2alibabacloud.providers import PROVIDERS

log = logging.getLogger(__name__)


class ProviderList:
    """Read-only mapping of provider name to its supported MFA identifiers."""

    def __init__(self, mfas_by_provider):
        self._mfas = {name: tuple(mfas) for name, mfas in mfas_by_provider.items()}

    def __contains__(self, provider):
        return provider in self._mfas

    def names(self):
        """Return the provider names, sorted."""
        return sorted(self._mfas)

    def mfas(self, provider):
        """Return a sorted copy of the MFAs supported by *provider*."""
        return sorted(self._mfas.get(provider, ()))

    def supports(self, provider, mfa):
        return mfa in self._mfas.get(provider, ())


MFAS_BY_PROVIDER = ProviderList({
    "AzureAD": ["Auto", "PhoneAppOTP", "PhoneAppNotification", "OneWaySMS"],
    "ADFS": ["Auto", "VIP", "Azure"],
    "ADFS2": ["Auto", "RSA"],  # nothing automatic about ADFS 2.x
    "Ping": ["Auto"],  # automatically detects PingID
    "PingOne": ["Auto"],  # automatically detects PingID
    "JumpCloud": ["Auto"],
    "Okta": ["Auto", "PUSH", "DUO", "SMS", "TOTP", "OKTA", "FIDO", "YUBICO TOKEN:HARDWARE"],
    "OneLogin": ["Auto", "OLP", "SMS", "TOTP", "YUBIKEY"],
    "KeyCloak": ["Auto"],  # automatically detects ToTP
    "GoogleApps": ["Auto"],  # automatically detects ToTP
    "Shibboleth": ["Auto"],
    "F5APM": ["Auto"],
    "Akamai": ["Auto", "DUO", "SMS", "EMAIL", "TOTP"],
    "ShibbolethECP": ["auto", "phone", "push", "passcode"],
    "NetIQ": ["Auto", "Privileged"],
    "Custom": ["Auto"],
    "Browser": ["Auto"],
    "Shell": ["Auto"],
})

# these flows negotiate MFA themselves, whatever is configured
SELF_NEGOTIATING = ("Browser", "Shell")


class Registry:
    def __init__(self, provider_list=MFAS_BY_PROVIDER, constructors=None,
                 self_negotiating=SELF_NEGOTIATING):
        self.provider_list = provider_list
        self.constructors = PROVIDERS if constructors is None else constructors
        self.self_negotiating = tuple(self_negotiating)

    def resolve(self, provider, mfa):
        """Return the flow class for *provider* after checking *mfa*.

        The MFA must match one of the provider's identifiers exactly.
        """
        if provider not in self.provider_list or provider not in self.constructors:
            raise UnknownProvider(provider)
        if provider not in self.self_negotiating and not self.provider_list.supports(provider, mfa):
            raise UnsupportedMFA(provider, mfa)
        log.debug("Resolved provider %s with MFA %s", provider, mfa)
        return self.constructors[provider]


DEFAULT_REGISTRY = Registry()


def new_saml_client(idp_account, prompter=None, registry=DEFAULT_REGISTRY):
    """Validate the account provider/MFA and build its login flow."""
    factory = registry.resolve(idp_account.provider, idp_account.mfa)
    return factory(idp_account, prompter=prompter)
