"""Login details and the OS keychain.

Passwords and OneLogin client secrets are never written to the
configuration file. They can be kept in the OS credential store through
``keyring``, keyed by the IdP URL.
"""

import logging

import keyring
from keyring.errors import KeyringError

from saml2alibabacloud.errors import ValidationError

log = logging.getLogger(__name__)

KEYRING_SERVICE = "saml2alibabacloud"
CLIENT_ID_SUFFIX = "/saml2alibabacloudClientID"
CLIENT_SECRET_SUFFIX = "/saml2alibabacloudClientSecret"

# providers which collect credentials themselves
NO_PASSWORD_PROVIDERS = ("Browser", "Shell")


class LoginDetails:
    """Credentials for a single authentication attempt."""

    def __init__(self, url="", username="", password="", client_id="",
                 client_secret="", provider="", mfa_token=""):
        self.url = url
        self.username = username
        self.password = password
        self.client_id = client_id
        self.client_secret = client_secret
        self.provider = provider
        self.mfa_token = mfa_token

    def __repr__(self):
        return f"LoginDetails(url={self.url!r}, username={self.username!r}, password=<redacted>)"

    def validate(self):
        if not self.url:
            raise ValidationError("url", "Empty URL")
        if self.provider not in NO_PASSWORD_PROVIDERS:
            if not self.username:
                raise ValidationError("username", "Empty username")
            if not self.password:
                raise ValidationError("password", "Empty password")


class CredentialStore:
    """Thin adapter over ``keyring``.

    Backend failures are logged and never fatal: a failed read is reported
    as "no secret" and the user is prompted instead; a failed write only
    means the secret is asked for again next time.
    """

    def __init__(self, service=KEYRING_SERVICE):
        self.service = service

    def get(self, key):
        try:
            return keyring.get_password(self.service, key)
        except KeyringError as exc:
            log.warning("Unable to read %s from keychain: %s", key, exc)
            return None

    def set(self, key, secret):
        try:
            keyring.set_password(self.service, key, secret)
        except KeyringError as exc:
            log.warning("Unable to store %s in keychain: %s", key, exc)

    def load_login_details(self, details):
        """Fill empty secrets of *details* from the keychain."""
        if not details.password:
            details.password = self.get(details.url) or ""
        if details.provider == "OneLogin":
            if not details.client_id:
                details.client_id = self.get(details.url + CLIENT_ID_SUFFIX) or ""
            if not details.client_secret:
                details.client_secret = self.get(details.url + CLIENT_SECRET_SUFFIX) or ""
        return details

    def save_login_details(self, details):
        if details.password:
            self.set(details.url, details.password)
        if details.provider == "OneLogin":
            if details.client_id:
                self.set(details.url + CLIENT_ID_SUFFIX, details.client_id)
            if details.client_secret:
                self.set(details.url + CLIENT_SECRET_SUFFIX, details.client_secret)
