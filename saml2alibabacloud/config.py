"""IdP account configuration stored in ``~/.saml2alibabacloud``.

Every named IdP account lives in its own ini section of a single file. Saving
one account reads the whole file, replaces that one section and writes the
whole file back, so other accounts are preserved. Two processes saving at the
same time are not coordinated: the last writer wins.
"""

import configparser
import logging
import os
from urllib.parse import urlparse

from saml2alibabacloud.errors import ValidationError

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_PATH = "~/.saml2alibabacloud"

# URN used when authenticating to Alibaba Cloud using SAML
DEFAULT_ALIBABACLOUD_URN = "urn:alibaba:cloudcomputing"
DEFAULT_SESSION_DURATION = 3600  # 1 hour
DEFAULT_PROFILE = "saml"
DEFAULT_BROWSER_TYPE = "chromium"

# (attribute, ini key, type, default)
FIELDS = (
    ("app_id", "app_id", str, ""),
    ("url", "url", str, ""),
    ("username", "username", str, ""),
    ("provider", "provider", str, ""),
    ("mfa", "mfa", str, ""),
    ("skip_verify", "skip_verify", bool, False),
    ("timeout", "timeout", int, 0),
    ("alibabacloud_urn", "alibabacloud_urn", str, DEFAULT_ALIBABACLOUD_URN),
    ("session_duration", "alibabacloud_session_duration", int, DEFAULT_SESSION_DURATION),
    ("profile", "alibabacloud_profile", str, DEFAULT_PROFILE),
    ("resource_id", "resource_id", str, ""),
    ("subdomain", "subdomain", str, ""),
    ("role_arn", "role_arn", str, ""),
    ("region", "region", str, ""),
    ("http_attempts_count", "http_attempts_count", int, 0),
    ("http_retry_delay", "http_retry_delay", int, 0),
    ("browser_type", "browser_type", str, ""),
    ("browser_executable_path", "browser_executable_path", str, ""),
    ("browser_autofill", "browser_autofill", bool, False),
    ("download_browser_driver", "download_browser_driver", bool, False),
    ("browser_driver_dir", "browser_driver_dir", str, ""),
    ("headless", "headless", bool, False),
    ("shell_command", "shell_command", str, ""),
)

# provider -> attributes that provider cannot work without
PROVIDER_REQUIRED_FIELDS = {
    "OneLogin": (("app_id", "app ID"), ("subdomain", "subdomain")),
    "F5APM": (("resource_id", "resource ID"),),
    "AzureAD": (("app_id", "app ID"),),
    "Shell": (("shell_command", "shell command"),),
}


# ---------------------------------------------------------------------------
# IdP account
# ---------------------------------------------------------------------------


class IDPAccount:
    """A named IdP account, created with sane defaults for every field."""

    def __init__(self, **kwargs):
        for attr, _, _, default in FIELDS:
            setattr(self, attr, default)
        for attr, value in kwargs.items():
            if not any(attr == field[0] for field in FIELDS):
                raise TypeError(f"unknown IDPAccount field: {attr}")
            setattr(self, attr, value)

    def __eq__(self, other):
        if not isinstance(other, IDPAccount):
            return NotImplemented
        return all(getattr(self, f[0]) == getattr(other, f[0]) for f in FIELDS)

    def __repr__(self):
        return f"IDPAccount(provider={self.provider!r}, url={self.url!r}, profile={self.profile!r})"

    def __str__(self):
        extra = ""
        if self.provider == "OneLogin":
            extra = f"\n  AppID: {self.app_id}\n  Subdomain: {self.subdomain}"
        elif self.provider == "F5APM":
            extra = f"\n  ResourceID: {self.resource_id}"
        elif self.provider == "AzureAD":
            extra = f"\n  AppID: {self.app_id}"
        elif self.provider == "Shell":
            extra = f"\n  ShellCommand: {self.shell_command}"
        elif self.provider == "Browser":
            extra = f"\n  BrowserType: {self.browser_type or DEFAULT_BROWSER_TYPE}\n  Headless: {self.headless}"

        return (
            f"account {{{extra}\n"
            f"  URL: {self.url}\n"
            f"  Username: {self.username}\n"
            f"  Provider: {self.provider}\n"
            f"  MFA: {self.mfa}\n"
            f"  SkipVerify: {self.skip_verify}\n"
            f"  SessionDuration: {self.session_duration}\n"
            f"  Profile: {self.profile}\n"
            f"  RoleARN: {self.role_arn}\n"
            f"  Region: {self.region}\n"
            "}"
        )

    def validate(self):
        """Check the required / expected fields are set.

        Provider specific fields are only checked for the provider that uses
        them. Raises ValidationError naming the first offending field.
        """
        for attr, label in PROVIDER_REQUIRED_FIELDS.get(self.provider, ()):
            if not getattr(self, attr):
                raise ValidationError(attr, f"{label} empty in idp account")

        if not self.url:
            raise ValidationError("url", "URL empty in idp account")
        parsed = urlparse(self.url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError("url", f"URL parse failed: {self.url!r}")

        if not self.provider:
            raise ValidationError("provider", "Provider empty in idp account")
        if not self.mfa:
            raise ValidationError("mfa", "MFA empty in idp account")
        if not self.profile:
            raise ValidationError("profile", "Profile empty in idp account")


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


def _new_parser():
    return configparser.ConfigParser(strict=False, interpolation=None)


def load_config(config_path):
    """Load the ini file loosely.

    A missing file gives an empty config. Unparsable lines are logged and
    skipped; whatever was parsed before and after them is kept.
    """
    config = _new_parser()
    if not os.path.exists(config_path):
        return config
    try:
        config.read(config_path)
    except configparser.ParsingError as exc:
        log.warning("Ignoring invalid lines in %s: %s", config_path, exc)
    return config


def _coerce(section, key, kind, default):
    try:
        if kind is bool:
            return section.getboolean(key)
        if kind is int:
            return section.getint(key)
    except ValueError:
        log.warning("Invalid value for %r in section [%s], using %r", key, section.name, default)
        return default
    return section.get(key)


class ConfigManager:
    """Load and save IdP accounts in the configuration file."""

    def __init__(self, config_path=None):
        self.config_path = os.path.expanduser(config_path or DEFAULT_CONFIG_PATH)

    def load_idp_account(self, name):
        """Return the account stored under *name*.

        A missing file or section is not an error: fields absent from the
        file keep their defaults.
        """
        config = load_config(self.config_path)
        account = IDPAccount()
        if not config.has_section(name):
            log.debug("No section [%s] in %s, using defaults", name, self.config_path)
            return account

        section = config[name]
        for attr, key, kind, default in FIELDS:
            if key in section:
                setattr(account, attr, _coerce(section, key, kind, default))
        return account

    def save_idp_account(self, name, account):
        """Validate *account* and write it to section *name*.

        Other sections of the file are kept as they were. Keys of the section
        this version does not know (written by another tool, e.g. ``prompter``)
        are kept too.
        """
        account.validate()

        config = load_config(self.config_path)
        known = {field[1] for field in FIELDS}
        unknown = {}
        if config.has_section(name):
            unknown = {k: v for k, v in config.items(name) if k not in known}
            config.remove_section(name)
        config.add_section(name)
        for attr, key, kind, _ in FIELDS:
            value = getattr(account, attr)
            if kind is bool:
                value = "true" if value else "false"
            config.set(name, key, str(value))
        for key, value in unknown.items():
            config.set(name, key, value)

        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.config_path, "w") as fh:
            config.write(fh)
        log.debug("Saved idp account [%s] to %s", name, self.config_path)
