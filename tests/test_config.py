import configparser

import pytest

from saml2alibabacloud.config import (
    DEFAULT_ALIBABACLOUD_URN,
    DEFAULT_PROFILE,
    DEFAULT_SESSION_DURATION,
    ConfigManager,
    IDPAccount,
)
from saml2alibabacloud.errors import ValidationError


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "saml2alibabacloud.ini")


def _work_account():
    return IDPAccount(
        url="https://idp.example.com/adfs/ls/IdpInitiatedSignOn.aspx",
        username="monty@example.com",
        provider="ADFS",
        mfa="VIP",
        skip_verify=True,
        timeout=10,
        session_duration=7200,
        profile="work",
        role_arn="acs:ram::1234567890:role/admin",
        region="cn-shanghai",
        http_attempts_count=5,
        http_retry_delay=2,
    )


def test_new_account_defaults():
    account = IDPAccount()

    assert account.alibabacloud_urn == DEFAULT_ALIBABACLOUD_URN
    assert account.session_duration == DEFAULT_SESSION_DURATION
    assert account.profile == DEFAULT_PROFILE


def test_save_then_load_round_trips(config_path):
    manager = ConfigManager(config_path)
    account = _work_account()

    manager.save_idp_account("work", account)

    assert manager.load_idp_account("work") == account


def test_saving_another_section_keeps_existing(config_path):
    manager = ConfigManager(config_path)
    manager.save_idp_account("work", _work_account())
    before = configparser.ConfigParser(interpolation=None)
    before.read(config_path)

    home = IDPAccount(url="https://corp.okta.com/home/alibabacloud/0oa1/272", provider="Okta", mfa="PUSH")
    manager.save_idp_account("home", home)

    after = configparser.ConfigParser(interpolation=None)
    after.read(config_path)
    assert dict(after["work"]) == dict(before["work"])
    assert manager.load_idp_account("work") == _work_account()
    assert manager.load_idp_account("home") == home


def test_load_missing_file_gives_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path / "missing"))

    assert manager.load_idp_account("default") == IDPAccount()


def test_load_partial_section_keeps_defaults(config_path):
    with open(config_path, "w") as fh:
        fh.write("[default]\nurl = https://idp.example.com\nprovider = KeyCloak\n")

    account = ConfigManager(config_path).load_idp_account("default")

    assert account.url == "https://idp.example.com"
    assert account.provider == "KeyCloak"
    assert account.profile == DEFAULT_PROFILE
    assert account.session_duration == DEFAULT_SESSION_DURATION


def test_load_tolerates_invalid_lines(config_path):
    with open(config_path, "w") as fh:
        fh.write("[default]\nurl = https://idp.example.com\nthis line is garbage\ntimeout = soon\n")

    account = ConfigManager(config_path).load_idp_account("default")

    assert account.url == "https://idp.example.com"
    assert account.timeout == 0


def test_onelogin_requires_app_id(config_path):
    account = IDPAccount(url="https://corp.onelogin.com", provider="OneLogin", mfa="Auto", subdomain="corp")

    with pytest.raises(ValidationError) as excinfo:
        ConfigManager(config_path).save_idp_account("default", account)
    assert excinfo.value.field == "app_id"


def test_onelogin_accepted_with_app_id_and_subdomain(config_path):
    account = IDPAccount(url="https://corp.onelogin.com", provider="OneLogin", mfa="Auto",
                         app_id="123456", subdomain="corp")

    ConfigManager(config_path).save_idp_account("default", account)

    assert ConfigManager(config_path).load_idp_account("default") == account


@pytest.mark.parametrize("fields, missing", [
    ({"provider": "F5APM", "mfa": "Auto", "url": "https://apm.example.com"}, "resource_id"),
    ({"provider": "AzureAD", "mfa": "Auto", "url": "https://myapps.microsoft.com"}, "app_id"),
    ({"provider": "Shell", "mfa": "Auto", "url": "https://idp.example.com"}, "shell_command"),
    ({"provider": "KeyCloak", "mfa": "Auto", "url": ""}, "url"),
    ({"provider": "KeyCloak", "mfa": "Auto", "url": "not a url"}, "url"),
    ({"provider": "", "mfa": "Auto", "url": "https://idp.example.com"}, "provider"),
    ({"provider": "KeyCloak", "mfa": "", "url": "https://idp.example.com"}, "mfa"),
    ({"provider": "KeyCloak", "mfa": "Auto", "url": "https://idp.example.com", "profile": ""}, "profile"),
])
def test_validation(fields, missing):
    with pytest.raises(ValidationError) as excinfo:
        IDPAccount(**fields).validate()
    assert excinfo.value.field == missing


def test_validation_fails_before_touching_the_file(config_path):
    with pytest.raises(ValidationError):
        ConfigManager(config_path).save_idp_account("default", IDPAccount())

    with pytest.raises(FileNotFoundError):
        open(config_path)


def test_str_shows_provider_fields():
    account = IDPAccount(provider="OneLogin", app_id="42", subdomain="corp")

    assert "AppID: 42" in str(account)
    assert "Subdomain: corp" in str(account)
    assert "ResourceID" not in str(account)


def test_browser_fields_round_trip(config_path):
    manager = ConfigManager(config_path)
    account = IDPAccount(url="https://idp.example.com", provider="Browser", mfa="Auto",
                         browser_type="firefox", browser_executable_path="/opt/firefox/firefox",
                         browser_autofill=True, download_browser_driver=True,
                         browser_driver_dir="~/.cache/ms-playwright", headless=True)

    manager.save_idp_account("browser", account)

    assert manager.load_idp_account("browser") == account
    assert "BrowserType: firefox" in str(account)


def test_saving_keeps_unknown_keys(config_path):
    with open(config_path, "w") as fh:
        fh.write("[default]\nurl = https://idp.example.com\nprovider = KeyCloak\nmfa = Auto\nprompter = default\n")
    manager = ConfigManager(config_path)
    account = manager.load_idp_account("default")
    account.username = "monty"

    manager.save_idp_account("default", account)

    config = configparser.ConfigParser(interpolation=None)
    config.read(config_path)
    assert config["default"]["prompter"] == "default"
    assert config["default"]["username"] == "monty"
