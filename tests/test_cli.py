import configparser
import json

import pytest

from saml2alibabacloud import cli
from saml2alibabacloud.config import ConfigManager, IDPAccount
from saml2alibabacloud.providers import Custom
from tests import ScriptedPrompter, create_assertion

ADMIN = "acs:ram::1234567890:role/admin"
READONLY = "acs:ram::1234567890:role/readonly"
PRINCIPAL = "acs:ram::1234567890:saml-provider/corp-idp"
ASSERTION = create_assertion([f"{PRINCIPAL},{ADMIN}", f"{PRINCIPAL},{READONLY}"], account_name="corp")
CREDENTIALS = {
    "AccessKeyId": "STS.id",
    "AccessKeySecret": "secret",
    "SecurityToken": "token",
    "Expiration": "2026-10-18T12:00:00Z",
}


class FakeStore:
    def __init__(self, password=""):
        self.password = password
        self.saved = []

    def load_login_details(self, details):
        if not details.password:
            details.password = self.password
        return details

    def save_login_details(self, details):
        self.saved.append(details)


@pytest.fixture
def config_path(tmp_path):
    path = str(tmp_path / "saml2alibabacloud.ini")
    ConfigManager(path).save_idp_account("default", IDPAccount(
        url="https://idp.example.com/login", username="monty", provider="Custom", mfa="Auto",
    ))
    return path


@pytest.fixture
def fake_login(monkeypatch):
    seen = {}

    def authenticate(self, login_details):
        seen["login_details"] = login_details
        return ASSERTION

    def assume(role, saml_assertion, duration, region=None):
        seen["role"] = role
        seen["duration"] = duration
        return CREDENTIALS

    monkeypatch.setattr(Custom, "authenticate", authenticate)
    monkeypatch.setattr(cli, "assume_role_with_saml", assume)
    return seen


def test_configure_keeps_other_sections(config_path):
    cli.main([
        "configure", "--config", config_path, "-a", "work", "--skip-prompt",
        "--provider", "OneLogin", "--mfa", "OLP", "--url", "https://corp.onelogin.com",
        "--app-id", "123", "--subdomain", "corp", "--profile", "work",
    ])

    parser = configparser.ConfigParser(interpolation=None)
    parser.read(config_path)
    assert parser.sections() == ["default", "work"]
    assert parser["default"]["provider"] == "Custom"
    work = ConfigManager(config_path).load_idp_account("work")
    assert work.provider == "OneLogin"
    assert work.app_id == "123"
    assert work.profile == "work"


def test_configure_prompts_for_provider_fields(tmp_path):
    path = str(tmp_path / "config.ini")
    answers = {"Please choose a provider:": "F5APM"}
    prompter = ScriptedPrompter(
        answers=["dev", "https://apm.example.com/", "monty", "/Common/alibaba"],
        choose=lambda prompt, default, options: answers.get(prompt, default),
    )

    cli.main(["configure", "--config", path], prompter=prompter)

    account = ConfigManager(path).load_idp_account("default")
    assert account.provider == "F5APM"
    assert account.mfa == "Auto"
    assert account.resource_id == "/Common/alibaba"
    assert prompter.asked == ["AlibabaCloud CLI Profile", "URL", "Username", "Resource ID"]


def test_configure_browser_options(tmp_path):
    path = str(tmp_path / "config.ini")
    answers = {"Please choose a provider:": "Browser", "Please choose a browser": "firefox"}
    prompter = ScriptedPrompter(
        answers=["saml", "https://idp.example.com/login", "monty"],
        choose=lambda prompt, default, options: answers.get(prompt, default),
    )

    cli.main(["configure", "--config", path, "--browser-autofill", "--headless"], prompter=prompter)

    account = ConfigManager(path).load_idp_account("default")
    assert account.provider == "Browser"
    assert account.browser_type == "firefox"
    assert account.browser_autofill is True
    assert account.headless is True
    assert account.download_browser_driver is False
    browsers = ["chrome", "chromium", "firefox", "msedge", "webkit"]
    assert ("Please choose a browser", "chromium", browsers) in prompter.choices


def test_configure_rejects_missing_provider_field(config_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["configure", "--config", config_path, "--skip-prompt", "--provider", "AzureAD"])

    assert excinfo.value.code == 1
    assert "app ID empty" in capsys.readouterr().out


def test_login_writes_profile(config_path, fake_login, tmp_path):
    aliyun_config = str(tmp_path / "aliyun.json")
    store = FakeStore(password="python")

    cli.main([
        "login", "--config", config_path, "--skip-prompt", "--role", READONLY,
        "--aliyun-config", aliyun_config,
    ], store=store)

    assert fake_login["login_details"].password == "python"
    assert fake_login["role"].role_arn == READONLY
    assert fake_login["duration"] == 3600
    assert store.saved == [fake_login["login_details"]]
    with open(aliyun_config) as fh:
        profiles = json.load(fh)["profiles"]
    assert profiles[0]["name"] == "saml"
    assert profiles[0]["sts_token"] == "token"


def test_login_prompts_for_role(config_path, fake_login, tmp_path):
    prompter = ScriptedPrompter(choose=lambda prompt, default, options: options[-1])

    cli.main([
        "login", "--config", config_path, "--skip-prompt", "--disable-keychain",
        "--aliyun-config", str(tmp_path / "aliyun.json"),
    ], prompter=prompter, store=FakeStore())

    assert prompter.choices[0][2] == ["corp / admin", "corp / readonly"]
    assert fake_login["role"].role_arn == READONLY


def test_login_with_unknown_mfa_fails_before_authenticating(config_path, fake_login, capsys):
    with pytest.raises(SystemExit):
        cli.main(["login", "--config", config_path, "--skip-prompt", "--mfa", "PUSH"], store=FakeStore())

    assert "login_details" not in fake_login
    assert "invalid MFA type: PUSH for Custom provider" in capsys.readouterr().out


def test_list_roles(config_path, fake_login, capsys):
    cli.main(["list-roles", "--config", config_path, "--skip-prompt"], store=FakeStore("python"))

    out = capsys.readouterr().out
    assert "corp / admin" in out
    assert READONLY in out


def test_login_without_keyring_backend(config_path, fake_login, tmp_path, monkeypatch, no_keyring):
    monkeypatch.setenv(cli.PASSWORD_ENV, "python")
    aliyun_config = str(tmp_path / "aliyun.json")

    cli.main(["login", "--config", config_path, "--skip-prompt", "--role", ADMIN,
              "--aliyun-config", aliyun_config])

    assert fake_login["login_details"].password == "python"
    assert fake_login["role"].role_arn == ADMIN
    with open(aliyun_config) as fh:
        assert json.load(fh)["profiles"][0]["access_key_id"] == "STS.id"
