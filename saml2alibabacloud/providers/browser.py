"""Log in through a real browser driven by Playwright.

The user completes the IdP login (MFA included) in the browser window; the
flow only waits for the SAMLResponse posted to the Alibaba Cloud SAML
endpoint. Requires the ``browser`` extra and ``playwright install``, or
``download_browser_driver = true`` in the account.
"""

import logging
import os
import subprocess
import sys
from urllib.parse import parse_qs

from saml2alibabacloud.config import DEFAULT_BROWSER_TYPE
from saml2alibabacloud.errors import AssertionNotFound, AuthenticationFailed, ValidationError
from saml2alibabacloud.providers.base import DONE, EXTRACT_ASSERTION, FETCH_LOGIN_PAGE, Provider

log = logging.getLogger(__name__)

SAML_SIGNIN_URL = "https://signin.aliyun.com/saml-role/sso"
LOGIN_TIMEOUT = 300  # seconds the user has to complete the login

# browser_type -> (Playwright engine, channel)
BROWSER_TYPES = {
    "chromium": ("chromium", None),
    "chrome": ("chromium", "chrome"),
    "msedge": ("chromium", "msedge"),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
}

USERNAME_SELECTOR = "input[type=email], input[name*=user i], input[name*=login i]"
PASSWORD_SELECTOR = "input[type=password]"


class Browser(Provider):
    name = "Browser"

    def __init__(self, idp_account, prompter=None, client=None, runner=subprocess.run):
        super().__init__(idp_account, prompter, client)
        self._run_command = runner

    def browser_type(self):
        """Return (engine, channel) for the configured ``browser_type``."""
        name = (self.idp_account.browser_type or DEFAULT_BROWSER_TYPE).lower()
        if name not in BROWSER_TYPES:
            raise ValidationError(
                "browser_type",
                f"unsupported browser type {name!r}, use one of {', '.join(sorted(BROWSER_TYPES))}",
            )
        return BROWSER_TYPES[name]

    def launch_options(self):
        _, channel = self.browser_type()
        options = {"headless": self.idp_account.headless}
        if channel:
            options["channel"] = channel
        if self.idp_account.browser_executable_path:
            options["executable_path"] = self.idp_account.browser_executable_path
        return options

    def install_browser(self):
        """Download the browser build with ``playwright install``."""
        engine, channel = self.browser_type()
        command = [sys.executable, "-m", "playwright", "install", channel or engine]
        print(f"Downloading {channel or engine} for Playwright...", flush=True)
        try:
            self._run_command(command, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise self.fail(AuthenticationFailed, f"unable to install the browser: {exc}")

    def autofill(self, page, login_details):
        for selector, value in ((USERNAME_SELECTOR, login_details.username),
                                (PASSWORD_SELECTOR, login_details.password)):
            field = page.locator(selector).first
            if value and field.count():
                field.fill(value)

    def authenticate(self, login_details):
        login_details.validate()
        engine, _ = self.browser_type()
        options = self.launch_options()
        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import sync_playwright
        except ImportError:
            raise self.fail(
                AuthenticationFailed,
                "the Browser provider needs playwright: "
                "pip install 'saml2alibabacloud[browser]' && playwright install chromium",
            )

        if self.idp_account.browser_driver_dir:
            os.environ["PLAYWRIGHT_BROWSERS_PATH"] = os.path.expanduser(self.idp_account.browser_driver_dir)
        if self.idp_account.download_browser_driver:
            self.install_browser()

        self.state = FETCH_LOGIN_PAGE
        print("Complete the login in the browser window...", flush=True)
        try:
            with sync_playwright() as pw:
                browser = getattr(pw, engine).launch(**options)
                try:
                    page = browser.new_page()
                    page.goto(login_details.url)
                    if self.idp_account.browser_autofill:
                        self.autofill(page, login_details)
                    with page.expect_request(
                        lambda r: r.url.startswith(SAML_SIGNIN_URL) and r.method == "POST",
                        timeout=LOGIN_TIMEOUT * 1000,
                    ) as request_info:
                        pass
                    post_data = request_info.value.post_data or ""
                finally:
                    browser.close()
        except PlaywrightError as exc:
            raise self.fail(AuthenticationFailed, f"browser login failed: {exc}")

        self.state = EXTRACT_ASSERTION
        values = parse_qs(post_data).get("SAMLResponse")
        if not values:
            raise self.fail(AssertionNotFound, "no SAMLResponse posted to Alibaba Cloud")
        log.debug("Captured SAMLResponse from browser")
        self.state = DONE
        return values[0]
