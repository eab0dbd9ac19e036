"""JumpCloud user console login followed by the SSO application URL."""

import logging
from urllib.parse import urlparse

from saml2alibabacloud import mfa
from saml2alibabacloud.errors import (
    AssertionNotFound,
    AuthenticationError,
    AuthenticationFailed,
    LoginPageParseError,
)
from saml2alibabacloud.page import extract_saml_response
from saml2alibabacloud.providers.base import (
    DONE,
    ERROR,
    EXTRACT_ASSERTION,
    FETCH_LOGIN_PAGE,
    MFA_CHALLENGE,
    SUBMIT_CREDENTIALS,
    Provider,
)

log = logging.getLogger(__name__)

XSRF_URL = "https://console.jumpcloud.com/userconsole/xsrf"
AUTH_URL = "https://console.jumpcloud.com/userconsole/auth"


class JumpCloud(Provider):
    name = "JumpCloud"

    def authenticate(self, login_details):
        login_details.validate()
        try:
            return self._run(login_details)
        except AuthenticationError:
            self.state = ERROR
            raise

    def _run(self, login_details):
        self.state = FETCH_LOGIN_PAGE
        xsrf = self._xsrf_token()

        self.state = SUBMIT_CREDENTIALS
        payload = {
            "context": "sso",
            "redirectTo": urlparse(login_details.url).path.lstrip("/"),
            "email": login_details.username,
            "password": login_details.password,
        }
        response = self._auth(payload, xsrf)

        if response.status_code == 401 and self._mfa_required(response):
            self.state = MFA_CHALLENGE
            log.debug("JumpCloud requires an MFA token")

            def submit(code):
                result = self._auth(dict(payload, otp=code), xsrf)
                return result.status_code == 200, result

            response = mfa.prompt_for_code(
                self.prompter,
                submit,
                label="MFA Token",
                provider=self.name,
                first_code=login_details.mfa_token,
            )

        if response.status_code != 200:
            raise self.fail(AuthenticationFailed, f"JumpCloud login failed: HTTP {response.status_code}")

        self.state = EXTRACT_ASSERTION
        response = self.client.get(login_details.url)
        assertion = extract_saml_response(response.text)
        if not assertion:
            raise self.fail(AssertionNotFound, f"no SAMLResponse found at {response.url}")
        self.state = DONE
        return assertion

    def _xsrf_token(self):
        response = self.client.get(XSRF_URL, headers={"Accept": "application/json"})
        try:
            token = response.json().get("xsrf")
        except ValueError:
            token = None
        if response.status_code != 200 or not token:
            raise self.fail(LoginPageParseError, "unable to retrieve JumpCloud XSRF token")
        return token

    def _auth(self, payload, xsrf):
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Xsrftoken": xsrf,
        }
        return self.client.post(AUTH_URL, json=payload, headers=headers)

    @staticmethod
    def _mfa_required(response):
        try:
            message = response.json().get("message", "")
        except ValueError:
            return False
        return "mfa" in message.lower()
