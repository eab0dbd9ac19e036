"""Okta: primary authentication through the authn API, then the app embed link.

The configured URL is the embed link of the Alibaba Cloud app, e.g.
``https://corp.okta.com/home/alibabacloud/0oa.../272``. The Okta org URL is
derived from it.
"""

import logging
from urllib.parse import urlparse

from saml2alibabacloud import mfa
from saml2alibabacloud.errors import (
    AssertionNotFound,
    AuthenticationError,
    AuthenticationFailed,
)
from saml2alibabacloud.page import extract_saml_response
from saml2alibabacloud.providers.base import (
    DONE,
    ERROR,
    EXTRACT_ASSERTION,
    MFA_CHALLENGE,
    SUBMIT_CREDENTIALS,
    Provider,
)

log = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

FACTOR_LABELS = {
    "token:software:totp": "TOTP Authenticator",
    "push": "Okta Verify Push",
    "sms": "SMS",
    "call": "Voice Call",
    "token:hotp": "HOTP Token",
    "token:hardware": "Hardware Token",
    "email": "Email",
    "web": "Duo Security",
    "u2f": "U2F Security Key",
    "webauthn": "Security Key or Biometric",
}

CODE_FACTORS = ("token:software:totp", "token:hotp", "token:hardware")
SENT_CODE_FACTORS = ("sms", "call", "email")
# need a browser to run the Duo iframe or the WebAuthn ceremony
BROWSER_FACTORS = ("web", "u2f", "webauthn")


def _factor_matches(mfa_name, factor):
    factor_type = factor.get("factorType", "")
    provider = factor.get("provider", "")
    if mfa_name == "Auto":
        return factor_type == "push" or factor_type in CODE_FACTORS + SENT_CODE_FACTORS
    if mfa_name == "PUSH":
        return factor_type == "push"
    if mfa_name == "TOTP":
        return factor_type == "token:software:totp"
    if mfa_name == "OKTA":
        return factor_type == "token:software:totp" and provider == "OKTA"
    if mfa_name == "SMS":
        return factor_type == "sms"
    if mfa_name == "DUO":
        return factor_type == "web" and provider == "DUO"
    if mfa_name == "FIDO":
        return factor_type in ("u2f", "webauthn") and provider == "FIDO"
    if mfa_name == "YUBICO TOKEN:HARDWARE":
        return factor_type == "token:hardware" and provider == "YUBICO"
    return False


def _factor_label(factor):
    factor_type = factor.get("factorType", "unknown")
    label = FACTOR_LABELS.get(factor_type, factor_type)
    provider = factor.get("provider", "")
    if provider:
        label = f"{label} ({provider})"
    return label


class Okta(Provider):
    name = "Okta"

    def authenticate(self, login_details):
        login_details.validate()
        try:
            return self._run(login_details)
        except AuthenticationError:
            self.state = ERROR
            raise

    def org_url(self, login_details):
        parsed = urlparse(login_details.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def _run(self, login_details):
        okta_url = self.org_url(login_details)

        self.state = SUBMIT_CREDENTIALS
        authn_result = self.authn(okta_url, login_details.username, login_details.password)
        status = authn_result.get("status")

        if status == "LOCKED_OUT":
            raise self.fail(AuthenticationFailed, "your account is locked out, contact your administrator")
        if status == "PASSWORD_EXPIRED":
            raise self.fail(AuthenticationFailed, "your password has expired, reset it in Okta and try again")
        if status == "MFA_ENROLL":
            raise self.fail(AuthenticationFailed, "MFA enrollment is required, enroll a factor in Okta first")

        if status in ("MFA_REQUIRED", "MFA_CHALLENGE"):
            self.state = MFA_CHALLENGE
            authn_result = self.handle_mfa(okta_url, authn_result, login_details)
            status = authn_result.get("status")

        if status != "SUCCESS":
            raise self.fail(AuthenticationFailed, f"unexpected authentication status: {status}")

        session_token = authn_result.get("sessionToken")
        if not session_token:
            raise self.fail(AuthenticationFailed, "Okta did not return a session token")

        self.state = EXTRACT_ASSERTION
        assertion = self.get_saml_assertion(okta_url, login_details.url, session_token)
        self.state = DONE
        return assertion

    # -----------------------------------------------------------------------
    # authn API
    # -----------------------------------------------------------------------

    def authn(self, okta_url, username, password):
        """Perform primary Okta username/password authentication."""
        response = self.client.post(
            f"{okta_url}/api/v1/authn",
            json={"username": username, "password": password},
            headers=JSON_HEADERS,
        )
        if response.status_code == 401:
            raise self.fail(AuthenticationFailed, "invalid username or password")
        if response.status_code == 429:
            raise self.fail(AuthenticationFailed, "too many requests, please wait and retry")
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"authentication failed: HTTP {response.status_code}")
        return response.json()

    def verify(self, okta_url, factor, state_token, passcode=None):
        """Send an MFA verification request to Okta.

        For push factors call without *passcode* to trigger the challenge,
        then call again (without passcode) to check the approval status.
        """
        payload = {"stateToken": state_token}
        if passcode:
            payload["passCode"] = passcode
        response = self.client.post(
            f"{okta_url}/api/v1/authn/factors/{factor['id']}/verify",
            json=payload,
            headers=JSON_HEADERS,
        )
        if response.status_code == 403:
            return None
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"MFA verification failed: HTTP {response.status_code}")
        return response.json()

    # -----------------------------------------------------------------------
    # MFA
    # -----------------------------------------------------------------------

    def choose_factor(self, factors):
        """Return a single factor matching the configured MFA, prompting if necessary."""
        mfa_name = self.idp_account.mfa or "Auto"
        candidates = [f for f in factors if _factor_matches(mfa_name, f)]
        if not candidates:
            offered = ", ".join(_factor_label(f) for f in factors)
            raise self.fail(
                AuthenticationFailed,
                f"no supported MFA factor for {mfa_name!r} (enrolled: {offered})",
            )
        if len(candidates) == 1:
            return candidates[0]

        labels = [_factor_label(f) for f in candidates]
        choice = self.prompter.choose_with_default("Select MFA factor", labels[0], labels)
        return candidates[labels.index(choice)]

    def handle_mfa(self, okta_url, authn_result, login_details):
        """Handle the MFA challenge and return the authn result after success."""
        state_token = authn_result["stateToken"]
        factors = authn_result["_embedded"]["factors"]
        factor = self.choose_factor(factors)
        factor_type = factor.get("factorType", "")

        if factor_type in BROWSER_FACTORS:
            raise self.fail(
                AuthenticationFailed,
                f"{_factor_label(factor)} can only be completed in a browser, "
                "configure this account with the Browser provider",
            )

        if factor_type == "push":
            return self.handle_push(okta_url, factor, state_token)

        if factor_type in SENT_CODE_FACTORS:
            print(f"Sending {FACTOR_LABELS[factor_type]} code...")
            self.verify(okta_url, factor, state_token)

        def submit(passcode):
            result = self.verify(okta_url, factor, state_token, passcode)
            return result is not None and result.get("status") == "SUCCESS", result

        return mfa.prompt_for_code(
            self.prompter,
            submit,
            label=f"Enter {_factor_label(factor)} code",
            provider=self.name,
            first_code=login_details.mfa_token,
        )

    def handle_push(self, okta_url, factor, state_token):
        """Poll Okta Verify push until approved, rejected, or timeout."""
        print("Sending push notification to Okta Verify... please approve it.", flush=True)
        self.verify(okta_url, factor, state_token)

        def check():
            result = self.verify(okta_url, factor, state_token)
            if result is None:
                return mfa.DENIED, result
            if result.get("status") == "SUCCESS":
                return mfa.APPROVED, result
            factor_result = result.get("factorResult", "")
            if factor_result == "WAITING":
                return mfa.PENDING, result
            if factor_result == "REJECTED":
                return mfa.DENIED, result
            return mfa.TIMEOUT, result

        return mfa.poll_push(
            check,
            provider=self.name,
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            max_polls=self.max_polls,
        )

    # -----------------------------------------------------------------------
    # SAML assertion retrieval
    # -----------------------------------------------------------------------

    def get_saml_assertion(self, okta_url, app_url, session_token):
        """Retrieve the base64-encoded SAML assertion from the Okta app.

        Two strategies are tried:
        1. Exchange the session token for a cookie via
           /login/sessionCookieRedirect, then follow redirects to the app.
        2. Append the session token directly to the app URL.
        """
        response = self.client.get(
            f"{okta_url}/login/sessionCookieRedirect",
            params={"checkAccountSetupComplete": "true", "token": session_token, "redirectUrl": app_url},
        )
        assertion = extract_saml_response(response.text) if response.ok else None

        if not assertion:
            log.debug("No SAMLResponse after session cookie redirect, retrying with sessionToken")
            response = self.client.get(app_url, params={"sessionToken": session_token})
            assertion = extract_saml_response(response.text) if response.ok else None

        if not assertion:
            raise self.fail(
                AssertionNotFound,
                "could not find SAMLResponse in Okta response, verify that the URL "
                "is the embed link of the Alibaba Cloud SAML app",
            )
        return assertion
