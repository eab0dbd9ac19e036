"""OneLogin through its SAML assertion API.

Needs an API client id / secret (from the keychain or prompted), the app id
and the OneLogin subdomain. The region of the API host is taken from the
account ``region`` (``us`` when empty).
"""

import logging

from requests.auth import HTTPBasicAuth

from saml2alibabacloud import mfa
from saml2alibabacloud.errors import (
    AuthenticationError,
    AuthenticationFailed,
    ValidationError,
)
from saml2alibabacloud.providers.base import (
    DONE,
    ERROR,
    FETCH_LOGIN_PAGE,
    MFA_CHALLENGE,
    SUBMIT_CREDENTIALS,
    Provider,
)

log = logging.getLogger(__name__)

# MFA identifier -> OneLogin device type
DEVICE_TYPES = {
    "OLP": "OneLogin Protect",
    "SMS": "OneLogin SMS",
    "TOTP": "Google Authenticator",
    "YUBIKEY": "Yubico YubiKey",
}

MESSAGE_SUCCESS = "Success"
MESSAGE_PENDING = "Authentication pending on OL Protect"


class OneLogin(Provider):
    name = "OneLogin"

    def api_url(self, path):
        region = self.idp_account.region or "us"
        return f"https://api.{region}.onelogin.com{path}"

    def authenticate(self, login_details):
        login_details.validate()
        if not login_details.client_id or not login_details.client_secret:
            raise ValidationError("client_id", "OneLogin needs an API client ID and client secret")
        try:
            return self._run(login_details)
        except AuthenticationError:
            self.state = ERROR
            raise

    def _run(self, login_details):
        self.state = FETCH_LOGIN_PAGE
        token = self.access_token(login_details)
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

        self.state = SUBMIT_CREDENTIALS
        response = self.client.post(
            self.api_url("/api/2/saml_assertion"),
            json={
                "username_or_email": login_details.username,
                "password": login_details.password,
                "app_id": self.idp_account.app_id,
                "subdomain": self.idp_account.subdomain,
            },
            headers=headers,
        )
        if response.status_code in (400, 401, 403):
            raise self.fail(AuthenticationFailed, "invalid username or password")
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"SAML assertion request failed: HTTP {response.status_code}")
        body = response.json()

        if body.get("data") and body.get("message") == MESSAGE_SUCCESS:
            self.state = DONE
            return body["data"]

        if not body.get("state_token"):
            raise self.fail(AuthenticationFailed, f"unexpected OneLogin response: {body.get('message')}")

        self.state = MFA_CHALLENGE
        assertion = self.handle_mfa(body, headers, login_details)
        self.state = DONE
        return assertion

    def access_token(self, login_details):
        response = self.client.post(
            self.api_url("/auth/oauth2/v2/token"),
            json={"grant_type": "client_credentials"},
            auth=HTTPBasicAuth(login_details.client_id, login_details.client_secret),
        )
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"unable to obtain OneLogin API token: HTTP {response.status_code}")
        return response.json()["access_token"]

    def choose_device(self, devices):
        wanted = DEVICE_TYPES.get(self.idp_account.mfa)
        if wanted:
            devices = [d for d in devices if d.get("device_type") == wanted]
        if not devices:
            raise self.fail(AuthenticationFailed, f"no enrolled OneLogin device for MFA {self.idp_account.mfa!r}")
        if len(devices) == 1:
            return devices[0]
        labels = [f"{d.get('device_type')} ({d.get('device_id')})" for d in devices]
        choice = self.prompter.choose_with_default("Select MFA device", labels[0], labels)
        return devices[labels.index(choice)]

    def handle_mfa(self, body, headers, login_details):
        device = self.choose_device(body.get("devices") or [])
        log.debug("OneLogin MFA with device %s", device.get("device_type"))
        payload = {
            "app_id": self.idp_account.app_id,
            "device_id": str(device.get("device_id")),
            "state_token": body["state_token"],
        }
        url = self.api_url("/api/2/saml_assertion/verify_factor")

        def verify(extra):
            result = self.client.post(url, json=dict(payload, **extra), headers=headers)
            if result.status_code >= 400:
                return None
            return result.json()

        if device.get("device_type") == DEVICE_TYPES["OLP"]:
            verify({"do_not_notify": False})

            def check():
                result = verify({"do_not_notify": True})
                if result is None:
                    return mfa.DENIED, None
                if result.get("data") and result.get("message") == MESSAGE_SUCCESS:
                    return mfa.APPROVED, result["data"]
                if result.get("message") == MESSAGE_PENDING:
                    return mfa.PENDING, None
                return mfa.DENIED, None

            return mfa.poll_push(
                check,
                provider=self.name,
                interval=self.poll_interval,
                timeout=self.poll_timeout,
                max_polls=self.max_polls,
            )

        if device.get("device_type") == DEVICE_TYPES["SMS"]:
            verify({})

        def submit(code):
            result = verify({"otp_token": code})
            if result and result.get("data"):
                return True, result["data"]
            return False, None

        return mfa.prompt_for_code(
            self.prompter,
            submit,
            label="Enter verification code",
            provider=self.name,
            first_code=login_details.mfa_token,
        )
