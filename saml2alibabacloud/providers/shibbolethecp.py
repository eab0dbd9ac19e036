"""Shibboleth ECP (Enhanced Client or Proxy) profile.

No HTML at all: a SOAP AuthnRequest is posted to the IdP ECP endpoint with
HTTP basic authentication. Duo MFA is driven by request headers, so the MFA
identifiers of this provider are lower case Duo factor names.
"""

import base64
import datetime
import logging
import uuid
import xml.etree.ElementTree as ET

from requests.auth import HTTPBasicAuth

from saml2alibabacloud.errors import (
    AssertionNotFound,
    AuthenticationError,
    AuthenticationFailed,
)
from saml2alibabacloud.providers.base import (
    DONE,
    ERROR,
    EXTRACT_ASSERTION,
    SUBMIT_CREDENTIALS,
    Provider,
)

log = logging.getLogger(__name__)

ACS_URL = "https://signin.aliyun.com/saml-role/sso"
SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SAMLP_NS = "urn:oasis:names:tc:SAML:2.0:protocol"

AUTHN_REQUEST = """<S:Envelope xmlns:S="http://schemas.xmlsoap.org/soap/envelope/">
<S:Body>
<samlp:AuthnRequest xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
    xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion"
    ID="{request_id}" Version="2.0" IssueInstant="{issue_instant}"
    AssertionConsumerServiceURL="{acs_url}"
    ProtocolBinding="urn:oasis:names:tc:SAML:2.0:bindings:PAOS">
<saml:Issuer>{issuer}</saml:Issuer>
<samlp:NameIDPolicy AllowCreate="1"/>
</samlp:AuthnRequest>
</S:Body>
</S:Envelope>"""


def build_authn_request(issuer, now=None):
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return AUTHN_REQUEST.format(
        request_id=f"_{uuid.uuid4().hex}",
        issue_instant=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        acs_url=ACS_URL,
        issuer=issuer,
    )


class ShibbolethECP(Provider):
    name = "ShibbolethECP"

    def authenticate(self, login_details):
        login_details.validate()
        try:
            return self._run(login_details)
        except AuthenticationError:
            self.state = ERROR
            raise

    def duo_headers(self, login_details):
        factor = self.idp_account.mfa or "auto"
        headers = {"X-Shibboleth-Duo-Factor": factor}
        if factor == "passcode":
            passcode = login_details.mfa_token or self.prompter.string("Enter Duo passcode")
            headers["X-Shibboleth-Duo-Passcode"] = passcode
        return headers

    def _run(self, login_details):
        self.state = SUBMIT_CREDENTIALS
        headers = {"Content-Type": "text/xml; charset=utf-8", "Accept": "text/xml"}
        headers.update(self.duo_headers(login_details))
        if self.idp_account.mfa in ("push", "phone"):
            print("Waiting for Duo approval, please check your device...", flush=True)

        response = self.client.post(
            login_details.url,
            data=build_authn_request(self.idp_account.alibabacloud_urn),
            headers=headers,
            auth=HTTPBasicAuth(login_details.username, login_details.password),
        )
        if response.status_code == 401:
            raise self.fail(AuthenticationFailed, "invalid username, password or MFA")
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"ECP request failed: HTTP {response.status_code}")

        self.state = EXTRACT_ASSERTION
        assertion = self.extract_assertion(response.content)
        self.state = DONE
        return assertion

    def extract_assertion(self, content):
        try:
            envelope = ET.fromstring(content)
        except ET.ParseError as exc:
            raise self.fail(AssertionNotFound, f"ECP response is not SOAP: {exc}")

        saml_response = envelope.find(f"{{{SOAP_NS}}}Body/{{{SAMLP_NS}}}Response")
        if saml_response is None:
            raise self.fail(AssertionNotFound, "no SAML Response in ECP SOAP body")
        log.debug("Extracted SAML Response from ECP envelope")
        return base64.b64encode(ET.tostring(saml_response)).decode("ascii")
