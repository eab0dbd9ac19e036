"""Exchange the SAML assertion for temporary credentials.

AssumeRoleWithSAML is an anonymous STS call: the assertion is the proof of
identity, no access key is needed.
"""

import datetime
import logging
import uuid

import requests

from saml2alibabacloud.errors import STSError, TransportError

log = logging.getLogger(__name__)

STS_ENDPOINT = "https://sts.aliyuncs.com"
STS_VERSION = "2015-04-01"
MAX_SESSION_DURATION = 43200  # STS max is 12 h
MIN_SESSION_DURATION = 900


def sts_endpoint(region=None):
    if region:
        return f"https://sts.{region}.aliyuncs.com"
    return STS_ENDPOINT


def assume_role_with_saml(role, saml_assertion, session_duration, region=None,
                          session=None, timeout=30):
    """Call STS AssumeRoleWithSAML and return the Credentials dict.

    The dict has AccessKeyId, AccessKeySecret, SecurityToken and Expiration
    (an ISO 8601 UTC string).
    """
    duration = max(MIN_SESSION_DURATION, min(session_duration, MAX_SESSION_DURATION))
    params = {
        "Action": "AssumeRoleWithSAML",
        "Version": STS_VERSION,
        "Format": "JSON",
        "Timestamp": datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "SignatureNonce": uuid.uuid4().hex,
        "RoleArn": role.role_arn,
        "SAMLProviderArn": role.principal_arn,
        "SAMLAssertion": saml_assertion,
        "DurationSeconds": str(duration),
    }
    http = session or requests
    url = sts_endpoint(region)
    log.info("AssumeRoleWithSAML %s via %s", role.role_arn, url)
    try:
        response = http.post(url, data=params, timeout=timeout)
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise TransportError(f"unable to reach {url}: {exc}") from exc

    try:
        body = response.json()
    except ValueError:
        body = {}
    if response.status_code >= 400 or "Credentials" not in body:
        code = body.get("Code", f"HTTP {response.status_code}")
        message = body.get("Message", response.text[:200])
        raise STSError(f"AssumeRoleWithSAML failed: {code}: {message}")
    return body["Credentials"]
