"""SAML assertion decoding.

Turns the base64 SAMLResponse captured from the IdP into Alibaba Cloud
accounts and RAM roles.
"""

import base64
import binascii
import logging
import xml.etree.ElementTree as ET

from saml2alibabacloud.errors import (
    InvalidEncoding,
    MalformedAssertion,
    MalformedRoleAttribute,
)

log = logging.getLogger(__name__)

SAML_ASSERTION_NS = "{urn:oasis:names:tc:SAML:2.0:assertion}"
SAML_ROLE_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/Role"
SAML_ACCOUNT_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/AccountName"
SAML_SESSION_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/SessionDuration"

DEFAULT_ACCOUNT_NAME = "default"


class RamRole:
    """A RAM role the assertion lets the user assume."""

    def __init__(self, name, role_arn, principal_arn):
        self.name = name
        self.role_arn = role_arn
        self.principal_arn = principal_arn

    def __eq__(self, other):
        if not isinstance(other, RamRole):
            return NotImplemented
        return (self.role_arn, self.principal_arn) == (other.role_arn, other.principal_arn)

    def __hash__(self):
        return hash((self.role_arn, self.principal_arn))

    def __repr__(self):
        return f"RamRole(name={self.name!r}, role_arn={self.role_arn!r})"


class AlibabaCloudAccount:
    """A named group of RAM roles."""

    def __init__(self, name, roles=None):
        self.name = name
        self.roles = list(roles or [])

    def __repr__(self):
        return f"AlibabaCloudAccount(name={self.name!r}, roles={self.roles!r})"


def _parse_xml(saml_assertion):
    try:
        # some IdPs wrap the value over several lines
        raw = base64.b64decode("".join(saml_assertion.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncoding(f"SAML assertion is not valid base64: {exc}") from exc

    try:
        return ET.fromstring(raw)
    except ET.ParseError as exc:
        raise MalformedAssertion(f"SAML assertion is not well-formed XML: {exc}") from exc


def _attribute_values(root, name):
    values = []
    for attr in root.iter(f"{SAML_ASSERTION_NS}Attribute"):
        if attr.get("Name", "") != name:
            continue
        for value_el in attr.iter(f"{SAML_ASSERTION_NS}AttributeValue"):
            text = (value_el.text or "").strip()
            if text:
                values.append(text)
    return values


def parse_role_value(text):
    """Parse a single Role attribute value into a RamRole.

    The value is a comma separated pair of ARNs, normally
    ``principalArn,roleArn``. A part naming a ``saml-provider`` is always
    taken as the principal, so the reverse order is accepted too.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2 or not all(parts):
        raise MalformedRoleAttribute(text)

    if "saml-provider" in parts[1] and "saml-provider" not in parts[0]:
        role_arn, principal_arn = parts
    else:
        principal_arn, role_arn = parts

    name = role_arn.rsplit("/", 1)[-1] if "/" in role_arn else role_arn.rsplit(":", 1)[-1]
    return RamRole(name, role_arn, principal_arn)


def account_uid(role_arn):
    """Return the account UID of ``acs:ram::<uid>:role/<name>``, or None."""
    parts = role_arn.split(":")
    if len(parts) >= 5 and parts[0] == "acs" and parts[3]:
        return parts[3]
    return None


def _group_roles_by_account(roles):
    """Return {uid: [role, ...], ...} preserving insertion order."""
    groups = {}
    for role in roles:
        groups.setdefault(account_uid(role.role_arn), []).append(role)
    return groups


def decode_assertion(saml_assertion):
    """Decode and parse the SAML assertion.

    Returns a list of AlibabaCloudAccount, one per account UID found in the
    role ARNs. The AccountName attribute names the account when all roles
    belong to a single one; otherwise the UID is part of the name. The list
    is empty when the assertion carries no role attribute: the login worked,
    but the user may not assume any role.
    """
    root = _parse_xml(saml_assertion)

    roles = []
    for text in _attribute_values(root, SAML_ROLE_ATTRIBUTE):
        role = parse_role_value(text)
        if role.role_arn not in [r.role_arn for r in roles]:
            roles.append(role)

    if not roles:
        log.info("SAML assertion carries no %s attribute", SAML_ROLE_ATTRIBUTE)
        return []

    account_names = _attribute_values(root, SAML_ACCOUNT_ATTRIBUTE)
    account_name = account_names[0] if account_names else None
    groups = _group_roles_by_account(roles)

    accounts = []
    for uid, group in groups.items():
        if account_name and len(groups) == 1:
            name = account_name
        elif account_name and uid:
            name = f"{account_name} ({uid})"
        else:
            name = uid or account_name or DEFAULT_ACCOUNT_NAME
        accounts.append(AlibabaCloudAccount(name, group))
    return accounts


def parse_session_duration(saml_assertion, default=None):
    """Return the SessionDuration attribute in seconds, or *default*."""
    root = _parse_xml(saml_assertion)
    for text in _attribute_values(root, SAML_SESSION_ATTRIBUTE):
        try:
            return int(text)
        except ValueError:
            log.warning("Ignoring invalid SessionDuration %r", text)
    return default
