import base64

from saml2alibabacloud.errors import PromptCancelled

ROLE_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/Role"
ACCOUNT_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/AccountName"
SESSION_ATTRIBUTE = "https://www.aliyun.com/SAML-Role/Attributes/SessionDuration"


def _attribute(name, values):
    rendered = "".join(f"<saml:AttributeValue>{v}</saml:AttributeValue>" for v in values)
    return f'<saml:Attribute Name="{name}">{rendered}</saml:Attribute>'


def create_assertion(roles=(), account_name=None, session_duration=None):
    """Return a base64 SAML response carrying the given role attribute values."""
    attributes = []
    if roles:
        attributes.append(_attribute(ROLE_ATTRIBUTE, roles))
    if account_name is not None:
        attributes.append(_attribute(ACCOUNT_ATTRIBUTE, [account_name]))
    if session_duration is not None:
        attributes.append(_attribute(SESSION_ATTRIBUTE, [session_duration]))

    xml = (
        '<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol" '
        'xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">'
        "<saml:Assertion><saml:AttributeStatement>"
        f"{''.join(attributes)}"
        "</saml:AttributeStatement></saml:Assertion></samlp:Response>"
    )
    return base64.b64encode(xml.encode("utf-8")).decode("ascii")


class ScriptedPrompter:
    """Prompter answering from a list and recording what was asked."""

    def __init__(self, answers=None, choose=None, cancel=False):
        self.answers = list(answers or [])
        self.choose = choose
        self.cancel = cancel
        self.asked = []
        self.choices = []

    def choose_with_default(self, prompt, default, options):
        self.choices.append((prompt, default, list(options)))
        if self.cancel:
            raise PromptCancelled("prompt cancelled")
        if self.choose is not None:
            return self.choose(prompt, default, options)
        return default

    def string(self, prompt, default=""):
        self.asked.append(prompt)
        if self.cancel:
            raise PromptCancelled("prompt cancelled")
        return self.answers.pop(0) if self.answers else default

    def password(self, prompt):
        self.asked.append(prompt)
        return self.answers.pop(0) if self.answers else ""
