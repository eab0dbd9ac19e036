"""Exception hierarchy for saml2alibabacloud.

Configuration problems are raised before any network call, authentication
problems during a provider flow, and assertion problems once a SAMLResponse
has been captured. The CLI maps all of them to an exit status of 1.
"""


class Saml2AlibabaCloudError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(Saml2AlibabaCloudError):
    """The IdP account configuration cannot be used."""


class UnknownProvider(ConfigurationError):
    def __init__(self, provider):
        super().__init__(f"invalid provider: {provider}")
        self.provider = provider


class UnsupportedMFA(ConfigurationError):
    def __init__(self, provider, mfa):
        super().__init__(f"invalid MFA type: {mfa} for {provider} provider")
        self.provider = provider
        self.mfa = mfa


class ValidationError(ConfigurationError):
    """A required field is missing or invalid.

    ``field`` names the offending IDPAccount / LoginDetails attribute.
    """

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthenticationError(Saml2AlibabaCloudError):
    """The IdP flow did not produce an assertion.

    Carries the provider name and the flow state that was reached so the
    failure can be diagnosed without re-running the flow.
    """

    def __init__(self, message, provider=None, state=None):
        super().__init__(message)
        self.provider = provider
        self.state = state

    def __str__(self):
        message = super().__str__()
        if self.provider and self.state:
            return f"{message} (provider={self.provider}, state={self.state})"
        return message


class LoginPageParseError(AuthenticationError):
    """The login page did not contain the expected form."""


class AuthenticationFailed(AuthenticationError):
    """The IdP rejected the credentials."""


class MFARejected(AuthenticationError):
    """The one-time code was rejected too many times."""


class MFATimeout(AuthenticationError):
    """The push notification was not approved in time."""


class MFADenied(AuthenticationError):
    """The push notification was denied."""


class AssertionNotFound(AuthenticationError):
    """The final page did not carry a SAMLResponse."""


# ---------------------------------------------------------------------------
# Transport, assertion, authorization
# ---------------------------------------------------------------------------


class TransportError(Saml2AlibabaCloudError):
    """A network error persisted after the retry budget was spent."""


class SAMLAssertionError(Saml2AlibabaCloudError):
    """The SAMLResponse was captured but cannot be read."""


class InvalidEncoding(SAMLAssertionError):
    pass


class MalformedAssertion(SAMLAssertionError):
    pass


class MalformedRoleAttribute(SAMLAssertionError):
    def __init__(self, value):
        super().__init__(f"role attribute value is not a principal/role pair: {value!r}")
        self.value = value


class AuthorizationError(Saml2AlibabaCloudError):
    """Authenticated, but no usable role."""


class NoRolesAvailable(AuthorizationError):
    def __init__(self, message="no RAM roles found in SAML assertion"):
        super().__init__(message)


class SelectionFailed(Saml2AlibabaCloudError):
    pass


class PromptCancelled(Saml2AlibabaCloudError):
    pass


class STSError(Saml2AlibabaCloudError):
    """AssumeRoleWithSAML returned an error."""
