"""Provider flow contract and the shared HTML form state machine.

Every IdP flow turns login details into the base64 SAMLResponse that the IdP
would post to Alibaba Cloud. Most IdPs follow the same shape::

    start -> fetch_login_page -> submit_credentials
          -> mfa_challenge* -> extract_assertion -> done

``FormProvider`` drives that shape; subclasses only declare how their pages
look (selectors, field names, MFA markers) and override a hook where the
IdP needs something special. Any failure moves the flow to ``error`` and is
raised with the provider name and the state reached.
"""

import logging
from urllib.parse import urljoin

from saml2alibabacloud import mfa
from saml2alibabacloud.errors import (
    AssertionNotFound,
    AuthenticationError,
    AuthenticationFailed,
    LoginPageParseError,
    MFATimeout,
)
from saml2alibabacloud.page import (
    Form,
    extract_saml_response,
    find_form,
    find_form_with_field,
    parse_html,
)
from saml2alibabacloud.prompter import ConsolePrompter
from saml2alibabacloud.transport import HTTPClient

log = logging.getLogger(__name__)

START = "start"
FETCH_LOGIN_PAGE = "fetch_login_page"
SUBMIT_CREDENTIALS = "submit_credentials"
MFA_CHALLENGE = "mfa_challenge"
EXTRACT_ASSERTION = "extract_assertion"
DONE = "done"
ERROR = "error"

MAX_MFA_ROUNDS = 5


class Provider:
    """Base class of every IdP flow."""

    name = None

    poll_interval = mfa.PUSH_POLL_INTERVAL
    poll_timeout = mfa.PUSH_POLL_TIMEOUT
    max_polls = mfa.PUSH_MAX_POLLS

    def __init__(self, idp_account, prompter=None, client=None):
        self.idp_account = idp_account
        self.prompter = prompter or ConsolePrompter()
        self.client = client or HTTPClient.for_account(idp_account)
        self.state = START

    def authenticate(self, login_details):
        """Return the base64 SAML assertion for *login_details*."""
        raise NotImplementedError

    def fail(self, error_class, message):
        """Build an AuthenticationError tagged with the current state."""
        state = self.state
        self.state = ERROR
        return error_class(message, self.name, state)


class FormProvider(Provider):
    """HTML form login flow driven by class level declarations.

    login_form_selector
        CSS selector of the login form, or of an element inside it. Defaults
        to the first form holding a password input.
    username_field, password_field
        Names of the credential inputs.
    extra_fields
        Fields added to the credential POST.
    error_selector
        Element whose presence means the credentials were rejected.
    otp_field
        Name of the one-time code input; a form holding it is a code
        challenge.
    push_selector
        Element carrying ``data-poll-url`` (and optionally
        ``data-continue-url``) for push approval.
    """

    login_form_selector = None
    username_field = "username"
    password_field = "password"
    extra_fields = {}
    error_selector = None
    otp_field = None
    otp_error_selector = None
    push_selector = "[data-poll-url]"
    otp_label = "MFA code"

    def authenticate(self, login_details):
        login_details.validate()
        self.state = START
        try:
            return self._run(login_details)
        except AuthenticationError as exc:
            self.state = ERROR
            if exc.provider is None:
                exc.provider = self.name
            raise

    def _run(self, login_details):
        self.state = FETCH_LOGIN_PAGE
        form = self.fetch_login_page(login_details)

        self.state = SUBMIT_CREDENTIALS
        response = self.submit_credentials(form, login_details)

        rounds = 0
        while self.detect_mfa(response):
            rounds += 1
            if rounds > MAX_MFA_ROUNDS:
                raise self.fail(AuthenticationFailed, f"gave up after {MAX_MFA_ROUNDS} MFA challenges")
            self.state = MFA_CHALLENGE
            response = self.handle_mfa(response, login_details)

        self.state = EXTRACT_ASSERTION
        assertion = self.extract_assertion(response)
        self.state = DONE
        return assertion

    # -----------------------------------------------------------------------
    # States
    # -----------------------------------------------------------------------

    def login_url(self, login_details):
        return login_details.url

    def fetch_login_page(self, login_details):
        url = self.login_url(login_details)
        log.debug("Fetching login page %s", url)
        response = self.client.get(url)
        if response.status_code >= 400:
            raise self.fail(LoginPageParseError, f"login page returned HTTP {response.status_code}")

        form = find_form(parse_html(response.text), response.url, self.login_form_selector)
        if form is None:
            raise self.fail(LoginPageParseError, f"no login form found at {response.url}")
        return form

    def credential_fields(self, form, login_details):
        fields = dict(form.fields)
        fields.update(self.extra_fields)
        fields[self.username_field] = login_details.username
        fields[self.password_field] = login_details.password
        return fields

    def submit_credentials(self, form, login_details):
        fields = self.credential_fields(form, login_details)
        log.debug("Submitting credentials to %s", form.action)
        response = self.client.post(form.action, data=fields)

        if response.status_code in (401, 403):
            raise self.fail(AuthenticationFailed, "invalid username or password")
        if response.status_code >= 400:
            raise self.fail(AuthenticationFailed, f"login returned HTTP {response.status_code}")
        if self.login_rejected(response):
            raise self.fail(AuthenticationFailed, "invalid username or password")
        if not self.detect_mfa(response) and not extract_saml_response(response.text):
            raise self.fail(AuthenticationFailed, "login did not lead to an MFA challenge or an assertion")
        return response

    def login_rejected(self, response):
        if not self.error_selector:
            return False
        return parse_html(response.text).select_one(self.error_selector) is not None

    def detect_mfa(self, response):
        """Return the kind of MFA challenge in *response*: "code", "push" or None."""
        if extract_saml_response(response.text):
            return None
        soup = parse_html(response.text)
        if self.push_selector and soup.select_one(self.push_selector) is not None:
            return "push"
        if self.otp_field and soup.find(["input", "select"], {"name": self.otp_field}) is not None:
            return "code"
        return None

    def handle_mfa(self, response, login_details):
        kind = self.detect_mfa(response)
        if kind == "push":
            return self.handle_push(response)
        return self.handle_code(response, login_details)

    def extract_assertion(self, response):
        assertion = extract_saml_response(response.text)
        if not assertion:
            raise self.fail(AssertionNotFound, f"no SAMLResponse found at {response.url}")
        return assertion

    # -----------------------------------------------------------------------
    # MFA
    # -----------------------------------------------------------------------

    def handle_code(self, response, login_details):
        form = find_form_with_field(parse_html(response.text), response.url, self.otp_field)
        if form is None:
            raise self.fail(LoginPageParseError, f"{self.otp_field!r} input is not inside a form at {response.url}")

        def submit(code):
            fields = dict(form.fields)
            fields[self.otp_field] = code
            result = self.client.post(form.action, data=fields)
            return not self.code_rejected(result), result

        return mfa.prompt_for_code(
            self.prompter,
            submit,
            label=self.otp_label,
            provider=self.name,
            first_code=login_details.mfa_token,
        )

    def code_rejected(self, response):
        if response.status_code >= 400:
            return True
        if extract_saml_response(response.text):
            return False
        soup = parse_html(response.text)
        if self.otp_error_selector and soup.select_one(self.otp_error_selector) is not None:
            return True
        return soup.find(["input", "select"], {"name": self.otp_field}) is not None

    def handle_push(self, response):
        soup = parse_html(response.text)
        marker = soup.select_one(self.push_selector)
        poll_url = urljoin(response.url, marker.get("data-poll-url"))
        continue_url = marker.get("data-continue-url")
        continue_form = marker if marker.name == "form" else marker.find_parent("form")

        def check():
            result = self.client.get(poll_url, headers={"Accept": "application/json"})
            if result.status_code >= 400:
                return mfa.TIMEOUT, result
            try:
                status = str(result.json().get("status", "")).lower()
            except ValueError:
                raise self.fail(MFATimeout, "unreadable push status response")
            return status, result

        mfa.poll_push(
            check,
            provider=self.name,
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            max_polls=self.max_polls,
        )

        if continue_url:
            return self.client.get(urljoin(response.url, continue_url))
        if continue_form is not None:
            form = Form.from_tag(continue_form, response.url)
            return self.client.post(form.action, data=form.fields)
        return self.client.get(response.url)
