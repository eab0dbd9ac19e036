"""Active Directory Federation Services (ADFS 3+ and ADFS 2.x)."""

from saml2alibabacloud.page import parse_html
from saml2alibabacloud.providers.base import FormProvider


class ADFS(FormProvider):
    """ADFS forms authentication.

    Symantec VIP asks for a ``security_code``; Azure MFA shows a page that
    polls for the phone approval.
    """

    name = "ADFS"

    login_form_selector = "#loginForm"
    username_field = "UserName"
    password_field = "Password"
    extra_fields = {"AuthMethod": "FormsAuthentication"}
    otp_field = "security_code"
    otp_label = "Enter VIP security code"

    def login_rejected(self, response):
        # the error label is always rendered, only its text tells
        error = parse_html(response.text).select_one("#errorText")
        return error is not None and bool(error.get_text(strip=True))


class ADFS2(FormProvider):
    name = "ADFS2"

    username_field = "ctl00$ContentPlaceHolder1$UsernameTextBox"
    password_field = "ctl00$ContentPlaceHolder1$PasswordTextBox"
    extra_fields = {"ctl00$ContentPlaceHolder1$SubmitButton": "Sign In"}
    error_selector = "#ctl00_ContentPlaceHolder1_ErrorTextLabel"
    otp_field = "ctl00$ContentPlaceHolder1$PasscodeTextBox"
    otp_label = "Enter RSA passcode"
