"""Google Workspace (G Suite) SAML app."""

from saml2alibabacloud.providers.base import FormProvider


class GoogleApps(FormProvider):
    name = "GoogleApps"

    login_form_selector = "#gaia_loginform"
    username_field = "Email"
    password_field = "Passwd"
    error_selector = "#errormsg_0_Passwd, .error-msg"
    otp_field = "Pin"
    otp_label = "Enter the verification code from your authenticator app"
