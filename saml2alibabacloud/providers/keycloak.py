"""KeyCloak login form with optional OTP."""

from saml2alibabacloud.providers.base import FormProvider


class KeyCloak(FormProvider):
    name = "KeyCloak"

    login_form_selector = "#kc-form-login"
    username_field = "username"
    password_field = "password"
    error_selector = "#input-error, span.kc-feedback-text, .alert-error"
    otp_field = "otp"
    otp_error_selector = "#input-error-otp-code, .alert-error"
    otp_label = "Enter verification code"
