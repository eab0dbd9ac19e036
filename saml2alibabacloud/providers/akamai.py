"""Akamai Enterprise Application Access."""

from saml2alibabacloud.providers.base import FormProvider

# MFA identifier -> value of the factor input on the challenge page
FACTORS = {
    "DUO": "duo",
    "SMS": "sms",
    "EMAIL": "email",
    "TOTP": "totp",
}


class Akamai(FormProvider):
    name = "Akamai"

    username_field = "username"
    password_field = "password"
    error_selector = ".error-message, #login-error"
    otp_field = "otp"
    otp_error_selector = ".error-message"

    def credential_fields(self, form, login_details):
        fields = super().credential_fields(form, login_details)
        factor = FACTORS.get(self.idp_account.mfa)
        if factor:
            fields["factor"] = factor
        return fields
