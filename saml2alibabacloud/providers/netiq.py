"""NetIQ Access Manager."""

from saml2alibabacloud.providers.base import FormProvider

PRIVILEGED_CONTRACT = "privileged"


class NetIQ(FormProvider):
    """NetIQ login form.

    The ``Privileged`` MFA selects the privileged authentication contract,
    which asks for a token code after the password.
    """

    name = "NetIQ"

    login_form_selector = "form[name=IDPLogin]"
    username_field = "Ecom_User_ID"
    password_field = "Ecom_Password"
    extra_fields = {"option": "credential"}
    error_selector = "#errorMessage, .instructions.error"
    otp_field = "nffc"
    otp_label = "Enter token code"

    def credential_fields(self, form, login_details):
        fields = super().credential_fields(form, login_details)
        if self.idp_account.mfa == "Privileged":
            fields["contract"] = PRIVILEGED_CONTRACT
        return fields
