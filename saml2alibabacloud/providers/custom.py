from saml2alibabacloud.providers.base import FormProvider


class Custom(FormProvider):
    """Any IdP with a plain username/password form and an ``otp`` field."""

    name = "Custom"
    otp_field = "otp"
