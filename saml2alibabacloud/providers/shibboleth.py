"""Shibboleth IdP v3+ login form."""

from saml2alibabacloud.providers.base import FormProvider


class Shibboleth(FormProvider):
    name = "Shibboleth"

    username_field = "j_username"
    password_field = "j_password"
    extra_fields = {"_eventId_proceed": ""}
    error_selector = "p.form-error, section.output--failure"
    otp_field = "j_tokenNumber"
    otp_label = "Enter token code"
