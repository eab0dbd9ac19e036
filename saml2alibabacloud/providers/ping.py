"""PingFederate and PingOne, with PingID detected from the response."""

from saml2alibabacloud.providers.base import FormProvider


class Ping(FormProvider):
    name = "Ping"

    username_field = "pf.username"
    password_field = "pf.pass"
    extra_fields = {"pf.ok": "clicked", "pf.cancel": ""}
    error_selector = ".ping-error, #error-msg"
    otp_field = "otp"
    otp_error_selector = ".ping-error, .error-message"
    otp_label = "Enter PingID passcode"


class PingOne(Ping):
    name = "PingOne"
