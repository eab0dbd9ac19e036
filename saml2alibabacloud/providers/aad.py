"""Azure Active Directory (Entra ID) enterprise application."""

from urllib.parse import urlencode

from saml2alibabacloud.providers.base import FormProvider

LINKED_SIGN_IN_PATH = "/applications/redirecttofederatedapplication.aspx"


class AzureAD(FormProvider):
    name = "AzureAD"

    username_field = "login"
    password_field = "passwd"
    error_selector = "#passwordError, #usernameError"
    otp_field = "otc"
    otp_label = "Enter verification code"

    def login_url(self, login_details):
        url = login_details.url
        if "applicationId=" in url:
            return url
        query = urlencode({"Operation": "LinkedSignIn", "applicationId": self.idp_account.app_id})
        return f"{url.rstrip('/')}{LINKED_SIGN_IN_PATH}?{query}"
