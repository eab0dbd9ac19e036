"""F5 BIG-IP Access Policy Manager acting as SAML IdP."""

from urllib.parse import quote, urlparse

from saml2alibabacloud.errors import AuthenticationFailed
from saml2alibabacloud.page import extract_saml_response
from saml2alibabacloud.providers.base import FormProvider


class F5APM(FormProvider):
    """APM logon page, then the IdP initiated SAML resource ``resource_id``.

    A successful APM logon lands on the webtop rather than on a page with a
    SAMLResponse, so the resource is requested explicitly afterwards.
    """

    name = "F5APM"

    login_form_selector = "#auth_form"
    username_field = "username"
    password_field = "password"
    extra_fields = {"vhost": "standard"}
    error_selector = ".logon_page_error, #errormessage"
    otp_field = "_F5_challenge"
    otp_label = "Enter token code"

    def resource_url(self):
        parsed = urlparse(self.idp_account.url)
        resource = quote(self.idp_account.resource_id, safe="/")
        return f"{parsed.scheme}://{parsed.netloc}/saml/idp/res?id={resource}"

    def submit_credentials(self, form, login_details):
        response = self.client.post(form.action, data=self.credential_fields(form, login_details))
        if response.status_code >= 400 or self.login_rejected(response):
            raise self.fail(AuthenticationFailed, "invalid username or password")
        return response

    def extract_assertion(self, response):
        if not extract_saml_response(response.text):
            response = self.client.get(self.resource_url())
        return super().extract_assertion(response)
