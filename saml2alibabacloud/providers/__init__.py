"""IdP specific login flows."""

from saml2alibabacloud.providers.aad import AzureAD
from saml2alibabacloud.providers.adfs import ADFS, ADFS2
from saml2alibabacloud.providers.akamai import Akamai
from saml2alibabacloud.providers.browser import Browser
from saml2alibabacloud.providers.custom import Custom
from saml2alibabacloud.providers.f5apm import F5APM
from saml2alibabacloud.providers.googleapps import GoogleApps
from saml2alibabacloud.providers.jumpcloud import JumpCloud
from saml2alibabacloud.providers.keycloak import KeyCloak
from saml2alibabacloud.providers.netiq import NetIQ
from saml2alibabacloud.providers.okta import Okta
from saml2alibabacloud.providers.onelogin import OneLogin
from saml2alibabacloud.providers.ping import Ping, PingOne
from saml2alibabacloud.providers.shell import Shell
from saml2alibabacloud.providers.shibboleth import Shibboleth
from saml2alibabacloud.providers.shibbolethecp import ShibbolethECP

PROVIDERS = {
    cls.name: cls
    for cls in (
        AzureAD, ADFS, ADFS2, Ping, PingOne, JumpCloud, Okta, OneLogin,
        KeyCloak, GoogleApps, Shibboleth, F5APM, Akamai, ShibbolethECP,
        NetIQ, Custom, Browser, Shell,
    )
}
