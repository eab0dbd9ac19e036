"""Log in to Alibaba Cloud through a SAML Identity Provider."""

__version__ = "1.0.0"
