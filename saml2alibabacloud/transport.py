"""HTTP session used by the provider flows.

One ``HTTPClient`` belongs to one provider flow: its ``requests.Session``
holds the cookie jar for the whole login so anti-forgery cookies set on the
login page accompany the credential POST.
"""

import logging
import time

import requests

from saml2alibabacloud.errors import TransportError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds per request
DEFAULT_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1  # seconds, doubled after every failed attempt
USER_AGENT = "saml2alibabacloud/1.0"

RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


class HTTPClient:
    """``requests.Session`` wrapper with bounded retry of network errors.

    Only connection errors and timeouts are retried. HTTP error statuses are
    returned to the caller, which knows what they mean for its IdP.
    """

    def __init__(self, timeout=None, attempts=None, retry_delay=None,
                 verify=True, session=None, sleep=time.sleep):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.session.verify = verify
        self.timeout = timeout or DEFAULT_TIMEOUT
        self.attempts = max(1, attempts or DEFAULT_ATTEMPTS)
        self.retry_delay = DEFAULT_RETRY_DELAY if retry_delay is None else retry_delay
        self._sleep = sleep

    @classmethod
    def for_account(cls, idp_account, **kwargs):
        """Build a client from the IdP account HTTP settings."""
        return cls(
            timeout=idp_account.timeout or None,
            attempts=idp_account.http_attempts_count or None,
            retry_delay=idp_account.http_retry_delay or None,
            verify=not idp_account.skip_verify,
            **kwargs,
        )

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("allow_redirects", True)

        delay = self.retry_delay
        for attempt in range(1, self.attempts + 1):
            try:
                response = self.session.request(method, url, **kwargs)
            except RETRYABLE_ERRORS as exc:
                if attempt == self.attempts:
                    raise TransportError(
                        f"{method} {url} failed after {attempt} attempts: {exc}"
                    ) from exc
                log.info("%s %s failed (%s), retrying in %ss", method, url, exc, delay)
                self._sleep(delay)
                delay *= 2
                continue

            log.debug("%s %s -> %s %s", method, url, response.status_code, response.url)
            if response.history:
                log.debug("Redirect chain: %s", [r.url for r in response.history])
            return response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)
