"""Delegate authentication to an external command.

The command in ``shell_command`` gets the username and password through the
environment and must print the base64 SAMLResponse on stdout. It negotiates
MFA on its own.
"""

import logging
import os
import shlex
import subprocess

from saml2alibabacloud.errors import AssertionNotFound, AuthenticationFailed
from saml2alibabacloud.providers.base import DONE, EXTRACT_ASSERTION, SUBMIT_CREDENTIALS, Provider

log = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 300  # seconds


class Shell(Provider):
    name = "Shell"

    def __init__(self, idp_account, prompter=None, client=None, runner=subprocess.run):
        super().__init__(idp_account, prompter, client)
        self._run_command = runner

    def authenticate(self, login_details):
        login_details.validate()
        env = dict(os.environ)
        env["SAML2ALIBABACLOUD_URL"] = login_details.url
        env["SAML2ALIBABACLOUD_USERNAME"] = login_details.username
        env["SAML2ALIBABACLOUD_PASSWORD"] = login_details.password

        self.state = SUBMIT_CREDENTIALS
        command = shlex.split(self.idp_account.shell_command)
        log.debug("Running %s", command[0] if command else "<empty>")
        try:
            result = self._run_command(
                command,
                env=env,
                stdout=subprocess.PIPE,
                text=True,
                timeout=DEFAULT_COMMAND_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise self.fail(AuthenticationFailed, f"unable to run shell command: {exc}")

        if result.returncode != 0:
            raise self.fail(AuthenticationFailed, f"shell command exited with status {result.returncode}")

        self.state = EXTRACT_ASSERTION
        assertion = (result.stdout or "").strip()
        if not assertion:
            raise self.fail(AssertionNotFound, "shell command printed no SAML assertion")
        self.state = DONE
        return assertion
