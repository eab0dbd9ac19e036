"""MFA loops shared by the provider flows.

``poll_push`` waits for a push notification to be approved. It has two
independent bounds: an elapsed-time deadline and a number of polls. Either
one ends the wait with MFATimeout.
"""

import logging
import time

from saml2alibabacloud.errors import MFADenied, MFARejected, MFATimeout

log = logging.getLogger(__name__)

PUSH_POLL_INTERVAL = 3   # seconds between push-approval polls
PUSH_POLL_TIMEOUT = 180  # seconds before giving up on a push
PUSH_MAX_POLLS = 60
MFA_CODE_ATTEMPTS = 3

APPROVED = "approved"
PENDING = "pending"
DENIED = "denied"
TIMEOUT = "timeout"


def poll_push(check, provider=None, interval=PUSH_POLL_INTERVAL,
              timeout=PUSH_POLL_TIMEOUT, max_polls=PUSH_MAX_POLLS,
              clock=time.monotonic, sleep=time.sleep):
    """Call *check* until the push is approved.

    *check* returns ``(status, result)`` where status is one of APPROVED,
    PENDING, DENIED or TIMEOUT. The result of the approving call is returned.
    """
    print("Waiting for approval, please check your device...", flush=True)
    deadline = clock() + timeout
    polls = 0

    while True:
        status, result = check()
        polls += 1

        if status == APPROVED:
            print()
            log.info("Push approved after %d poll(s)", polls)
            return result
        if status == DENIED:
            print()
            raise MFADenied("push notification was rejected", provider, "mfa_challenge")
        if status != PENDING:
            print()
            raise MFATimeout("push notification timed out", provider, "mfa_challenge")

        if polls >= max_polls or clock() >= deadline:
            print()
            raise MFATimeout(
                f"push notification not approved after {polls} poll(s)",
                provider,
                "mfa_challenge",
            )

        print(".", end="", flush=True)
        sleep(interval)


def prompt_for_code(prompter, submit, label="MFA code", provider=None,
                    first_code=None, attempts=MFA_CODE_ATTEMPTS):
    """Prompt for a one-time code until *submit* accepts it.

    *submit* takes the code and returns ``(accepted, result)``. A code
    supplied up front (``--mfa-token``) is used for the first attempt only.
    """
    for attempt in range(attempts):
        if attempt == 0 and first_code:
            code = first_code
        else:
            code = prompter.string(label).strip()
        accepted, result = submit(code)
        if accepted:
            return result
        print("Invalid code, please try again.")
        log.info("%s rejected (attempt %d of %d)", label, attempt + 1, attempts)

    raise MFARejected(f"{label} rejected {attempts} times", provider, "mfa_challenge")
