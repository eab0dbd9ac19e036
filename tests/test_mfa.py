import pytest

from saml2alibabacloud import mfa
from saml2alibabacloud.errors import MFADenied, MFARejected, MFATimeout
from tests import ScriptedPrompter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def _statuses(*statuses):
    remaining = list(statuses)

    def check():
        status = remaining.pop(0)
        return status, f"result-{status}"

    return check


def test_push_approved_after_pending():
    clock = FakeClock()

    result = mfa.poll_push(_statuses(mfa.PENDING, mfa.PENDING, mfa.APPROVED),
                           interval=3, clock=clock, sleep=clock.sleep)

    assert result == "result-approved"
    assert clock.now == 6


def test_push_denied():
    clock = FakeClock()

    with pytest.raises(MFADenied):
        mfa.poll_push(_statuses(mfa.PENDING, mfa.DENIED), clock=clock, sleep=clock.sleep)


def test_push_timeout_status_is_terminal():
    clock = FakeClock()

    with pytest.raises(MFATimeout):
        mfa.poll_push(_statuses(mfa.TIMEOUT), clock=clock, sleep=clock.sleep)


def test_elapsed_time_ends_the_wait_with_polls_left():
    clock = FakeClock()

    with pytest.raises(MFATimeout):
        mfa.poll_push(lambda: (mfa.PENDING, None), interval=10, timeout=25,
                      max_polls=100, clock=clock, sleep=clock.sleep)
    assert clock.now == 30


def test_poll_budget_ends_the_wait_with_time_left():
    clock = FakeClock()
    calls = []

    def check():
        calls.append(1)
        return mfa.PENDING, None

    with pytest.raises(MFATimeout):
        mfa.poll_push(check, interval=1, timeout=1000, max_polls=4, clock=clock, sleep=clock.sleep)
    assert len(calls) == 4


def test_code_accepted_on_second_attempt():
    prompter = ScriptedPrompter(answers=["111111", "222222"])
    submitted = []

    def submit(code):
        submitted.append(code)
        return code == "222222", "page"

    assert mfa.prompt_for_code(prompter, submit) == "page"
    assert submitted == ["111111", "222222"]


def test_code_rejected_after_three_attempts():
    prompter = ScriptedPrompter(answers=["1", "2", "3", "4"])

    with pytest.raises(MFARejected):
        mfa.prompt_for_code(prompter, lambda code: (False, None))
    assert prompter.answers == ["4"]


def test_pre_supplied_code_is_used_first():
    prompter = ScriptedPrompter()

    result = mfa.prompt_for_code(prompter, lambda code: (code == "654321", code), first_code="654321")

    assert result == "654321"
    assert prompter.asked == []
