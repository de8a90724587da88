"""Shared fixtures for the smart forwarding tests."""
import pytest

from smart_forward.errors import TransportError


class FakeGenerator:
    """Scripted text generator: returns or raises each item in turn."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []
        self.stopped = False

    def generate(self, prompt):
        self.prompts.append(prompt)
        if not self.responses:
            raise TransportError("no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def stop(self):
        self.stopped = True


class FailingGenerator:
    """Generator whose model is never reachable."""

    def __init__(self):
        self.calls = 0

    def generate(self, prompt):
        self.calls += 1
        raise TransportError("connection refused")

    def stop(self):
        pass


@pytest.fixture
def sleeps():
    """Records backoff sleeps instead of sleeping."""
    return []


@pytest.fixture
def no_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def meeting_email():
    return "Subject: Meeting\nFrom: alice@x.com\nContent: Please review the budget by Friday, urgent."


@pytest.fixture
def long_report():
    return (
        "The quarterly project report is attached for your review. "
        "Our team completed the migration of the billing service ahead of schedule. "
        "Customer complaints about invoice errors dropped by forty percent this quarter. "
        "We still need approval for the additional server budget before the deadline next week. "
        "The marketing group will share their campaign results in a separate update. "
        "Please confirm whether the budget meeting can move to Thursday afternoon. "
        "Thanks again for all the support on this project."
    )
