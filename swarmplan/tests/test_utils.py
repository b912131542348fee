import pytest

from swarmplan.utils import RetryError, redact_sensitive_data, retry


def test_redact_nested():
    data = {"step": "join", "token": {"worker": "abc"}, "nodes": [{"api_key": "x", "name": "n"}]}
    assert redact_sensitive_data(data) == {
        "step": "join",
        "token": "[REDACTED]",
        "nodes": [{"api_key": "[REDACTED]", "name": "n"}],
    }


def test_retry_succeeds_after_failures():
    calls = []
    waits = []

    @retry(max_retries=3, delay=0.5, exceptions=(RuntimeError,), sleep=waits.append)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise RuntimeError("boom")
        return "ok"

    assert flaky() == "ok"
    assert waits == [0.5, 1.0]


def test_retry_gives_up():
    @retry(max_retries=1, delay=0, exceptions=(RuntimeError,), sleep=lambda s: None)
    def broken():
        raise RuntimeError("still down")

    with pytest.raises(RetryError) as excinfo:
        broken()
    assert excinfo.value.attempts == 2
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_retry_does_not_catch_other_errors():
    @retry(max_retries=3, delay=0, exceptions=(RuntimeError,), sleep=lambda s: None)
    def wrong():
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        wrong()
