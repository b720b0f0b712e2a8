import logging

from squid_error.config import reset_settings
from squid_error.stack import capture_stack, get_full_error_stack


class VerrorStyle(Exception):
    """Error exposing its cause through a zero-argument accessor."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self._cause = cause

    def cause(self):
        return self._cause


def _outer_caller(summary="Summary: x"):
    return _anchored_capture(summary)


def _anchored_capture(summary):
    return capture_stack(summary, _anchored_capture)


def test_plain_error_uses_string_form():
    assert get_full_error_stack(ValueError("plain")) == "ValueError: plain"


def test_non_error_value_uses_str():
    assert get_full_error_stack("just text") == "just text"


def test_cause_chain_of_depth_three_in_order():
    error = VerrorStyle("a", VerrorStyle("b", VerrorStyle("c", VerrorStyle("d"))))
    stack = get_full_error_stack(error)
    assert stack.count("\nCaused by: ") == 3
    positions = [stack.index(f"VerrorStyle: {name}") for name in "abcd"]
    assert positions == sorted(positions)


def test_falsy_cause_ends_chain():
    assert "Caused by" not in get_full_error_stack(VerrorStyle("alone"))


def test_follows_python_cause_chain():
    try:
        try:
            raise KeyError("inner")
        except KeyError as exc:
            raise RuntimeError("outer") from exc
    except RuntimeError as caught:
        outer = caught

    stack = get_full_error_stack(outer)
    assert stack.index("RuntimeError: outer") < stack.index("Caused by:") < stack.index("KeyError: 'inner'")
    assert stack.count("Caused by:") == 1


def test_cyclic_chain_is_truncated(monkeypatch, caplog):
    monkeypatch.setenv("SQUID_ERROR_MAX_CAUSE_DEPTH", "4")
    reset_settings()
    first = VerrorStyle("first")
    second = VerrorStyle("second", first)
    first._cause = second

    with caplog.at_level(logging.WARNING, logger="squid_error.stack"):
        stack = get_full_error_stack(first)

    assert stack.count("\nCaused by: ") == 5
    assert stack.endswith("[cause chain truncated after 4 levels]")
    assert "truncated after 4 levels" in caplog.text


def test_capture_stack_skips_context_frame():
    stack = _outer_caller()
    assert stack.startswith("Traceback (most recent call last):\n")
    assert stack.endswith("Summary: x")
    assert "in _outer_caller" in stack
    assert "in _anchored_capture" not in stack
    assert "in test_capture_stack_skips_context_frame" in stack


def test_capture_stack_without_context_keeps_caller():
    stack = capture_stack("Summary: y")
    assert "in test_capture_stack_without_context_keeps_caller" in stack


def test_capture_stack_respects_frame_limit(monkeypatch):
    monkeypatch.setenv("SQUID_ERROR_STACK_LIMIT", "1")
    reset_settings()
    stack = _outer_caller()
    assert "in _outer_caller" in stack
    assert "in test_capture_stack_respects_frame_limit" not in stack
