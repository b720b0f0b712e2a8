import logging
import sys
import traceback
from typing import Any, Callable, Optional

from squid_error.config import settings

logger = logging.getLogger(__name__)

TRACEBACK_HEADER = "Traceback (most recent call last):\n"


def _code_of(context: Optional[Callable[..., Any]]) -> Any:
    func = getattr(context, "__func__", context)
    return getattr(func, "__code__", None)


def capture_stack(summary: str, context: Optional[Callable[..., Any]] = None) -> str:
    """
    Format the current call stack, ending with ``summary``.

    When ``context`` is a function currently on the stack, its frame and every
    frame above it are left out, so the trace starts at its caller.
    """
    frame = sys._getframe(1)
    code = _code_of(context)
    if code is not None:
        anchor = frame
        while anchor is not None and anchor.f_code is not code:
            anchor = anchor.f_back
        if anchor is not None:
            frame = anchor.f_back
    lines = traceback.format_stack(f=frame, limit=settings.stack_limit) if frame is not None else []
    return TRACEBACK_HEADER + "".join(lines) + summary


def error_string(error: Any) -> str:
    if isinstance(error, BaseException):
        return "".join(traceback.format_exception_only(type(error), error)).strip()
    return str(error)


def exception_stack(error: Any) -> Optional[str]:
    """Return the stack carried by ``error``, or None when it has none."""
    stack = getattr(error, "stack", None)
    if isinstance(stack, str) and stack:
        return stack
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        # The cause chain is appended separately by get_full_error_stack.
        return "".join(traceback.format_exception(type(error), error, error.__traceback__, chain=False))
    return None


def error_cause(error: Any) -> Any:
    cause = getattr(error, "cause", None)
    if callable(cause):
        return cause()
    return getattr(error, "__cause__", None)


def get_full_error_stack(error: Any) -> str:
    """
    Flatten an error and its cause chain into a single text block.

    Causes come from a zero-argument ``cause()`` accessor (verror style) or
    from Python's ``__cause__``. Each level is appended as ``Caused by:``.
    Chains deeper than ``settings.max_cause_depth`` end with a truncation
    marker, which also stops cyclic chains.
    """
    max_depth = settings.max_cause_depth
    full_stack = exception_stack(error) or error_string(error)
    cause = error_cause(error)
    depth = 0
    while cause:
        if depth >= max_depth:
            logger.warning("Cause chain of %s truncated after %d levels", type(error).__name__, max_depth)
            full_stack += f"\nCaused by: [cause chain truncated after {max_depth} levels]"
            break
        full_stack += f"\nCaused by: {exception_stack(cause) or error_string(cause)}"
        cause = error_cause(cause)
        depth += 1
    return full_stack
