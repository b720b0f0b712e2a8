"""Structured errors with stable codes and a uniform serialization contract."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel

from squid_error.models import (
    SerializedNativeError,
    SerializedSquidError,
    SerializedSquidHttpError,
    SquidErrorSettings,
    SquidHttpErrorSettings,
    SystemErrorInfo,
    native_error_code,
)
from squid_error.stack import capture_stack, exception_stack, get_full_error_stack

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "An error occurred and no error message was set."
ERROR_CODE_NOT_SET = "ERROR_CODE_NOT_SET"
DEFAULT_HTTP_STATUS_CODE = 500

SettingsInput = Union[SquidErrorSettings, Mapping[str, Any], None]


def _native_message(error: Any) -> Optional[str]:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or None


def serialize_native_error(error: Any) -> SerializedNativeError:
    """
    Normalize a platform error into the record shape this package understands.

    ``message``, ``name`` and ``code`` are always present (``code`` may be
    None). ``stack`` holds the full cause-chain stack and is only present when
    the error carries a stack. System fields are only present when truthy.
    """
    record: SerializedNativeError = {
        "message": _native_message(error) or "",
        "name": type(error).__name__,
        "code": native_error_code(error),
    }
    if exception_stack(error):
        record["stack"] = get_full_error_stack(error)
    record.update(SystemErrorInfo.from_error(error).present())
    return record


class SquidError(Exception):
    """
    Base structured error.

    Wraps an optional platform error, keeping a frozen snapshot of it in
    ``native_error`` and copying its system-call fields onto the instance.
    Only ``detail`` and ``skip_log`` may change after construction, through
    the chainable setters.
    """

    kind: ClassVar[str] = "SquidError"
    settings_model: ClassVar[Type[SquidErrorSettings]] = SquidErrorSettings

    signal: Any = None
    address: Any = None
    dest: Any = None
    errno: Any = None
    info: Any = None
    path: Any = None
    port: Any = None
    syscall: Any = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "kind" not in cls.__dict__:
            cls.kind = cls.__name__

    def __init__(
        self,
        settings: SettingsInput = None,
        native_error: Optional[BaseException] = None,
        capture_context: Optional[Callable[..., Any]] = None,
    ) -> None:
        parsed = self._parse_settings(settings)
        has_native = native_error is not None

        message = parsed.message or (_native_message(native_error) if has_native else None) or DEFAULT_MESSAGE
        super().__init__(message)
        self.message = message

        self._native_error: Optional[Dict[str, Any]] = dict(serialize_native_error(native_error)) if has_native else None

        provided_stack = parsed.stack or (exception_stack(native_error) if has_native else None)
        if provided_stack:
            self.stack = provided_stack
        else:
            self.stack = capture_stack(f"{type(self).__name__}: {message}", capture_context or type(self).__init__)

        self.code = parsed.code or (native_error_code(native_error) if has_native else None) or ERROR_CODE_NOT_SET
        self.detail: Dict[str, Any] = parsed.detail or {}
        self.id = parsed.id or 0
        self.time_stamp = parsed.time_stamp or datetime.now(timezone.utc)
        self.skip_log = parsed.skip_log or False

        self._is_squid_error = True
        if has_native:
            for name, value in SystemErrorInfo.from_error(native_error).present().items():
                setattr(self, name, value)

    @classmethod
    def _parse_settings(cls, settings: SettingsInput) -> SquidErrorSettings:
        if settings is None:
            return cls.settings_model()
        if isinstance(settings, BaseModel) and not isinstance(settings, cls.settings_model):
            settings = settings.model_dump(exclude_unset=True)
        return cls.settings_model.model_validate(settings)

    def __reduce__(self) -> Any:
        # Rebuild from message and stack, then restore every attribute as-is.
        return (type(self), ({"message": self.message, "stack": self.stack},), self.__dict__)

    @property
    def native_error(self) -> Optional[Mapping[str, Any]]:
        if self._native_error is None:
            return None
        return MappingProxyType(self._native_error)

    @property
    def is_squid_error(self) -> bool:
        return self._is_squid_error

    def set_detail(self, detail: Optional[Dict[str, Any]]) -> "SquidError":
        self.detail = detail or {}
        return self

    def set_skip_log(self, skip_log: bool) -> "SquidError":
        self.skip_log = skip_log
        return self

    def serialize(self) -> SerializedSquidError:
        return {
            **serialize_native_error(self),
            "id": self.id,
            "detail": dict(self.detail),
            "timeStamp": self.time_stamp.isoformat(),
        }

    get_full_error_stack = staticmethod(get_full_error_stack)
    serialize_native_error = staticmethod(serialize_native_error)

    @staticmethod
    def serialize_error(error: Any) -> Any:
        """
        Serialize any caught value.

        Values with a ``serialize()`` method delegate to it, Python exceptions
        are normalized, anything else is returned unchanged.
        """
        serialize = getattr(error, "serialize", None)
        if callable(serialize):
            return serialize()
        if isinstance(error, BaseException):
            return serialize_native_error(error)
        return error

    @staticmethod
    def is_squid(error: Any) -> bool:
        return getattr(error, "is_squid_error", False) is True

    @classmethod
    def exact_instance_of(cls, error: Any) -> bool:
        """
        True when ``error`` is exactly this class, or carries the marker and this
        class's ``kind`` (a copy of the class loaded from another module instance).
        """
        if error is None:
            return False
        if type(error) is cls:
            return True
        return cls.is_squid(error) and getattr(type(error), "kind", None) == cls.kind

    @classmethod
    def create(cls, settings: SettingsInput = None, native_error: Any = None) -> "SquidError":
        """Build an instance, discarding ``native_error`` unless it is an exception."""
        validated = native_error if isinstance(native_error, BaseException) else None
        return cls(settings, validated, cls.create)

    @classmethod
    def convert(cls, error: Any, only_convert_non_squid_errors: bool = False) -> Any:
        if only_convert_non_squid_errors:
            keep = cls.is_squid(error)
        else:
            keep = cls.exact_instance_of(error)
        if keep:
            return error
        logger.debug("Wrapping %s into %s", type(error).__name__, cls.__name__)
        return cls.create(None, error)


class SquidHttpError(SquidError):
    """Structured error carrying an HTTP status code (500 unless set)."""

    kind: ClassVar[str] = "SquidHttpError"
    settings_model: ClassVar[Type[SquidErrorSettings]] = SquidHttpErrorSettings

    def __init__(
        self,
        settings: SettingsInput = None,
        native_error: Optional[BaseException] = None,
        capture_context: Optional[Callable[..., Any]] = None,
    ) -> None:
        parsed = self._parse_settings(settings)
        super().__init__(parsed, native_error, capture_context)
        self.http_status_code: int = getattr(parsed, "http_status_code", None) or DEFAULT_HTTP_STATUS_CODE

    def serialize(self) -> SerializedSquidHttpError:
        return {
            **super().serialize(),
            "httpStatusCode": self.http_status_code,
        }

    def set_http_status_code(self, status: int) -> "SquidHttpError":
        self.http_status_code = status
        return self
