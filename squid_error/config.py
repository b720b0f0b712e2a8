import os
from typing import Any, Optional


DEFAULT_MAX_CAUSE_DEPTH = 32


def _read_positive_int(name: str) -> Optional[int]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        # Imported here: errors -> stack -> config is the module-level import chain.
        from squid_error.errors import SquidError

        raise SquidError(
            {
                "code": "CONFIG_INVALID_VALUE",
                "message": f"{name} must be a positive integer, got {raw!r}.",
                "detail": {"variable": name, "value": raw},
            }
        )
    return value


class Settings:
    """
    Runtime configuration for the error model.

    Reads environment variables lazily when properties are first accessed.
    """

    def __init__(self) -> None:
        self._max_cause_depth: Optional[int] = None
        self._stack_limit: Optional[int] = None
        self._stack_limit_loaded = False

    @property
    def max_cause_depth(self) -> int:
        """Maximum number of cause levels flattened into a full stack."""
        if self._max_cause_depth is None:
            self._max_cause_depth = _read_positive_int("SQUID_ERROR_MAX_CAUSE_DEPTH") or DEFAULT_MAX_CAUSE_DEPTH
        return self._max_cause_depth

    @property
    def stack_limit(self) -> Optional[int]:
        """Maximum number of frames kept in a captured stack; None keeps all."""
        if not self._stack_limit_loaded:
            # Marked first: the error raised for a bad value captures a stack too.
            self._stack_limit_loaded = True
            self._stack_limit = _read_positive_int("SQUID_ERROR_STACK_LIMIT")
        return self._stack_limit


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the singleton Settings instance (lazy initialization)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the environment is read again."""
    global _settings_instance
    _settings_instance = None


class _SettingsProxy:
    """Proxy that lazily initializes Settings on first access."""

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)


settings = _SettingsProxy()
