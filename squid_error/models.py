import errno as errno_codes
from datetime import datetime
from typing import Any, Dict, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field


SYSTEM_FIELDS = ("signal", "address", "dest", "errno", "info", "path", "port", "syscall")


class SquidErrorSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: Optional[str] = None
    stack: Optional[str] = None
    code: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None
    id: Optional[int] = None
    time_stamp: Optional[datetime] = Field(default=None, alias="timeStamp")
    skip_log: Optional[bool] = Field(default=None, alias="skipLog")


class SquidHttpErrorSettings(SquidErrorSettings):
    http_status_code: Optional[int] = Field(default=None, alias="httpStatusCode")


class SystemErrorInfo(BaseModel):
    """System-call failure metadata, every field optional."""

    model_config = ConfigDict(extra="forbid")

    signal: Any = None
    address: Any = None
    dest: Any = None
    errno: Any = None
    info: Any = None
    path: Any = None
    port: Any = None
    syscall: Any = None

    @classmethod
    def from_error(cls, error: Any) -> "SystemErrorInfo":
        """
        Project an arbitrary error value onto the system fields.

        Attributes with the same name win; an OSError additionally contributes
        its filename as ``path`` and its second filename as ``dest``.
        """
        values = {name: getattr(error, name, None) for name in SYSTEM_FIELDS}
        if isinstance(error, OSError):
            if not values["path"]:
                values["path"] = error.filename
            if not values["dest"]:
                values["dest"] = error.filename2
        return cls(**values)

    def present(self) -> Dict[str, Any]:
        return {name: value for name, value in self if value}


def native_error_code(error: Any) -> Optional[str]:
    """Return the string code exposed by a platform error, if any."""
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code
    if isinstance(error, OSError) and isinstance(error.errno, int):
        return errno_codes.errorcode.get(error.errno)
    return None


class SerializedNativeError(TypedDict, total=False):
    message: str
    name: str
    code: Optional[str]
    stack: str
    signal: Any
    address: Any
    dest: Any
    errno: Any
    info: Any
    path: Any
    port: Any
    syscall: Any


class SerializedSquidError(SerializedNativeError, total=False):
    id: int
    detail: Dict[str, Any]
    timeStamp: str


class SerializedSquidHttpError(SerializedSquidError, total=False):
    httpStatusCode: int


class ValidationIssue(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    path: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
