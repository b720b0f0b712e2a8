import errno

from squid_error.errors import SquidError, SquidHttpError
from squid_error.validation import is_valid_serialized, validate_serialized


def test_serialized_errors_are_valid():
    assert validate_serialized(SquidError.create({"code": "NOT_FOUND", "detail": {"id": 42}}).serialize()) == []
    assert validate_serialized(SquidHttpError({"httpStatusCode": 400}).serialize()) == []


def test_serialized_wrapped_system_error_is_valid():
    native = FileNotFoundError(errno.ENOENT, "No such file or directory", "/tmp/x")
    assert is_valid_serialized(SquidError(None, native).serialize())


def test_missing_code_is_reported():
    record = SquidError().serialize()
    del record["code"]
    issues = validate_serialized(record)
    assert [issue.code for issue in issues] == ["SCHEMA_INVALID"]
    assert "code" in issues[0].message


def test_unknown_field_is_reported():
    record = SquidError().serialize()
    record["nativeError"] = {}
    issues = validate_serialized(record)
    assert issues[0].code == "SCHEMA_INVALID"
    assert issues[0].details["validator"] == "additionalProperties"


def test_wrong_type_reports_path():
    record = SquidHttpError().serialize()
    record["httpStatusCode"] = "500"
    issues = validate_serialized(record)
    assert issues[0].path == "httpStatusCode"


def test_non_json_detail_is_reported():
    record = SquidError({"detail": {"tags": {"a", "b"}}}).serialize()
    issues = validate_serialized(record)
    assert [issue.code for issue in issues] == ["NOT_JSON_SAFE"]
    assert not is_valid_serialized(record)
