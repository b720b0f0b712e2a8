import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from squid_error.models import ValidationIssue


SERIALIZED_ERROR_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "serialized_error.schema.json"


def _load_schema() -> Dict[str, Any]:
    with SERIALIZED_ERROR_SCHEMA_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


SERIALIZED_ERROR_SCHEMA = _load_schema()
_VALIDATOR = jsonschema.Draft7Validator(SERIALIZED_ERROR_SCHEMA)


def _make_issue(code: str, message: str, path: Optional[str] = None, **details: Any) -> ValidationIssue:
    return ValidationIssue(code=code, message=message, path=path, details=details)


def validate_serialized(record: Any) -> List[ValidationIssue]:
    """Validate a serialized error record against the schema and JSON encodability."""
    issues: List[ValidationIssue] = []

    # 1. JSON schema validation
    for exc in sorted(_VALIDATOR.iter_errors(record), key=lambda e: [str(p) for p in e.path]):
        path_str = "/".join(str(p) for p in exc.path) if exc.path else ""
        issues.append(_make_issue("SCHEMA_INVALID", exc.message, path=path_str, validator=exc.validator))

    # 2. Transport safety
    try:
        json.dumps(record)
    except (TypeError, ValueError) as exc:
        issues.append(_make_issue("NOT_JSON_SAFE", f"Record cannot be encoded as JSON: {exc}"))

    return issues


def is_valid_serialized(record: Any) -> bool:
    return not validate_serialized(record)
