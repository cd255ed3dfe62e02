"""
Validation for queue inputs and persisted content.

Caller inputs are checked before a transaction opens. The persisted store is
checked against its JSON Schema every time it is loaded, so a hand-edited or
truncated file fails loudly instead of being half-read.
"""

import json
from pathlib import Path

import jsonschema

from dtq.lib.constants import MAX_TASK_ID_LEN, TASK_ID_PATTERN
from dtq.lib.errors import ValidationError
from dtq.models import CLAIMABLE_STAGES

# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        _schema_cache[schema_name] = json.loads(schema_path.read_text())
    return _schema_cache[schema_name]


class SchemaError(Exception):
    """Data doesn't match its schema."""

    def __init__(self, schema_name: str, message: str, path: str):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message} at {path}")


def validate_document(data: dict, schema_name: str = "queue") -> None:
    """
    Validate data against named schema.

    Raises:
        SchemaError: If validation fails
    """
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise SchemaError(schema_name, e.message, path) from None


def validate_task_id(task_id: str | None) -> str:
    if not task_id:
        raise ValidationError("task id is required")
    if len(task_id) > MAX_TASK_ID_LEN:
        raise ValidationError(f"task id too long (max {MAX_TASK_ID_LEN} characters)")
    if not TASK_ID_PATTERN.match(task_id):
        raise ValidationError(f"invalid task id '{task_id}': must not contain whitespace")
    return task_id


def validate_branch(branch: str | None) -> str:
    if not branch or not branch.strip():
        raise ValidationError("--branch is required")
    return branch


def validate_reason(reason: str | None) -> str:
    if not reason or not reason.strip():
        raise ValidationError("--reason is required")
    return reason


def validate_claim_stage(stage: str | None) -> str:
    if stage not in CLAIMABLE_STAGES:
        raise ValidationError(f"can only claim from 'review' or 'qa', got '{stage}'")
    return stage
