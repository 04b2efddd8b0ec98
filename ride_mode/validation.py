"""
Presence checks against a FieldSchema, then typed deserialization.
Missing fields and wrongly shaped values are reported as different errors.
"""
import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ride_mode.errors import MalformedDocumentError, MissingFieldsError
from ride_mode.field_schema import FieldSchema, registry

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_document(raw: Any) -> Any:
    """Parse str/bytes as JSON; anything else is returned as already parsed."""
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedDocumentError(str(e)) from e
    return raw


def validate_document(raw: Any, schema: FieldSchema) -> list[str]:
    """
    Names from schema that are absent or null in raw, in schema order.
    A document that cannot be parsed, or is not a key/value object, misses every field.
    The pipeline parses with load_document first, so a syntax error reaches it as
    MalformedDocumentError; only direct callers get the every-field answer for it.
    """
    try:
        document = load_document(raw)
    except MalformedDocumentError:
        return list(schema)
    if not isinstance(document, Mapping):
        return list(schema)
    return [name for name in schema if document.get(name) is None]


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "document"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def deserialize(document: Mapping, model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate(document)
    except ValidationError as e:
        raise MalformedDocumentError(_describe(e)) from e


def validate_and_deserialize(raw: Any, model: type[ModelT]) -> ModelT:
    """
    Parse, check presence against the model's registered schema, then deserialize.
    Raises MalformedDocumentError for syntax or shape problems and MissingFieldsError
    when required fields are absent or null.
    """
    document = load_document(raw)
    missing = validate_document(document, registry.schema_for(model))
    if missing:
        raise MissingFieldsError(missing)
    return deserialize(document, model)
