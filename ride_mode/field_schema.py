"""
Required-field derivation for request models.

A model's required fields are derived once, from its field declarations, and
cached for the life of the process. A field is required unless:
- its type admits None (``str | None``, ``Optional[str]``), or
- it has a default value, or
- it carries the ``OPTIONAL`` marker: ``name: Annotated[str, OPTIONAL]``.
"""
import threading
import types
from typing import Any, NamedTuple, Union, get_args, get_origin

from pydantic import BaseModel


class _OptionalMarker:
    def __repr__(self) -> str:
        return "OPTIONAL"


OPTIONAL = _OptionalMarker()

FieldSchema = tuple[str, ...]


class FieldDeclaration(NamedTuple):
    name: str
    allows_none: bool = False
    has_default: bool = False
    markers: tuple[Any, ...] = ()


def _allows_none(annotation: Any) -> bool:
    if annotation is None or annotation is type(None) or annotation is Any:
        return True
    if get_origin(annotation) in (Union, types.UnionType):
        return type(None) in get_args(annotation)
    return False


def derive_required_fields(declarations: list[FieldDeclaration] | tuple[FieldDeclaration, ...]) -> FieldSchema:
    """Ordered names of the declarations that must be present and non-null."""
    return tuple(
        decl.name
        for decl in declarations
        if not decl.allows_none and not decl.has_default and OPTIONAL not in decl.markers
    )


def describe_model(model: type[BaseModel]) -> tuple[FieldDeclaration, ...]:
    """Field declarations of a pydantic model, keyed by wire name (alias when set)."""
    return tuple(
        FieldDeclaration(
            name=info.alias or name,
            allows_none=_allows_none(info.annotation),
            has_default=not info.is_required(),
            markers=tuple(info.metadata),
        )
        for name, info in model.model_fields.items()
    )


class SchemaRegistry:
    """One cached FieldSchema per registered model."""

    def __init__(self) -> None:
        self._schemas: dict[type[BaseModel], FieldSchema] = {}
        self._lock = threading.Lock()

    def register(self, model: type[BaseModel]) -> FieldSchema:
        schema = self._schemas.get(model)
        if schema is not None:
            return schema
        with self._lock:
            return self._schemas.setdefault(model, derive_required_fields(describe_model(model)))

    def schema_for(self, model: type[BaseModel]) -> FieldSchema:
        schema = self._schemas.get(model)
        if schema is None:
            schema = self.register(model)
        return schema

    def snapshot(self) -> dict[str, list[str]]:
        return {model.__name__: list(schema) for model, schema in self._schemas.items()}


registry = SchemaRegistry()


def register_schema(model: type[BaseModel]) -> type[BaseModel]:
    """Class decorator: derive the model's schema at import time."""
    registry.register(model)
    return model
