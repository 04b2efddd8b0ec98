"""Unit tests for required-field derivation and the schema registry."""

from typing import Annotated, Optional

from pydantic import BaseModel, Field

from ride_mode.field_schema import (
    OPTIONAL,
    FieldDeclaration,
    SchemaRegistry,
    derive_required_fields,
    describe_model,
    registry,
)
from ride_mode.models import ModeChangeRequest


class _Telemetry(BaseModel):
    bike_identifier: str
    soc: int
    odometer: Optional[float]
    charger_type: str = "202"
    session_id: Annotated[str, OPTIONAL]
    last_location: dict | None = None


class _Aliased(BaseModel):
    bike_id: str = Field(..., alias="bike_identifier")


class TestDeriveRequiredFields:
    def test_plain_fields_are_required_in_declaration_order(self):
        decls = [FieldDeclaration("b"), FieldDeclaration("a"), FieldDeclaration("c")]
        assert derive_required_fields(decls) == ("b", "a", "c")

    def test_nullable_defaulted_and_marked_fields_are_skipped(self):
        decls = [
            FieldDeclaration("id"),
            FieldDeclaration("note", allows_none=True),
            FieldDeclaration("count", has_default=True),
            FieldDeclaration("tag", markers=(OPTIONAL,)),
        ]
        assert derive_required_fields(decls) == ("id",)

    def test_no_declarations_gives_empty_schema(self):
        assert derive_required_fields([]) == ()


class TestDescribeModel:
    def test_model_fields(self):
        schema = derive_required_fields(describe_model(_Telemetry))
        assert schema == ("bike_identifier", "soc")

    def test_alias_is_the_wire_name(self):
        assert derive_required_fields(describe_model(_Aliased)) == ("bike_identifier",)

    def test_mode_change_request_schema(self):
        assert registry.schema_for(ModeChangeRequest) == ("bike_identifier", "change_to_mode")


class TestSchemaRegistry:
    def test_schema_is_cached(self):
        reg = SchemaRegistry()
        first = reg.register(_Telemetry)
        assert reg.register(_Telemetry) is first
        assert reg.schema_for(_Telemetry) is first

    def test_lookup_registers_unknown_model(self):
        reg = SchemaRegistry()
        assert reg.snapshot() == {}
        assert reg.schema_for(_Aliased) == ("bike_identifier",)
        assert reg.snapshot() == {"_Aliased": ["bike_identifier"]}

    def test_schema_is_immutable(self):
        schema = SchemaRegistry().schema_for(_Telemetry)
        assert isinstance(schema, tuple)

    def test_request_model_registered_at_import(self):
        assert registry.snapshot()["ModeChangeRequest"] == ["bike_identifier", "change_to_mode"]
