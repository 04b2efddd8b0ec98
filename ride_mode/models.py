from pydantic import BaseModel, ConfigDict, Field

from ride_mode.field_schema import register_schema


@register_schema
class ModeChangeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bike_identifier: str = Field(..., description="Bike the mode change applies to")
    change_to_mode: str = Field(..., description="Target ride mode")
    current_mode: str | None = Field(default=None, description="Looked up from the state store when absent or empty")


class ModeChangeEvent(BaseModel):
    bike_identifier: str
    steps: int
