from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

class SettingsSchema(BaseModel):
    week_start: Literal["sunday", "monday"] = "sunday"
    timezone: str = "UTC"
    storage_key: str = Field("exercise-tracker-data", min_length=1)
    slot_capacity: int = Field(5 * 1024 * 1024, gt=0)
    export_indent: int = Field(2, ge=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        if value.upper() == "UTC":
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {value}")
        return value

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
