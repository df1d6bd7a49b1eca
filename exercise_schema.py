from typing import Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tools import DateTools

ExerciseType = Literal[
    "cardio",
    "strength",
    "flexibility",
    "balance",
    "sports",
    "yoga",
    "pilates",
    "dance",
    "martial-arts",
    "swimming",
    "cycling",
    "running",
    "walking",
    "other",
]

IntensityLevel = Literal["low", "moderate", "high", "very-high"]

EXERCISE_TYPES = [
    {"value": "cardio", "label": "Cardio"},
    {"value": "strength", "label": "Strength Training"},
    {"value": "flexibility", "label": "Flexibility"},
    {"value": "balance", "label": "Balance"},
    {"value": "sports", "label": "Sports"},
    {"value": "yoga", "label": "Yoga"},
    {"value": "pilates", "label": "Pilates"},
    {"value": "dance", "label": "Dance"},
    {"value": "martial-arts", "label": "Martial Arts"},
    {"value": "swimming", "label": "Swimming"},
    {"value": "cycling", "label": "Cycling"},
    {"value": "running", "label": "Running"},
    {"value": "walking", "label": "Walking"},
    {"value": "other", "label": "Other"},
]

INTENSITY_LEVELS = [
    {
        "value": "low",
        "label": "Low",
        "description": "Light activity, can easily hold a conversation",
    },
    {
        "value": "moderate",
        "label": "Moderate",
        "description": "Some effort, can speak in short sentences",
    },
    {
        "value": "high",
        "label": "High",
        "description": "Vigorous effort, difficult to speak",
    },
    {
        "value": "very-high",
        "label": "Very High",
        "description": "Maximum effort, cannot speak comfortably",
    },
]

# ordinal scale used for average intensity
INTENSITY_SCORES = {"low": 1, "moderate": 2, "high": 3, "very-high": 4}

EXERCISE_TYPE_VALUES = get_args(ExerciseType)
INTENSITY_LEVEL_VALUES = get_args(IntensityLevel)


def _check_date(value: str) -> str:
    try:
        DateTools.parse(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid ISO date: {value!r}")
    return value


class ExerciseUpdate(BaseModel):
    """Partial exercise fields accepted from collaborators."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1)
    type: Optional[ExerciseType] = None
    duration: Optional[int] = Field(None, gt=0)
    intensity_level: Optional[IntensityLevel] = Field(None, alias="intensityLevel")
    calories_burned: Optional[int] = Field(None, ge=0, alias="caloriesBurned")
    date: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "type", "duration", "intensity_level", "date", mode="before")
    @classmethod
    def required_not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be cleared")
        return value

    @field_validator("name", "notes")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip()

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            raise ValueError("Exercise name is required")
        return value

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_date(value)

    def to_fields(self) -> dict:
        """Return only the fields the caller actually supplied, keyed as stored."""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        if data.get("notes") == "":
            data["notes"] = None
        return data


class ExerciseCreate(ExerciseUpdate):
    """Complete exercise fields required to log a new exercise."""

    name: str = Field(..., min_length=1)
    type: ExerciseType
    duration: int = Field(..., gt=0)
    intensity_level: IntensityLevel = Field(..., alias="intensityLevel")
    date: str

    def to_fields(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not data.get("notes"):
            data.pop("notes", None)
        return data


def validate_exercise(data: dict, partial: bool = False) -> dict:
    """Validate exercise ``data`` and return the fields to hand to the store."""
    model = ExerciseUpdate if partial else ExerciseCreate
    try:
        return model(**data).to_fields()
    except ValidationError as e:
        raise ValueError(str(e))


def type_label(value: str) -> str:
    """Chart label for an exercise type or intensity value."""
    return value[:1].upper() + value[1:].replace("-", " ", 1)
