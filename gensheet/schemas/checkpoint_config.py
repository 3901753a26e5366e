"""Per-field-type checkpoint configuration.

A checkpoint's `config` is a tagged union keyed by its field type:

- NUMBER: {min, max, unit, step} with min <= max
- DROPDOWN / MULTISELECT: {options} with at least one non-blank option
- RATING: {max} in 1..10, default 5
- TEXT / TEXTAREA: {max_length, placeholder}
- PHOTO / FILE: {max_files}
- everything else: {}

Unknown keys are dropped. camelCase spellings produced by the AI
generator and older templates (maxLength, maxFiles) are accepted.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from gensheet.db.enums import FieldType


DEFAULT_RATING_MAX = 5


class _ConfigBase(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NumberConfig(_ConfigBase):
    min: float | None = None
    max: float | None = None
    unit: str | None = Field(default=None, max_length=50)
    step: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("min must not be greater than max")
        return self


class OptionsConfig(_ConfigBase):
    options: list[str] = Field(default_factory=list)

    @field_validator("options")
    @classmethod
    def _strip_options(cls, v: list[str]) -> list[str]:
        return [o.strip() for o in v if o and o.strip()]

    @model_validator(mode="after")
    def _require_options(self):
        if not self.options:
            raise ValueError("at least one option is required")
        return self


class RatingConfig(_ConfigBase):
    max: int = Field(default=DEFAULT_RATING_MAX, ge=1, le=10)


class TextConfig(_ConfigBase):
    max_length: int | None = Field(
        default=None, ge=1, validation_alias=AliasChoices("max_length", "maxLength")
    )
    placeholder: str | None = Field(default=None, max_length=255)


class UploadConfig(_ConfigBase):
    max_files: int | None = Field(
        default=None, ge=1, le=20, validation_alias=AliasChoices("max_files", "maxFiles")
    )


class EmptyConfig(_ConfigBase):
    pass


CONFIG_MODELS: dict[FieldType, type[_ConfigBase]] = {
    FieldType.NUMBER: NumberConfig,
    FieldType.DROPDOWN: OptionsConfig,
    FieldType.MULTISELECT: OptionsConfig,
    FieldType.RATING: RatingConfig,
    FieldType.TEXT: TextConfig,
    FieldType.TEXTAREA: TextConfig,
    FieldType.PHOTO: UploadConfig,
    FieldType.FILE: UploadConfig,
}


def normalize_config(field_type: FieldType | str, config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Validate `config` against the shape for `field_type` and return the clean dict.

    Raises:
        ValueError: config does not fit the field type
    """
    field_type = FieldType(field_type)
    model = CONFIG_MODELS.get(field_type, EmptyConfig)
    try:
        parsed = model.model_validate(config or {})
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        where = f" ({loc})" if loc else ""
        raise ValueError(f"Invalid {field_type.value} config{where}: {first['msg']}") from None
    return parsed.model_dump(exclude_none=True)


def read_config(field_type: FieldType | str, config: dict[str, Any] | None) -> _ConfigBase:
    """Typed view of an already-stored config (falls back to defaults on bad data)."""
    field_type = FieldType(field_type)
    model = CONFIG_MODELS.get(field_type, EmptyConfig)
    try:
        return model.model_validate(config or {})
    except ValidationError:
        return model.model_construct()
