"""Checkpoint answer rules shared by result submission and the execution wizard.

A recorded answer is the raw `value` string plus optional uploaded asset
URLs. `coerce_value` turns it into the typed columns of CheckpointResponse
according to the checkpoint's field type and config; `is_answered` and
`missing_required` decide whether required checkpoints are satisfied.
"""

import json
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Iterable, Mapping
from uuid import UUID

from gensheet.db.enums import FieldType
from gensheet.schemas.checkpoint_config import (
    DEFAULT_RATING_MAX, NumberConfig, OptionsConfig, RatingConfig, TextConfig, read_config,
)


TRUE_VALUES = {"true", "yes", "y", "1", "on", "pass"}
FALSE_VALUES = {"false", "no", "n", "0", "off", "fail"}


class InvalidValueError(ValueError):
    """Raw value does not fit the checkpoint's field type or config."""

    pass


@dataclass
class CoercedValue:
    """Typed columns derived from one raw answer."""

    text_value: str | None = None
    number_value: float | None = None
    bool_value: bool | None = None
    date_value: datetime | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None
    photo_urls: list[str] = field(default_factory=list)
    file_urls: list[str] = field(default_factory=list)

    def as_columns(self) -> dict[str, Any]:
        return {
            "text_value": self.text_value,
            "number_value": self.number_value,
            "bool_value": self.bool_value,
            "date_value": self.date_value,
            "gps_lat": self.gps_lat,
            "gps_lng": self.gps_lng,
        }


# =============================================================================
# Required-value rule
# =============================================================================

def is_answered(
    value: str | None,
    photo_urls: Iterable[str] | None = None,
    file_urls: Iterable[str] | None = None,
) -> bool:
    """True when a non-blank value or at least one uploaded asset was recorded."""
    if value is not None and str(value).strip():
        return True
    return any(photo_urls or []) or any(file_urls or [])


def missing_required(checkpoints: Iterable[Any], answers: Mapping[UUID, Any]) -> list[Any]:
    """
    Return the required checkpoints without an answer, in checkpoint order.

    `answers` maps checkpoint id to an object with `value`, `photo_urls` and
    `file_urls` attributes (a ResponseIn, a CheckpointResponse or a wizard
    answer) or to a plain string.
    """
    missing = []
    for checkpoint in sorted(checkpoints, key=lambda cp: cp.order):
        if not checkpoint.is_required:
            continue
        answer = answers.get(checkpoint.id)
        if answer is None:
            missing.append(checkpoint)
        elif isinstance(answer, str):
            if not is_answered(answer):
                missing.append(checkpoint)
        elif not is_answered(
            getattr(answer, "value", None),
            getattr(answer, "photo_urls", None),
            getattr(answer, "file_urls", None),
        ):
            missing.append(checkpoint)
    return missing


# =============================================================================
# Coercion
# =============================================================================

def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise InvalidValueError("Expected yes or no")


def parse_number(raw: str, config: NumberConfig) -> float:
    try:
        number = float(raw)
    except ValueError:
        raise InvalidValueError("Expected a number") from None
    if not math.isfinite(number):
        raise InvalidValueError("Expected a number")
    if config.min is not None and number < config.min:
        raise InvalidValueError(f"Value must be at least {config.min:g}")
    if config.max is not None and number > config.max:
        raise InvalidValueError(f"Value must be at most {config.max:g}")
    return number


def parse_rating(raw: str, config: RatingConfig) -> int:
    try:
        rating = int(raw)
    except ValueError:
        raise InvalidValueError("Expected a whole number rating") from None
    upper = config.max or DEFAULT_RATING_MAX
    if not 1 <= rating <= upper:
        raise InvalidValueError(f"Rating must be between 1 and {upper}")
    return rating


def parse_options(raw: str, config: OptionsConfig, multiple: bool) -> list[str]:
    """DROPDOWN takes one option; MULTISELECT takes a JSON array (or a single option)."""
    if multiple and raw.strip().startswith("["):
        try:
            chosen = json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidValueError("Expected a list of options") from None
        if not isinstance(chosen, list) or not all(isinstance(c, str) for c in chosen):
            raise InvalidValueError("Expected a list of options")
    else:
        chosen = [raw.strip()]

    unknown = [c for c in chosen if c not in config.options]
    if unknown:
        raise InvalidValueError(f"Not an allowed option: {unknown[0]}")
    return chosen


def parse_gps(raw: str) -> tuple[float, float]:
    """Parse `lat,lng`."""
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        raise InvalidValueError("Expected coordinates as lat,lng")
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise InvalidValueError("Expected coordinates as lat,lng") from None
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise InvalidValueError("Coordinates out of range")
    return lat, lng


def _parse_iso(raw: str, field_type: FieldType) -> datetime | None:
    text = raw.strip()
    try:
        if field_type == FieldType.DATE:
            parsed = date.fromisoformat(text)
            return datetime(parsed.year, parsed.month, parsed.day)
        if field_type == FieldType.TIME:
            time.fromisoformat(text)
            return None
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidValueError(f"Expected an ISO {field_type.value.lower()}") from None


def coerce_value(
    field_type: FieldType | str,
    config: dict[str, Any] | None,
    value: str | None,
    photo_urls: list[str] | None = None,
    file_urls: list[str] | None = None,
) -> CoercedValue:
    """
    Derive typed columns from a raw answer.

    Blank values produce empty typed columns (the answer is simply not
    recorded yet).

    Raises:
        InvalidValueError: value does not fit the field type/config
    """
    field_type = FieldType(field_type)
    coerced = CoercedValue(photo_urls=list(photo_urls or []), file_urls=list(file_urls or []))

    if value is None or not str(value).strip():
        return coerced
    raw = str(value)
    typed_config = read_config(field_type, config)

    if field_type == FieldType.CHECKBOX:
        coerced.bool_value = parse_bool(raw)
    elif field_type == FieldType.NUMBER:
        coerced.number_value = parse_number(raw, typed_config)
    elif field_type in (FieldType.TEXT, FieldType.TEXTAREA):
        max_length = typed_config.max_length if isinstance(typed_config, TextConfig) else None
        if max_length and len(raw) > max_length:
            raise InvalidValueError(f"Text must be at most {max_length} characters")
        coerced.text_value = raw
    elif field_type == FieldType.DROPDOWN:
        coerced.text_value = parse_options(raw, typed_config, multiple=False)[0]
    elif field_type == FieldType.MULTISELECT:
        coerced.text_value = json.dumps(parse_options(raw, typed_config, multiple=True))
    elif field_type == FieldType.RATING:
        coerced.number_value = float(parse_rating(raw, typed_config))
    elif field_type in (FieldType.DATE, FieldType.DATETIME):
        coerced.date_value = _parse_iso(raw, field_type)
    elif field_type == FieldType.TIME:
        _parse_iso(raw, field_type)
        coerced.text_value = raw.strip()
    elif field_type == FieldType.GPS:
        coerced.gps_lat, coerced.gps_lng = parse_gps(raw)
    elif field_type == FieldType.PHOTO:
        if raw not in coerced.photo_urls:
            coerced.photo_urls.append(raw)
    elif field_type == FieldType.FILE:
        if raw not in coerced.file_urls:
            coerced.file_urls.append(raw)
    elif field_type == FieldType.SIGNATURE:
        coerced.text_value = raw
    return coerced
