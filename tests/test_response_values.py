"""Answer coercion and the shared required-value rule."""

import json
from types import SimpleNamespace
from uuid import uuid4

import pytest

from gensheet.db.enums import FieldType
from gensheet.services.response_values import (
    InvalidValueError, coerce_value, is_answered, missing_required,
)


def test_is_answered_counts_uploads_and_ignores_blank_text():
    assert is_answered("ok")
    assert not is_answered("   ")
    assert not is_answered(None)
    assert is_answered(None, photo_urls=["/uploads/a.png"])


def test_missing_required_returns_required_checkpoints_in_order():
    first = SimpleNamespace(id=uuid4(), order=0, is_required=True)
    second = SimpleNamespace(id=uuid4(), order=1, is_required=False)
    third = SimpleNamespace(id=uuid4(), order=2, is_required=True)

    answers = {first.id: SimpleNamespace(value="yes", photo_urls=[], file_urls=[])}
    assert missing_required([third, second, first], answers) == [third]
    assert missing_required([first, third], {first.id: "x", third.id: " "}) == [third]


def test_checkbox_coercion():
    assert coerce_value(FieldType.CHECKBOX, {}, "Yes").bool_value is True
    assert coerce_value(FieldType.CHECKBOX, {}, "false").bool_value is False
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.CHECKBOX, {}, "maybe")


def test_number_within_bounds():
    config = {"min": -20, "max": 50}
    assert coerce_value(FieldType.NUMBER, config, "21.5").number_value == 21.5
    with pytest.raises(InvalidValueError, match="at most 50"):
        coerce_value(FieldType.NUMBER, config, "51")
    with pytest.raises(InvalidValueError, match="Expected a number"):
        coerce_value(FieldType.NUMBER, config, "warm")


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "Infinity"])
@pytest.mark.parametrize("config", [{"min": 0, "max": 10}, {}])
def test_number_rejects_non_finite(raw, config):
    with pytest.raises(InvalidValueError, match="Expected a number"):
        coerce_value(FieldType.NUMBER, config, raw)


def test_dropdown_and_multiselect_options():
    config = {"options": ["OK", "Needs Attention", "Not OK"]}
    assert coerce_value(FieldType.DROPDOWN, config, "OK").text_value == "OK"
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.DROPDOWN, config, "Broken")

    chosen = coerce_value(FieldType.MULTISELECT, config, json.dumps(["OK", "Not OK"]))
    assert json.loads(chosen.text_value) == ["OK", "Not OK"]


def test_rating_range_uses_config_max():
    assert coerce_value(FieldType.RATING, {"max": 3}, "3").number_value == 3.0
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.RATING, {"max": 3}, "4")
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.RATING, {}, "0")


def test_dates_and_times_parse_iso():
    assert coerce_value(FieldType.DATE, {}, "2026-03-01").date_value.day == 1
    assert coerce_value(FieldType.DATETIME, {}, "2026-03-01T08:30:00Z").date_value.hour == 8
    assert coerce_value(FieldType.TIME, {}, "08:30").text_value == "08:30"
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.DATE, {}, "01/03/2026")


def test_gps_parses_lat_lng():
    coerced = coerce_value(FieldType.GPS, {}, "51.5072, -0.1276")
    assert (coerced.gps_lat, coerced.gps_lng) == (51.5072, -0.1276)
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.GPS, {}, "91,0")


def test_text_respects_max_length():
    with pytest.raises(InvalidValueError):
        coerce_value(FieldType.TEXT, {"max_length": 3}, "four")


def test_photo_value_becomes_a_photo_url():
    coerced = coerce_value(FieldType.PHOTO, {}, "/uploads/gensheet/a.png")
    assert coerced.photo_urls == ["/uploads/gensheet/a.png"]


def test_blank_value_records_nothing():
    coerced = coerce_value(FieldType.NUMBER, {"min": 0}, "  ")
    assert coerced.number_value is None
