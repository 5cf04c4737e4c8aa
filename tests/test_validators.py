"""
tests/test_validators.py

Unit tests for carewatch/Services/telemetry_core (normalizers + validator).
"""

from datetime import datetime, timezone

import pytest

from carewatch.Schemas.location import LocationSample_in
from carewatch.Schemas.telemetry import RejectionReason
from carewatch.Services.telemetry_core import (
    coerce_number,
    normalize_sample_payload,
    normalize_timestamp,
    validate_sample,
)
from tests.fixtures import T0, TEST_CAREGIVER, build_payload, build_sample


def test_valid_payload_with_aliases_is_accepted() -> None:
    """Snake_case aliases and numeric strings normalize to a LocationSample_in."""
    result = validate_sample(build_payload(lat="10,5", lng="-74.8", speed="12", acc=5))

    assert isinstance(result, LocationSample_in)
    assert result.CaregiverID == TEST_CAREGIVER
    assert result.Latitude == pytest.approx(10.5)
    assert result.Longitude == pytest.approx(-74.8)
    assert result.Speed == pytest.approx(12.0)
    assert result.Accuracy == pytest.approx(5.0)
    assert result.Timestamp == T0


def test_unknown_keys_are_dropped() -> None:
    normalized = normalize_sample_payload({"lat": 1, "lng": 2, "firmware": "v2"})
    assert normalized == {"Latitude": 1, "Longitude": 2}


def test_single_key_wrapper_is_unwrapped() -> None:
    normalized = normalize_sample_payload({"location": {"caregiver_id": "cg-9", "lat": "1.5"}})
    assert normalized == {"CaregiverID": "cg-9", "Latitude": 1.5}


@pytest.mark.parametrize("lat, lng", [(200, 0), (-90.5, 0), (0, 181), (float("nan"), 0), ("north", 0), (True, 0)])
def test_out_of_range_coordinates_are_rejected(lat, lng) -> None:
    """Coordinates outside WGS-84 ranges, non-finite, boolean or non-numeric are rejected."""
    result = validate_sample(build_payload(lat=lat, lng=lng))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_coordinates"


def test_missing_coordinates_are_rejected() -> None:
    payload = build_payload()
    del payload["lng"]

    result = validate_sample(payload)

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_coordinates"


@pytest.mark.parametrize("timestamp", ["yesterday", "2025-13-45T00:00:00Z", True])
def test_unparsable_timestamp_is_rejected(timestamp) -> None:
    result = validate_sample(build_payload(timestamp=timestamp))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_timestamp"


def test_missing_timestamp_is_rejected() -> None:
    payload = build_payload()
    del payload["timestamp"]

    result = validate_sample(payload)

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_timestamp"


@pytest.mark.parametrize("battery", [-1, 100.5, "150"])
def test_battery_outside_range_is_rejected(battery) -> None:
    result = validate_sample(build_payload(battery_level=battery))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_battery"


def test_battery_boundaries_are_accepted() -> None:
    assert isinstance(validate_sample(build_payload(battery_level=0)), LocationSample_in)
    assert isinstance(validate_sample(build_payload(battery_level=100)), LocationSample_in)


def test_missing_battery_is_accepted() -> None:
    result = validate_sample(build_payload(battery_level=None))

    assert isinstance(result, LocationSample_in)
    assert result.BatteryLevel is None


def test_negative_speed_is_rejected() -> None:
    result = validate_sample(build_payload(speed=-3))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_speed"


def test_negative_accuracy_is_rejected() -> None:
    result = validate_sample(build_payload(accuracy=-0.1))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_accuracy"


def test_coordinates_win_over_other_failures() -> None:
    """When several fields fail, the coordinate failure is reported."""
    result = validate_sample(build_payload(lat=200, battery_level=500, speed=-1))

    assert isinstance(result, RejectionReason)
    assert result.code == "invalid_coordinates"


def test_missing_caregiver_is_malformed() -> None:
    payload = build_payload()
    del payload["caregiver_id"]

    result = validate_sample(payload)

    assert isinstance(result, RejectionReason)
    assert result.code == "malformed"


def test_empty_payload_is_malformed() -> None:
    result = validate_sample({})

    assert isinstance(result, RejectionReason)
    assert result.code == "malformed"


def test_raw_connection_status_is_carried() -> None:
    result = validate_sample(build_payload(connection_status="online"))

    assert isinstance(result, LocationSample_in)
    assert result.RawConnectionStatus == "online"


def test_built_sample_revalidates_unchanged() -> None:
    sample = build_sample(speed=3.5)
    assert validate_sample(sample) == sample


def test_normalize_timestamp_formats() -> None:
    """Seconds, milliseconds, ISO with Z and naive datetimes all map to UTC."""
    expected = datetime(2024, 10, 27, 3, 33, 20, tzinfo=timezone.utc)

    assert normalize_timestamp(1730000000) == expected
    assert normalize_timestamp(1730000000000) == expected
    assert normalize_timestamp("1730000000") == expected
    assert normalize_timestamp("2024-10-27T03:33:20Z") == expected
    assert normalize_timestamp(datetime(2024, 10, 27, 3, 33, 20)) == expected


def test_normalize_timestamp_converts_offsets_to_utc() -> None:
    result = normalize_timestamp("2024-10-27T05:33:20+02:00")
    assert result == datetime(2024, 10, 27, 3, 33, 20, tzinfo=timezone.utc)
    assert result.utcoffset().total_seconds() == 0


def test_coerce_number_rules() -> None:
    assert coerce_number("3,14") == pytest.approx(3.14)
    assert coerce_number("null") is None
    assert coerce_number("") is None
    assert coerce_number(7) == 7
    assert coerce_number("abc") == "abc"
