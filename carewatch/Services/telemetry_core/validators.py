# carewatch/Services/telemetry_core/validators.py
"""
Sample Validator
================
Turns a raw device payload into a validated LocationSample_in, or explains
why it was rejected.

Architecture:
- Pure: no database access, no state, no notification
- Returns a RejectionReason instead of raising, so the pipeline can answer
  Rejected{reason} synchronously
- Rejections are logged here; the caller only decides what to return

Functions:
- validate_sample(): Normalize + schema-validate a payload
"""

from typing import Any, Mapping, Union
from pydantic import ValidationError

from carewatch.Schemas.location import LocationSample_in
from carewatch.Schemas.telemetry import RejectionReason
from carewatch.Services.telemetry_core.normalizers import (
    normalize_sample_payload,
    normalize_timestamp,
)
from carewatch.Core import log_ws


# Field → rejection code, in reporting priority order
FIELD_REJECTION_CODES = (
    ("Latitude", "invalid_coordinates"),
    ("Longitude", "invalid_coordinates"),
    ("Timestamp", "invalid_timestamp"),
    ("BatteryLevel", "invalid_battery"),
    ("Speed", "invalid_speed"),
    ("Accuracy", "invalid_accuracy"),
)


def _reject(code: str, detail: str, caregiver_id: Any = None) -> RejectionReason:
    reason = RejectionReason(code=code, detail=detail)
    print(f"[VALIDATOR] Sample from caregiver '{caregiver_id}' REJECTED ({code}): {detail}")
    log_ws.log_from_thread(
        f"[VALIDATOR] Rejected sample for caregiver '{caregiver_id}': {code}",
        msg_type="warning"
    )
    return reason


def _reason_from_errors(ve: ValidationError) -> tuple[str, str]:
    """Picks the highest-priority failing field of a pydantic error."""
    failing = {}
    for err in ve.errors():
        loc = err.get("loc") or ()
        if loc:
            failing.setdefault(str(loc[0]), err.get("msg", "invalid value"))

    for field, code in FIELD_REJECTION_CODES:
        if field in failing:
            return code, f"{field}: {failing[field]}"

    first = ve.errors()[0] if ve.errors() else {}
    return "malformed", f"{first.get('loc')}: {first.get('msg', 'invalid payload')}"


def validate_sample(
    raw_payload: Union[Mapping[str, Any], LocationSample_in]
) -> Union[LocationSample_in, RejectionReason]:
    """
    Validates a location sample.

    Rejects when:
    - latitude/longitude are missing, non-finite or out of range
    - the timestamp is missing or unparsable
    - battery level is present but outside [0, 100]
    - speed or accuracy is present and negative

    Args:
        raw_payload: Raw device payload (any supported key aliases) or an
            already-built LocationSample_in

    Returns:
        LocationSample_in: Validated sample with a UTC-aware timestamp
        RejectionReason: If the sample must be dropped (already logged)

    Examples:
        >>> validate_sample({"caregiver_id": "cg-1", "lat": 200, "lng": 0, "timestamp": 1730000000}).code
        'invalid_coordinates'
    """
    if isinstance(raw_payload, LocationSample_in):
        raw_payload = raw_payload.model_dump()

    normalized = dict(normalize_sample_payload(raw_payload))
    caregiver_id = normalized.get("CaregiverID")

    if not normalized:
        return _reject("malformed", "Empty or non-object payload")

    # Timestamp first: pydantic would accept some values we consider ambiguous
    ts_value = normalized.get("Timestamp")
    if ts_value is None:
        return _reject("invalid_timestamp", "Timestamp is missing", caregiver_id)
    try:
        normalized["Timestamp"] = normalize_timestamp(ts_value)
    except ValueError as e:
        return _reject("invalid_timestamp", str(e), caregiver_id)

    try:
        return LocationSample_in(**normalized)
    except ValidationError as ve:
        code, detail = _reason_from_errors(ve)
        return _reject(code, detail, caregiver_id)
