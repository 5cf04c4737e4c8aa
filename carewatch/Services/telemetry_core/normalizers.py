# carewatch/Services/telemetry_core/normalizers.py
"""
Sample Normalizers Module
=========================
Normalizes raw device payloads to the internal LocationSample_in schema.

Devices and ingress adapters do not agree on field names or number formats,
so every payload goes through the same mapping before validation.

Functions:
- coerce_number(): Converts numeric strings to float
- normalize_timestamp(): UNIX seconds/ms, ISO-8601 or datetime → UTC datetime
- normalize_sample_payload(): Orchestrates mapping + filtering + coercion
"""

from datetime import datetime, timezone
from typing import Dict, Any, Union


# ==========================================================
# MAPPING CONSTANTS
# ==========================================================

ALLOWED_KEYS = {
    "CaregiverID",
    "Latitude",
    "Longitude",
    "Timestamp",
    "BatteryLevel",
    "Speed",
    "Accuracy",
    "RawConnectionStatus",
}
"""
Fields allowed in the normalized payload. Anything else is dropped.
"""

NUMERIC_KEYS = {"Latitude", "Longitude", "BatteryLevel", "Speed", "Accuracy"}
"""
Fields whose string values are coerced to numbers.
"""

KEY_MAP = {
    # Caregiver ID variants
    "caregiver_id": "CaregiverID",
    "caregiverId": "CaregiverID",
    "caregiverid": "CaregiverID",
    "caregiver": "CaregiverID",
    "CaregiverID": "CaregiverID",

    # Coordinate variants
    "latitude": "Latitude",
    "lat": "Latitude",
    "Latitude": "Latitude",

    "longitude": "Longitude",
    "lon": "Longitude",
    "lng": "Longitude",
    "Longitude": "Longitude",

    # Device readings
    "battery_level": "BatteryLevel",
    "batteryLevel": "BatteryLevel",
    "battery": "BatteryLevel",
    "BatteryLevel": "BatteryLevel",

    "speed": "Speed",
    "Speed": "Speed",

    "accuracy": "Accuracy",
    "acc": "Accuracy",
    "Accuracy": "Accuracy",

    "connection_status": "RawConnectionStatus",
    "connectionStatus": "RawConnectionStatus",
    "rawConnectionStatus": "RawConnectionStatus",
    "RawConnectionStatus": "RawConnectionStatus",

    # Timestamp variants
    "timestamp": "Timestamp",
    "time": "Timestamp",
    "timeStamp": "Timestamp",
    "Timestamp": "Timestamp",
}
"""
Alternative field names mapped to their canonical name.
"""


# ==========================================================
# LOW-LEVEL FUNCTIONS
# ==========================================================

def coerce_number(value: Any) -> Union[float, int, str, None]:
    """
    Converts numeric strings to float, handles null/empty.

    - None, "" or "null" → None
    - int/float → unchanged
    - "3,14" → 3.14 (decimal comma)
    - other strings → unchanged
    - booleans → their string form (rejected by validation)

    Examples:
        >>> coerce_number("3,14")
        3.14
        >>> coerce_number(True)
        'True'
    """
    if isinstance(value, bool):
        return str(value)

    if value is None or isinstance(value, (int, float)):
        return value

    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text or text.lower() == "null":
        return None

    try:
        return float(text.replace(",", "."))
    except ValueError:
        return value


def normalize_timestamp(ts_value: Any) -> datetime:
    """
    Normalizes a timestamp to a UTC-aware datetime.

    Supported formats:
    - datetime objects (naive values are taken as UTC)
    - UNIX timestamp in seconds (1730000000)
    - UNIX timestamp in milliseconds (1730000000000)
    - Numeric strings of either of the above
    - ISO-8601 strings, with or without a trailing 'Z'

    Values above 10^10 are treated as milliseconds.

    Raises:
        ValueError: If the value cannot be interpreted as an instant

    Examples:
        >>> normalize_timestamp(1730000000)
        datetime.datetime(2024, 10, 27, 3, 33, 20, tzinfo=datetime.timezone.utc)
        >>> normalize_timestamp("2024-10-27T03:33:20Z")
        datetime.datetime(2024, 10, 27, 3, 33, 20, tzinfo=datetime.timezone.utc)
    """
    if isinstance(ts_value, datetime):
        if ts_value.tzinfo is None:
            return ts_value.replace(tzinfo=timezone.utc)
        return ts_value.astimezone(timezone.utc)

    if isinstance(ts_value, bool) or ts_value is None:
        raise ValueError(f"Invalid timestamp format: {ts_value}")

    if isinstance(ts_value, str):
        raw = ts_value.strip()
        try:
            ts_float = float(raw)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format: {ts_value}") from e
            return normalize_timestamp(parsed)
    else:
        try:
            ts_float = float(ts_value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid timestamp format: {ts_value}") from e

    if ts_float > 10_000_000_000:
        ts_float = ts_float / 1000.0

    try:
        return datetime.fromtimestamp(ts_float, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"Timestamp out of range: {ts_value}") from e


# ==========================================================
# HIGH-LEVEL FUNCTION
# ==========================================================

def normalize_sample_payload(raw_payload: Any) -> Dict[str, Any]:
    """
    Normalizes a raw sample payload to canonical keys.

    Steps:
    1. Unwraps payloads nested in a single-key object ({"location": {...}})
    2. Maps alternative keys (lat → Latitude)
    3. Drops keys outside ALLOWED_KEYS
    4. Coerces numeric strings for NUMERIC_KEYS

    The timestamp is NOT normalized here (see normalize_timestamp).

    Examples:
        >>> normalize_sample_payload({"caregiver_id": "cg-1", "lat": "10.5", "lng": "-74.8"})
        {'CaregiverID': 'cg-1', 'Latitude': 10.5, 'Longitude': -74.8}
    """
    if isinstance(raw_payload, dict) and len(raw_payload) == 1:
        only_key = next(iter(raw_payload))
        candidate = raw_payload[only_key] if isinstance(raw_payload[only_key], dict) else raw_payload
    else:
        candidate = raw_payload if isinstance(raw_payload, dict) else {}

    normalized: Dict[str, Any] = {}

    for k, v in candidate.items():
        if not isinstance(k, str):
            continue
        mapped = KEY_MAP.get(k, KEY_MAP.get(k.lower(), k))

        if mapped in ALLOWED_KEYS:
            normalized[mapped] = coerce_number(v) if mapped in NUMERIC_KEYS else v

    return normalized
