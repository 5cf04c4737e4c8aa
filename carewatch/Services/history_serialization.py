# carewatch/Services/history_serialization.py

from datetime import datetime, timezone
from typing import Any
from carewatch.Schemas.location import HistoryRecord_get
from carewatch.Models.location_history import LocationHistory


def record_from_row(row: LocationHistory | None) -> HistoryRecord_get | None:
    """
    Convierte una fila LocationHistory en un HistoryRecord_get inmutable.

    - Algunos motores (SQLite) devuelven datetimes naive: se asumen UTC.
    """
    if row is None:
        return None

    record = HistoryRecord_get.model_validate(row)
    ts = record.Timestamp
    if ts.tzinfo is None:
        record = record.model_copy(update={"Timestamp": ts.replace(tzinfo=timezone.utc)})
    return record


def serialize_history_record(record: HistoryRecord_get | None) -> dict[str, Any] | None:
    """
    Convierte un HistoryRecord_get en un dict JSON-serializable.

    - Normaliza el timestamp a UTC ISO-8601 con sufijo 'Z'.
    """
    if record is None:
        return None

    data = record.model_dump(mode="python")

    ts = data.get("Timestamp")
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        data["Timestamp"] = ts.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
    else:
        data["Timestamp"] = None

    return data
