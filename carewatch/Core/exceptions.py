# carewatch/Core/exceptions.py
"""
Error taxonomy of the telemetry core.

Malformed samples are not exceptions: the validator returns a
RejectionReason and the pipeline answers IngestRejected synchronously.

- PersistenceError: the history append failed; nothing is notified
- ZoneLookupError: the safe-zone collaborator could not be reached
"""


from typing import Optional


class TelemetryError(Exception):
    """Base class for telemetry core failures."""

    def __init__(self, caregiver_id: Optional[str], message: str):
        super().__init__(message)
        self.caregiver_id = caregiver_id


class PersistenceError(TelemetryError):
    pass


class ZoneLookupError(TelemetryError):
    pass
