# carewatch/Services/status_classifier.py
"""
Status Classifier
=================
Derives the connection status shown on the dashboard from a sample and the
current time.

Rules, in priority order:
1. Sample older than STATUS_STALENESS_S → 'offline'
2. Battery present and below LOW_BATTERY_THRESHOLD → 'low_battery'
3. Otherwise → 'online'

Staleness dominates battery: a stale low-battery reading is
indistinguishable from a dead device.
"""

from datetime import datetime, timezone
from typing import Optional

from carewatch.Core.config import settings
from carewatch.Schemas.location import LocationSample_in


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class StatusClassifier:
    """
    Stateless connection status classifier.
    """

    def __init__(
        self,
        staleness_s: Optional[float] = None,
        low_battery_threshold: Optional[float] = None
    ):
        self.staleness_s = settings.STATUS_STALENESS_S if staleness_s is None else staleness_s
        self.low_battery_threshold = (
            settings.LOW_BATTERY_THRESHOLD if low_battery_threshold is None else low_battery_threshold
        )

    def classify(self, sample: LocationSample_in, now: datetime) -> str:
        """
        Classifies a validated sample.

        Args:
            sample: Validated location sample
            now: Reference instant (UTC)

        Returns:
            str: 'online' | 'offline' | 'low_battery'

        Notes:
            - Samples timestamped in the future are never stale
            - A missing battery level never yields 'low_battery'
        """
        elapsed = (_as_utc(now) - _as_utc(sample.Timestamp)).total_seconds()

        if elapsed > self.staleness_s:
            return "offline"

        if sample.BatteryLevel is not None and sample.BatteryLevel < self.low_battery_threshold:
            return "low_battery"

        return "online"


# --------------------------------------------------------
# GLOBAL INSTANCE (Singleton)
# --------------------------------------------------------
status_classifier = StatusClassifier()
