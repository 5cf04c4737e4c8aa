# carewatch/Services/telemetry_core/__init__.py
"""
Telemetry Core Module
=====================
Normalization and validation of incoming location samples.

Components:
- normalizers: Key mapping, number coercion, timestamp normalization
- validators: Schema validation producing a sample or a RejectionReason
"""

from .normalizers import (
    ALLOWED_KEYS,
    KEY_MAP,
    coerce_number,
    normalize_timestamp,
    normalize_sample_payload
)
from .validators import validate_sample

__all__ = [
    # Normalizers - Constants
    'ALLOWED_KEYS',
    'KEY_MAP',

    # Normalizers - Functions
    'coerce_number',
    'normalize_timestamp',
    'normalize_sample_payload',

    # Validators
    'validate_sample',
]
