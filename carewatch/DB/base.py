"""
carewatch/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Central registry for all SQLAlchemy models. Importing this module ensures
every table is registered with Base.metadata before Alembic autogeneration
or create_all() runs.

Models Registered:
-----------------
- LocationHistory: Append-only enriched location samples per caregiver
- SafeZone: Circular safe zones configured by caregivers (read-only to the core)

Important:
----------
Any new model classes MUST be imported here.
"""

from carewatch.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from carewatch.Models.location_history import LocationHistory
from carewatch.Models.safe_zone import SafeZone

__all__ = ["Base", "LocationHistory", "SafeZone"]
