"""
carewatch/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base class for all database models of the caregiver monitoring
service (SQLAlchemy 2.0 style).

Convention:
----------
Table names default to the lowercase class name. Models that need a
different name (location_history, safe_zones) override __tablename__ with
their own declared_attr directive.

Note:
    All application models must inherit from this Base class to be
    registered with SQLAlchemy's metadata and discovered by Alembic.
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models in the application.

    Features:
        - Automatic table naming: Converts class name to lowercase
        - Metadata registration: All models are registered in Base.metadata
        - Alembic integration: Enables automatic migration generation
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """
        Generate table name from class name using lowercase convention.

        Examples:
            LocationHistory → 'locationhistory' (overridden to 'location_history')
            SafeZone → 'safezone' (overridden to 'safe_zones')
        """
        return cls.__name__.lower()
