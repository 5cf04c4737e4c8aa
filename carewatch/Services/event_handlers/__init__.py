# carewatch/Services/event_handlers/__init__.py
"""
Event Handlers Module
=====================
Database-backed collaborators of the telemetry pipeline.

Componentes:
- persistence_handler: Append de HistoryRecord con rollback en error
- zone_handler: Snapshot de zonas seguras por cuidador
- history_handler: Reconstrucción del TripAggregate desde el historial

Arquitectura:
- Cada colaborador es un callable que abre su propia sesión
- Los errores de DB se traducen a PersistenceError / ZoneLookupError
- Testeables con una sesión SQLite en memoria
"""

from .persistence_handler import insert_history_record, DatabaseRecordStore
from .zone_handler import load_safe_zones, DatabaseZoneProvider
from .history_handler import load_history_seed, DatabaseHistoryLoader

__all__ = [
    # Persistence handler
    'insert_history_record',
    'DatabaseRecordStore',

    # Zone handler
    'load_safe_zones',
    'DatabaseZoneProvider',

    # History handler
    'load_history_seed',
    'DatabaseHistoryLoader',
]
