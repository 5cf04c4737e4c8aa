# carewatch/Services/event_handlers/persistence_handler.py
"""
Persistence Handler
===================
Hands finished history records to the append-only store.

Arquitectura:
- Input: HistoryRecord_create ya enriquecido por el pipeline
- Output: HistoryRecord_get con el id generado
- Errores: cualquier fallo hace rollback y se propaga como PersistenceError,
  para que el pipeline no notifique ni confirme estado en memoria

Funciones:
- insert_history_record(): Inserta un registro en una sesión dada
- DatabaseRecordStore: Callable usado por el pipeline (abre su propia sesión)
"""

from typing import Callable
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from carewatch.Repositories.location_history import append_history_record
from carewatch.Schemas.location import HistoryRecord_create, HistoryRecord_get
from carewatch.Services.history_serialization import record_from_row
from carewatch.Core.exceptions import PersistenceError
from carewatch.Core import log_ws


def insert_history_record(db: Session, record: HistoryRecord_create) -> HistoryRecord_get:
    """
    Inserta un HistoryRecord y confirma la transacción.

    Filosofía de errores:
    - El registro es crítico: si falla, rollback completo y PersistenceError
    - El caller (pipeline) garantiza que no se notifica nada en ese caso

    Args:
        db: Sesión de SQLAlchemy activa
        record: Registro enriquecido

    Returns:
        HistoryRecord_get: Registro persistido (timestamp UTC-aware)

    Raises:
        PersistenceError: Si el flush o el commit fallan
    """
    caregiver_id = record.CaregiverID

    try:
        new_row = append_history_record(db, record)
        # Snapshot before commit: the stored record never depends on a reload
        stored = record_from_row(new_row)
        db.commit()

    except IntegrityError as ie:
        db.rollback()
        print(f"[PERSISTENCE] Caregiver '{caregiver_id}': Integrity error: {ie}")
        log_ws.log_from_thread(
            f"[PERSISTENCE] Integrity error for caregiver '{caregiver_id}': {ie.orig}",
            msg_type="error"
        )
        raise PersistenceError(caregiver_id, f"Integrity error: {ie.orig}") from ie

    except SQLAlchemyError as db_error:
        db.rollback()
        print(f"[PERSISTENCE] Caregiver '{caregiver_id}': Unexpected DB error: {db_error}")
        log_ws.log_from_thread(
            f"[PERSISTENCE] DB error for caregiver '{caregiver_id}': {db_error}",
            msg_type="error"
        )
        raise PersistenceError(caregiver_id, f"Database error: {db_error}") from db_error

    print(f"[PERSISTENCE] Caregiver '{caregiver_id}': record {stored.id} inserted")
    return stored


class DatabaseRecordStore:
    """
    Append-only store backed by the location_history table.

    Each call uses its own short-lived session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def __call__(self, record: HistoryRecord_create) -> HistoryRecord_get:
        try:
            with self.session_factory() as db:
                return insert_history_record(db, record)
        except PersistenceError:
            raise
        except SQLAlchemyError as session_error:
            # Connection could not even be opened
            raise PersistenceError(record.CaregiverID, f"Session error: {session_error}") from session_error
