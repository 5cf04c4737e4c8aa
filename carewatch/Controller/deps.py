# carewatch/Controller/deps.py

from typing import Generator
from carewatch.DB.session import SessionLocal
from carewatch.Services.telemetry_pipeline import TelemetryPipeline, telemetry_pipeline


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


def get_pipeline() -> TelemetryPipeline:
    return telemetry_pipeline
