"""Persistence layer for saved loan snapshots.

The store keeps one snapshot per key (the CLI uses a fixed key, the web app
one key per browser session). It defaults to SQLite for local use, but
accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///loan_control.sqlite3"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanSnapshotModel(Base):
    __tablename__ = "loan_snapshots"

    key = Column(String(64), primary_key=True)
    payload_json = Column(Text, nullable=False)
    saved_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class SnapshotStore:
    """Database-backed key/value store for loan snapshots."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def save(self, key: str, snapshot: Dict[str, Any]) -> None:
        """Store ``snapshot`` under ``key``, replacing any previous one."""
        if not key:
            return
        payload = json.dumps(snapshot)
        with self._session_factory() as session:
            row = session.get(LoanSnapshotModel, key)
            if row is None:
                session.add(LoanSnapshotModel(key=key, payload_json=payload))
            else:
                row.payload_json = payload
            session.commit()
        logger.info("saved loan snapshot %s (%d payments)", key, len(snapshot.get("payments", [])))

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        if not key:
            return None
        with self._session_factory() as session:
            row = session.get(LoanSnapshotModel, key)
            if row is None:
                return None
            return json.loads(row.payload_json)

    def delete(self, key: str) -> None:
        if not key:
            return
        with self._session_factory() as session:
            row = session.get(LoanSnapshotModel, key)
            if row is not None:
                session.delete(row)
                session.commit()
                logger.info("deleted loan snapshot %s", key)

    def dispose(self) -> None:
        self._engine.dispose()


def create_store_from_env(url: Optional[str]) -> SnapshotStore:
    return SnapshotStore(url or DEFAULT_DATABASE_URL)
