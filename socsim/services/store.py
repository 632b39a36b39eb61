"""
Snapshot persistence: one JSON blob per key in the snapshots table.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session, sessionmaker

from socsim import models
from socsim.schemas import AppState, Preferences

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Flat key -> JSON storage for the simulator state and preferences."""

    def __init__(self, session_factory: sessionmaker, state_key: str, prefs_key: str):
        self.session_factory = session_factory
        self.state_key = state_key
        self.prefs_key = prefs_key

    # ------------------------------------------------------------------
    # Raw blobs
    # ------------------------------------------------------------------

    def write(self, key: str, payload: Dict[str, Any]) -> None:
        db: Session = self.session_factory()
        try:
            row = db.get(models.Snapshot, key)
            if row is None:
                db.add(models.Snapshot(key=key, payload=payload))
            else:
                row.payload = payload
            db.commit()
        except Exception:
            db.rollback()
            logger.error("Snapshot write failed key=%s", key, exc_info=True)
            raise
        finally:
            db.close()

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        db: Session = self.session_factory()
        try:
            row = db.get(models.Snapshot, key)
            if row is None or not isinstance(row.payload, dict):
                return None
            return row.payload
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    def save_state(self, state: AppState) -> None:
        self.write(self.state_key, state.model_dump(mode="json", by_alias=True))

    def load_state(self) -> Optional[AppState]:
        """Stored state, or None when absent or unreadable."""
        raw = self.read(self.state_key)
        if raw is None:
            return None
        try:
            return AppState.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Stored state is corrupt, ignoring it: %s", exc.error_count())
            return None

    def save_prefs(self, prefs: Preferences) -> None:
        self.write(self.prefs_key, prefs.model_dump(mode="json", by_alias=True))

    def load_prefs(self) -> Optional[Preferences]:
        raw = self.read(self.prefs_key)
        if raw is None:
            return None
        try:
            return Preferences.model_validate(raw)
        except ValidationError:
            logger.warning("Stored preferences are corrupt, ignoring them")
            return None
