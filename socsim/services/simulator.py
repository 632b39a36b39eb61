"""
Simulator controller: sole owner of the application state and preferences.

Routers and the generator loop never touch state directly; they call the
controller, which applies lifecycle operations and saves the result
synchronously before swapping it in.
FastAPI runs sync endpoints on a worker pool next to the generator task, so
every mutation holds ``self.lock``.
"""

import json
import logging
import random
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from socsim.config import settings
from socsim.database import Base, SessionLocal, engine
from socsim.schemas import (
    Alert, AppState, Asset, Case, DashboardStats, LogEntry, Playbook,
    Preferences, SavedQuery, SnapshotPayload, UiState,
)
from socsim.services import lifecycle
from socsim.services.store import SnapshotStore
from socsim.services.synthesis import default_assets, default_playbooks, make_rng, seed_alerts, seed_logs
from socsim.utils.helpers import is_blank, now_iso, uid
from socsim.utils.query import filter_records

logger = logging.getLogger(__name__)

DEFAULT_SAVED_QUERIES = [
    ("High + Entra", 'severity:high AND source:"Entra ID"'),
    ("Phish", "phishing OR technique:phishing"),
    ("New alerts", "status:new"),
]


class RecordNotFound(LookupError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class SnapshotImportError(ValueError):
    """Rejected import payload; state was not touched."""


class SimulatorController:

    def __init__(
        self,
        store: SnapshotStore,
        rng: random.Random,
        seed_alert_count: int = 16,
        seed_log_count: int = 240,
        max_alerts: int = 180,
        max_logs: int = 500,
        generator_on: bool = True,
    ):
        self.store = store
        self.rng = rng
        self.seed_alert_count = seed_alert_count
        self.seed_log_count = seed_log_count
        self.max_alerts = max_alerts
        self.max_logs = max_logs
        self.lock = threading.RLock()
        self.prefs = Preferences(generator_on=generator_on)
        # Seeded by load() or reset()
        self.state = self.default_state(with_demo=False)

    # ------------------------------------------------------------------
    # State / persistence
    # ------------------------------------------------------------------

    def default_state(self, with_demo: bool) -> AppState:
        state = AppState(
            version=1,
            created_at=now_iso(),
            alerts=seed_alerts(self.rng, self.seed_alert_count) if with_demo else [],
            logs=seed_logs(self.rng, self.seed_log_count) if with_demo else [],
            assets=default_assets(),
            cases=[],
            playbooks=default_playbooks(),
            saved_queries=[
                SavedQuery(id=uid("sq"), name=name, query=query) for name, query in DEFAULT_SAVED_QUERIES
            ] if with_demo else [],
        )
        return state

    def load(self) -> None:
        """Restore state and preferences from the store, falling back to defaults."""
        with self.lock:
            prefs = self.store.load_prefs()
            if prefs is not None:
                self.prefs = prefs
            state = self.store.load_state()
            if state is None:
                logger.info("No stored state, building default (demo seed %s)", self.prefs.demo_seed_on)
                self._commit(self.default_state(with_demo=self.prefs.demo_seed_on))
            else:
                self.state = state
                logger.info("State restored alerts=%s logs=%s cases=%s",
                            len(state.alerts), len(state.logs), len(state.cases))

    def _commit(self, state: AppState) -> AppState:
        # Written first; memory only changes once storage has it
        with self.lock:
            self.store.save_state(state)
            self.state = state
            return state

    def _commit_prefs(self, prefs: Preferences) -> Preferences:
        with self.lock:
            self.store.save_prefs(prefs)
            self.prefs = prefs
            return prefs

    def reset(self) -> AppState:
        """Rebuild the default state; without demo seed it starts empty."""
        with self.lock:
            state = self._commit(self.default_state(with_demo=self.prefs.demo_seed_on))
            logger.info("Simulator state reset demo_seed=%s", self.prefs.demo_seed_on)
            return state

    def _with_ui(self, state: AppState, **ui: Any) -> AppState:
        """Copy of ``state`` with ``ui`` merged in, validated as a whole."""
        merged = UiState.model_validate({**state.ui.model_dump(), **ui})
        return state.model_copy(update={"ui": merged})

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_alert(self, alert_id: str) -> Alert:
        alert = lifecycle.find_by_id(self.state.alerts, alert_id)
        if alert is None:
            raise RecordNotFound("Alert", alert_id)
        return alert

    def get_case(self, case_id: str) -> Case:
        case = lifecycle.find_by_id(self.state.cases, case_id)
        if case is None:
            raise RecordNotFound("Case", case_id)
        return case

    def get_log(self, log_id: str) -> LogEntry:
        log = lifecycle.find_by_id(self.state.logs, log_id)
        if log is None:
            raise RecordNotFound("Log", log_id)
        return log

    def get_playbook(self, playbook_id: str) -> Playbook:
        playbook = lifecycle.find_by_id(self.state.playbooks, playbook_id)
        if playbook is None:
            raise RecordNotFound("Playbook", playbook_id)
        return playbook

    def list_alerts(self, query: Optional[str] = None, limit: Optional[int] = None) -> List[Alert]:
        return filter_records(self.state.alerts, query, limit)

    def list_logs(self, query: Optional[str] = None, limit: Optional[int] = None) -> List[LogEntry]:
        return filter_records(self.state.logs, query, limit)

    def list_cases(self, query: Optional[str] = None) -> List[Case]:
        cases = filter_records(self.state.cases, query)
        return sorted(cases, key=lambda c: c.created_at, reverse=True)

    def case_detail(self, case_id: str) -> Tuple[Case, List[Alert]]:
        case = self.get_case(case_id)
        return case, lifecycle.linked_alerts(self.state, case)

    def search_assets(self, query: Optional[str], limit: int = 5) -> List[Asset]:
        q = (query or "").strip().lower()
        if not q:
            return []
        hits = [a for a in self.state.assets if q in f"{a.host} {a.owner} {a.dept}".lower()]
        return hits[:limit]

    def stats(self) -> DashboardStats:
        alerts = self.state.alerts
        return DashboardStats(
            total_alerts=len(alerts),
            open_alerts=sum(1 for a in alerts if a.status != "closed"),
            new_alerts=sum(1 for a in alerts if a.status == "new"),
            high_open_alerts=sum(1 for a in alerts if a.severity == "high" and a.status != "closed"),
            total_cases=len(self.state.cases),
            active_cases=sum(1 for c in self.state.cases if c.status != "closed"),
            total_logs=len(self.state.logs),
            generator_on=self.prefs.generator_on,
        )

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def update_alert(self, alert_id: str, patch: Dict[str, Any]) -> Alert:
        with self.lock:
            self.get_alert(alert_id)
            self._commit(self.state.model_copy(
                update={"alerts": lifecycle.update_alert(self.state.alerts, alert_id, patch)}
            ))
            return self.get_alert(alert_id)

    def triage_alert(self, alert_id: str) -> Alert:
        return self.update_alert(alert_id, {"status": "triage"})

    def add_alert_note(self, alert_id: str, body: str) -> Optional[Alert]:
        """None when the body is blank (abandoned)."""
        with self.lock:
            alert = self.get_alert(alert_id)
            if is_blank(body):
                return None
            updated = lifecycle.add_note(alert, body)
            alerts = [updated if a.id == updated.id else a for a in self.state.alerts]
            self._commit(self.state.model_copy(update={"alerts": alerts}))
            return updated

    def record_generated(self, alert: Alert, log: LogEntry) -> None:
        """Prepend a generated alert and its log, keeping the most recent N of each."""
        with self.lock:
            self._commit(self.state.model_copy(update={
                "alerts": [alert, *self.state.alerts][: self.max_alerts],
                "logs": [log, *self.state.logs][: self.max_logs],
            }))

    def pivot_log(self, log_id: str) -> Alert:
        with self.lock:
            alert = lifecycle.log_to_alert(self.get_log(log_id))
            state = self.state.model_copy(update={"alerts": [alert, *self.state.alerts]})
            self._commit(self._with_ui(state, selected_alert_id=alert.id))
            logger.info("Pivot alert %s created from log %s", alert.id, log_id)
            return alert

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    def new_case_from_alert(self, alert_id: str) -> Tuple[Case, Alert]:
        with self.lock:
            result = lifecycle.new_case_from_alert(self.state, alert_id)
            if result is None:
                raise RecordNotFound("Alert", alert_id)
            state, case = result
            self._commit(self._with_ui(state, selected_case_id=case.id, selected_alert_id=None))
            return case, self.get_alert(alert_id)

    def new_case_manual(self, title: Optional[str], summary: Optional[str] = "") -> Optional[Case]:
        with self.lock:
            case = lifecycle.new_case_manual(title, summary)
            if case is None:
                return None
            state = self.state.model_copy(update={"cases": [case, *self.state.cases]})
            self._commit(self._with_ui(state, selected_case_id=case.id))
            logger.info("Manual case %s created", case.id)
            return case

    def update_case(self, case_id: str, patch: Dict[str, Any]) -> Case:
        with self.lock:
            self.get_case(case_id)
            self._commit(self.state.model_copy(
                update={"cases": lifecycle.update_case(self.state.cases, case_id, patch)}
            ))
            return self.get_case(case_id)

    def add_case_note(self, case_id: str, body: str) -> Optional[Case]:
        with self.lock:
            case = self.get_case(case_id)
            if is_blank(body):
                return None
            return self._replace_case(lifecycle.add_note(case, body, msg="Case note added."))

    def add_case_event(self, case_id: str, msg: str) -> Optional[Case]:
        with self.lock:
            case = self.get_case(case_id)
            if is_blank(msg):
                return None
            return self._replace_case(lifecycle.add_timeline_event(case, msg))

    def _replace_case(self, case: Case) -> Case:
        cases = [case if c.id == case.id else c for c in self.state.cases]
        self._commit(self.state.model_copy(update={"cases": cases}))
        return case

    # ------------------------------------------------------------------
    # Saved queries / UI
    # ------------------------------------------------------------------

    def save_query(self, name: Optional[str], query: Optional[str]) -> Optional[SavedQuery]:
        if is_blank(query) or is_blank(name):
            return None
        with self.lock:
            saved = SavedQuery(id=uid("sq"), name=name.strip(), query=query.strip())
            self._commit(self.state.model_copy(update={"saved_queries": [saved, *self.state.saved_queries]}))
            return saved

    def delete_saved_query(self, query_id: str) -> None:
        with self.lock:
            if lifecycle.find_by_id(self.state.saved_queries, query_id) is None:
                raise RecordNotFound("Saved query", query_id)
            remaining = [q for q in self.state.saved_queries if q.id != query_id]
            self._commit(self.state.model_copy(update={"saved_queries": remaining}))

    def set_ui(self, patch: Dict[str, Any]) -> UiState:
        """Merge ``patch`` into the UI state; a patch that fails validation changes nothing."""
        with self.lock:
            return self._commit(self._with_ui(self.state, **patch)).ui

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def toggle_generator(self) -> Preferences:
        with self.lock:
            prefs = self._commit_prefs(self.prefs.model_copy(update={"generator_on": not self.prefs.generator_on}))
            logger.info("Generator toggled on=%s", prefs.generator_on)
            return prefs

    def toggle_demo_seed(self) -> Preferences:
        with self.lock:
            return self._commit_prefs(self.prefs.model_copy(update={"demo_seed_on": not self.prefs.demo_seed_on}))

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "state": self.state.model_dump(mode="json", by_alias=True),
                "prefs": self.prefs.model_dump(mode="json", by_alias=True),
            }

    def import_snapshot(self, raw: Union[str, bytes, Dict[str, Any]]) -> SnapshotPayload:
        """
        Replace state (and prefs, when present) from an exported snapshot.
        The payload is validated in full first; on any error nothing changes.
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise SnapshotImportError("Invalid JSON.") from exc

        if not isinstance(raw, dict) or not raw.get("state"):
            raise SnapshotImportError("Missing state property.")

        try:
            payload = SnapshotPayload.model_validate(raw)
        except ValidationError as exc:
            raise SnapshotImportError(f"Snapshot failed validation ({exc.error_count()} errors).") from exc

        with self.lock:
            self._commit(payload.state)
            if payload.prefs is not None:
                self._commit_prefs(payload.prefs)
        logger.info("Snapshot imported alerts=%s cases=%s", len(payload.state.alerts), len(payload.state.cases))
        return payload


# ----------------------------------------------------------------------------
# Application-wide instance
# ----------------------------------------------------------------------------

_controller: Optional[SimulatorController] = None
_controller_lock = threading.Lock()


def build_controller() -> SimulatorController:
    Base.metadata.create_all(bind=engine)
    store = SnapshotStore(SessionLocal, settings.STORAGE_KEY, settings.PREFS_KEY)
    controller = SimulatorController(
        store,
        make_rng(settings.RANDOM_SEED),
        seed_alert_count=settings.SEED_ALERT_COUNT,
        seed_log_count=settings.SEED_LOG_COUNT,
        max_alerts=settings.MAX_ALERTS,
        max_logs=settings.MAX_LOGS,
        generator_on=settings.GENERATOR_ENABLED_AT_BOOT,
    )
    controller.load()
    return controller


def get_controller() -> SimulatorController:
    """
    Dependency for getting the simulator controller.
    Built on first use.
    """
    global _controller
    if _controller is None:
        with _controller_lock:
            if _controller is None:
                _controller = build_controller()
    return _controller
