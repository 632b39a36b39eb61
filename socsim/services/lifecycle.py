"""
Record lifecycle: patches, notes, timeline history, alert -> case linkage
and log -> alert pivots.

Every function builds complete new records and returns them; inputs are
never modified in place.

Status values follow new -> triage -> in-progress -> contained -> closed,
but any status may be set from any other (closed can be reopened). The only
rule enforced is that a status change appends exactly one timeline entry.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, TypeVar, Union

from socsim.schemas import Alert, AppState, Case, LogEntry, Note, TimelineEvent
from socsim.services.synthesis import PIVOT_EVIDENCE
from socsim.utils.helpers import is_blank, now_iso, uid

logger = logging.getLogger(__name__)

Record = TypeVar("Record", Alert, Case)

PRIORITY_BY_SEVERITY = {"high": "high", "medium": "medium"}


def priority_for(severity: str) -> str:
    return PRIORITY_BY_SEVERITY.get(severity, "low")


def timeline_event(event_type: str, msg: str) -> TimelineEvent:
    return TimelineEvent(ts=now_iso(), type=event_type, msg=msg)


def find_by_id(records: List[Any], record_id: str) -> Optional[Any]:
    return next((r for r in records if r.id == record_id), None)


# ----------------------------------------------------------------------------
# Patching
# ----------------------------------------------------------------------------

def apply_patch(record: Record, patch: Dict[str, Any]) -> Record:
    """
    Merge patch fields into a copy of the record.
    A status different from the current one appends a status timeline entry.
    """
    merged = record.model_dump()
    merged.update(patch)

    new_status = patch.get("status")
    if new_status and new_status != record.status:
        entry = timeline_event("status", f"Status changed: {record.status} → {new_status}")
        merged["timeline"] = list(merged.get("timeline") or []) + [entry]

    return type(record).model_validate(merged)


def _update_in(records: List[Record], record_id: str, patch: Dict[str, Any]) -> List[Record]:
    return [apply_patch(r, patch) if r.id == record_id else r for r in records]


def update_alert(alerts: List[Alert], alert_id: str, patch: Dict[str, Any]) -> List[Alert]:
    """Unknown ids leave the collection unchanged."""
    return _update_in(alerts, alert_id, patch)


def update_case(cases: List[Case], case_id: str, patch: Dict[str, Any]) -> List[Case]:
    return _update_in(cases, case_id, patch)


# ----------------------------------------------------------------------------
# History
# ----------------------------------------------------------------------------

def add_note(record: Record, body: str, msg: str = "Analyst note added.") -> Record:
    """Append a note and its matching timeline entry. Blank bodies are rejected."""
    if is_blank(body):
        raise ValueError("note body must not be blank")
    ts = now_iso()
    return record.model_copy(update={
        "notes": [*record.notes, Note(ts=ts, body=body)],
        "timeline": [*record.timeline, TimelineEvent(ts=ts, type="note", msg=msg)],
    })


def add_timeline_event(record: Record, msg: str) -> Record:
    """Manual timeline entry typed by the analyst."""
    if is_blank(msg):
        raise ValueError("timeline message must not be blank")
    return record.model_copy(update={"timeline": [*record.timeline, timeline_event("event", msg)]})


# ----------------------------------------------------------------------------
# Cases
# ----------------------------------------------------------------------------

def new_case_from_alert(state: AppState, alert_id: str) -> Optional[Tuple[AppState, Case]]:
    """
    Open a case linked to one alert and move the alert to triage.

    Returns:
        (new_state, case), or None when the alert does not exist
        (state is left untouched).
    """
    alert = find_by_id(state.alerts, alert_id)
    if alert is None:
        logger.warning("Cannot create case: alert %s not found", alert_id)
        return None

    case = Case(
        id=uid("case"),
        created_at=now_iso(),
        title=f"Case: {alert.title}",
        summary=f"Investigate {alert.severity} alert from {alert.source} for user={alert.user} host={alert.host}.",
        owner="analyst",
        status="new",
        priority=priority_for(alert.severity),
        alert_ids=[alert_id],
        notes=[],
        timeline=[timeline_event("created", "Case created from alert.")],
    )

    new_state = state.model_copy(update={
        "cases": [case, *state.cases],
        "alerts": update_alert(state.alerts, alert_id, {"status": "triage"}),
    })
    logger.info("Case %s created from alert %s priority=%s", case.id, alert_id, case.priority)
    return new_state, case


def new_case_manual(title: Optional[str], summary: Optional[str] = "") -> Optional[Case]:
    """Standalone case; a blank or cancelled title creates nothing."""
    if is_blank(title):
        return None
    return Case(
        id=uid("case"),
        created_at=now_iso(),
        title=title.strip(),
        summary=summary or "",
        owner="analyst",
        status="new",
        priority="medium",
        alert_ids=[],
        notes=[],
        timeline=[timeline_event("created", "Manual case created.")],
    )


def linked_alerts(state: AppState, case: Case) -> List[Alert]:
    """Resolve a case's alert ids, skipping alerts that no longer exist."""
    by_id = {a.id: a for a in state.alerts}
    return [by_id[aid] for aid in case.alert_ids if aid in by_id]


# ----------------------------------------------------------------------------
# Pivot
# ----------------------------------------------------------------------------

def log_to_alert(log: Union[LogEntry, Dict[str, Any]]) -> Alert:
    """Convert a log entry into a new alert. The log itself is not modified."""
    if isinstance(log, dict):
        log = LogEntry.model_validate(log)
    created = now_iso()
    return Alert(
        id=uid("al"),
        created_at=created,
        source=log.source,
        severity=log.severity,
        status="new",
        title=f"Log Pivot: {log.action}",
        summary=f"pivot_from_log id={log.id} {log.details}",
        user=log.user,
        host=log.host,
        tactic=log.tactic,
        technique=log.technique,
        tags=[log.tactic, log.technique, log.source, log.severity, "pivot"],
        evidence=PIVOT_EVIDENCE.model_copy(),
        notes=[],
        timeline=[TimelineEvent(ts=created, type="created", msg="Alert created from log pivot (simulation).")],
    )
