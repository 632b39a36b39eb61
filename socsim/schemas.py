"""
Pydantic schemas for simulator records, snapshots and API payloads.
Field names are snake_case in Python and camelCase on the wire.
Pydantic v2 compatible (no class-based Config).
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional


Severity = Literal["low", "medium", "high"]
Status = Literal["new", "triage", "in-progress", "contained", "closed"]


class SimModel(BaseModel):
    """Base for every record: camelCase aliases, populate by either name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# HISTORY
# ============================================================================

class Note(SimModel):
    ts: str
    body: str


class TimelineEvent(SimModel):
    ts: str
    type: str  # created, status, note, event
    msg: str


# ============================================================================
# RECORDS
# ============================================================================

class Evidence(SimModel):
    """Simulated indicators. Cosmetic, never validated."""
    ip: str
    geo: str
    asn: str
    hash: str
    url: str
    mail_from: str


class Alert(SimModel):
    """One simulated security detection"""
    id: str
    created_at: str
    source: str
    severity: Severity
    status: Status = "new"
    title: str
    summary: str = ""
    user: str = ""
    host: str = ""
    tactic: str = ""
    technique: str = ""
    tags: List[str] = []
    evidence: Evidence
    notes: List[Note] = []
    timeline: List[TimelineEvent] = []


class LogEntry(SimModel):
    """One raw simulated telemetry event"""
    id: str
    ts: str
    source: str
    severity: Severity
    action: str
    user: str = ""
    host: str = ""
    tactic: str = ""
    technique: str = ""
    details: str = ""
    tags: List[str] = []


class Case(SimModel):
    """Investigation referencing zero or more alerts by id"""
    id: str
    created_at: str
    title: str
    summary: str = ""
    owner: str = "analyst"
    status: Status = "new"
    priority: Severity = "medium"
    alert_ids: List[str] = []
    notes: List[Note] = []
    timeline: List[TimelineEvent] = []


class SavedQuery(SimModel):
    id: str
    name: str
    query: str


class Asset(SimModel):
    id: str
    host: str
    os: str
    owner: str
    dept: str
    criticality: Severity
    last_seen: str


class UserProfile(SimModel):
    user: str
    display: str
    role: str
    risk: Severity


class Playbook(SimModel):
    """Static runbook document (not executable)"""
    id: str
    title: str
    summary: str
    steps: List[str]
    artifacts: List[str]
    severity_map: Dict[str, str]


# ============================================================================
# STATE / SNAPSHOT
# ============================================================================

class UiState(SimModel):
    alert_query: str = ""
    log_query: str = ""
    selected_alert_id: Optional[str] = None
    selected_case_id: Optional[str] = None
    selected_playbook_id: Optional[str] = None


class AppState(SimModel):
    version: int = 1
    created_at: str
    alerts: List[Alert] = []
    logs: List[LogEntry] = []
    assets: List[Asset] = []
    cases: List[Case] = []
    playbooks: List[Playbook] = []
    saved_queries: List[SavedQuery] = []
    ui: UiState = Field(default_factory=UiState)


class Preferences(SimModel):
    generator_on: bool = True
    demo_seed_on: bool = True


class SnapshotPayload(SimModel):
    """Export/import envelope"""
    state: AppState
    prefs: Optional[Preferences] = None


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class AlertPatch(SimModel):
    status: Optional[Status] = None
    severity: Optional[Severity] = None
    title: Optional[str] = None
    summary: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"status": "in-progress", "severity": "high"}},
    )


class CasePatch(SimModel):
    status: Optional[Status] = None
    priority: Optional[Severity] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    owner: Optional[str] = None


class NoteCreate(SimModel):
    # Blank bodies are accepted and treated as an abandoned action
    body: str = ""


class TimelineEventCreate(SimModel):
    msg: str = ""


class CaseCreate(SimModel):
    title: str = ""
    summary: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Case: Investigation",
                "summary": "What happened, what's the scope, what's next?",
            }
        },
    )


class SavedQueryCreate(SimModel):
    name: str = ""
    query: str = ""


class UiPatch(SimModel):
    # Queries can be cleared with "" but never null
    alert_query: str = ""
    log_query: str = ""
    selected_alert_id: Optional[str] = None
    selected_case_id: Optional[str] = None
    selected_playbook_id: Optional[str] = None


class ToolText(SimModel):
    text: str = ""


class ReputationRequest(SimModel):
    indicator: str = ""


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class ActionResult(SimModel):
    """Outcome of an action that may be abandoned on empty input"""
    ok: bool
    abandoned: bool = False
    message: str = ""


class CaseDetail(Case):
    """Case plus the linked alerts that still exist"""
    linked_alerts: List[Alert] = []


class CaseFromAlertResult(SimModel):
    case: Case
    alert: Alert


class TickResult(SimModel):
    generated: bool
    alert: Optional[Alert] = None
    log: Optional[LogEntry] = None


class DashboardStats(SimModel):
    total_alerts: int
    open_alerts: int
    new_alerts: int
    high_open_alerts: int
    total_cases: int
    active_cases: int
    total_logs: int
    generator_on: bool


class ToolOutput(SimModel):
    output: str


class HeaderAnalysis(SimModel):
    from_addr: str
    to: str
    subject: str
    message_id: str
    received_hops: int
    auth_hint: str
    flags: List[str]


class ReputationResult(SimModel):
    indicator: str
    score: int
    verdict: str
    notes: str
