"""
Synthetic alert and log generation.

All randomness flows through one ``random.Random`` passed in by the caller,
so a fixed seed reproduces the same records (ids and timestamps aside).
"""

import random
from typing import Dict, List, Optional

from socsim.schemas import Alert, Asset, Evidence, LogEntry, Playbook, TimelineEvent, UserProfile
from socsim.utils.helpers import iso_ago, now_iso, uid


# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------

SEVERITY = ["low", "medium", "high"]
STATUS = ["new", "triage", "in-progress", "contained", "closed"]
SOURCES = ["M365", "Entra ID", "Defender", "Proofpoint", "EDR", "Firewall", "SIEM"]

TACTICS: List[Dict[str, object]] = [
    {"tactic": "Initial Access", "techniques": ["Phishing", "Drive-by", "Valid Accounts"]},
    {"tactic": "Execution", "techniques": ["PowerShell", "Office Macro", "User Execution"]},
    {"tactic": "Persistence", "techniques": ["Scheduled Task", "Browser Extension", "Service"]},
    {"tactic": "Privilege Escalation", "techniques": ["Token Theft", "UAC Bypass", "Sudo Abuse"]},
    {"tactic": "Defense Evasion", "techniques": ["Disable Security Tools", "Obfuscated Files", "Living off the Land"]},
    {"tactic": "Credential Access", "techniques": ["Password Spraying", "Phishing", "Credential Dumping (sim)"]},
    {"tactic": "Discovery", "techniques": ["Account Discovery", "Network Discovery", "Cloud Discovery"]},
    {"tactic": "Lateral Movement", "techniques": ["Remote Services", "RDP", "SMB"]},
    {"tactic": "Collection", "techniques": ["Email Collection", "Browser Data", "File Search"]},
    {"tactic": "Exfiltration", "techniques": ["Cloud Sync", "Web Upload", "Email Exfil"]},
]

ASSET_TABLE = [
    {"host": "FIN-WS-014", "os": "Windows 11", "owner": "Audra Rawlings", "dept": "Finance", "criticality": "high"},
    {"host": "MKT-MBP-007", "os": "macOS", "owner": "Erica Jackson", "dept": "Marketing", "criticality": "high"},
    {"host": "OPS-WS-003", "os": "Windows 11", "owner": "Luke Kimel", "dept": "Operations", "criticality": "medium"},
    {"host": "ADV-MBP-021", "os": "macOS", "owner": "Advisor (Sim)", "dept": "Advisors", "criticality": "medium"},
    {"host": "LAB-UBU-002", "os": "Ubuntu", "owner": "Tyler Seder", "dept": "IT", "criticality": "high"},
    {"host": "SRV-AZ-001", "os": "Azure VM", "owner": "IT (Sim)", "dept": "IT", "criticality": "high"},
]

USERS = [
    UserProfile(user="tyler.seder", display="Tyler Seder", role="IT", risk="low"),
    UserProfile(user="erica.jackson", display="Erica Jackson", role="Marketing", risk="low"),
    UserProfile(user="audra.rawlings", display="Audra Rawlings", role="Finance", risk="medium"),
    UserProfile(user="advisor.sim", display="Advisor (Sim)", role="Advisor", risk="medium"),
    UserProfile(user="vendor.msp", display="Vendor MSP (Sim)", role="Vendor", risk="high"),
]

LOG_ACTIONS = [
    "User sign-in succeeded",
    "User sign-in failed",
    "MFA challenge",
    "Mailbox rule created",
    "Forwarding changed",
    "OAuth consent granted",
    "Process started (sim)",
    "File downloaded",
    "Security policy updated",
    "Device compliance failed",
    "Admin role activated",
]

TECHNIQUE_TITLES = {
    "Phishing": "Possible phishing link clicked",
    "Password Spraying": "Password spray activity detected",
    "Valid Accounts": "Unusual login from new device",
    "OAuth consent granted": "New OAuth app consented",
    "Mailbox rule created": "Suspicious mailbox rule created",
    "PowerShell": "Suspicious PowerShell activity (sim)",
    "Disable Security Tools": "Security control tampering signal",
    "Cloud Sync": "High-volume cloud sync activity",
}

GEO_CODES = ["US-IL", "US-GA", "US-CA", "DE", "NL", "GB", "SG", "AU", "BR", "IN"]
ASNS = ["AS16509", "AS15169", "AS8075", "AS14618", "AS9009", "AS13335", "AS20940", "AS14061"]

INDICATOR_POOLS = {
    "benign": {
        "url": [
            "https://portal.office.com",
            "https://login.microsoftonline.com",
            "https://peachtreetc.com",
            "https://intranet.peachtreetc.com",
        ],
        "mail_from": [
            "hr@peachtreetc.com",
            "it@peachtreetc.com",
            "no-reply@microsoft.com",
            "alerts@security.com",
        ],
    },
    "suspicious": {
        "url": [
            "http://microsoft-auth-verify.com/login",
            "https://sharepoint-docs-login.net/view",
            "https://outlook-webmail-secure.org/auth",
            "http://verify-mfa-now.com",
        ],
        "mail_from": [
            "support@micr0soft-login.com",
            "billing@paypa1-secure.com",
            "docshare@sharepoint-login.net",
            "office@verify-mfa-now.com",
        ],
    },
}

# Technique -> indicator pool; anything not listed draws from "benign"
TECHNIQUE_POOLS = {
    "Phishing": "suspicious",
    "Valid Accounts": "suspicious",
    "OAuth consent granted": "suspicious",
    "Password Spraying": "suspicious",
}

PIVOT_EVIDENCE = Evidence(ip="0.0.0.0", geo="N/A", asn="N/A", hash="N/A", url="N/A", mail_from="N/A")


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def indicator_pool(technique: str) -> Dict[str, List[str]]:
    return INDICATOR_POOLS[TECHNIQUE_POOLS.get(technique, "benign")]


# ---------------------------------------------------------------------------
# Random draws
# ---------------------------------------------------------------------------

def random_ip(rng: random.Random) -> str:
    return f"{rng.randint(11, 223)}.{rng.randint(0, 255)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}"


def random_hash(rng: random.Random) -> str:
    return "".join(rng.choice("0123456789abcdef") for _ in range(64))


def random_evidence(rng: random.Random, technique: str) -> Evidence:
    pool = indicator_pool(technique)
    return Evidence(
        ip=random_ip(rng),
        geo=rng.choice(GEO_CODES),
        asn=rng.choice(ASNS),
        hash=random_hash(rng),
        url=rng.choice(pool["url"]),
        mail_from=rng.choice(pool["mail_from"]),
    )


def _draw_context(rng: random.Random, force_severity: Optional[str] = None) -> Dict[str, str]:
    tactic = rng.choice(TACTICS)
    return {
        "tactic": tactic["tactic"],
        "technique": rng.choice(tactic["techniques"]),
        "source": rng.choice(SOURCES),
        "severity": force_severity or rng.choice(SEVERITY),
        "user": rng.choice(USERS).user,
        "host": rng.choice(ASSET_TABLE)["host"],
    }


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

def generate_alert(rng: random.Random, force_severity: Optional[str] = None) -> Alert:
    """Synthesize one new alert with randomized context and evidence."""
    ctx = _draw_context(rng, force_severity)
    title = TECHNIQUE_TITLES.get(ctx["technique"], f"{ctx['tactic']} indicator observed")
    summary = (
        f"source={ctx['source']} user={ctx['user']} host={ctx['host']} "
        f"tactic=\"{ctx['tactic']}\" technique=\"{ctx['technique']}\""
    )
    created = now_iso()

    return Alert(
        id=uid("al"),
        created_at=created,
        status="new",
        title=title,
        summary=summary,
        tags=[ctx["tactic"], ctx["technique"], ctx["source"], ctx["severity"]],
        evidence=random_evidence(rng, ctx["technique"]),
        notes=[],
        timeline=[TimelineEvent(ts=created, type="created", msg="Alert generated (simulation).")],
        **ctx,
    )


def log_from_alert(alert: Alert) -> LogEntry:
    """Correlated telemetry event emitted alongside a generated alert."""
    return LogEntry(
        id=uid("log"),
        ts=now_iso(),
        source=alert.source,
        severity=alert.severity,
        action=f"Alert generated: {alert.title}",
        user=alert.user,
        host=alert.host,
        tactic=alert.tactic,
        technique=alert.technique,
        details=alert.summary,
        tags=list(alert.tags),
    )


def seed_alerts(rng: random.Random, count: int = 16) -> List[Alert]:
    return [generate_alert(rng) for _ in range(count)]


def seed_logs(rng: random.Random, count: int = 240) -> List[LogEntry]:
    """Background telemetry spread over the last 36 hours, newest first."""
    logs = []
    for _ in range(count):
        ctx = _draw_context(rng)
        event = ctx["source"].lower().replace(" ", "_")
        logs.append(LogEntry(
            id=uid("log"),
            ts=iso_ago(rng.uniform(0, 60 * 60 * 36)),
            action=rng.choice(LOG_ACTIONS),
            details=f"event={event} user={ctx['user']} host={ctx['host']} technique=\"{ctx['technique']}\"",
            tags=[ctx["tactic"], ctx["technique"], ctx["source"], ctx["severity"]],
            **ctx,
        ))
    logs.sort(key=lambda log: log.ts, reverse=True)
    return logs


def default_assets() -> List[Asset]:
    seen = now_iso()
    return [Asset(id=uid("asset"), last_seen=seen, **row) for row in ASSET_TABLE]


def default_playbooks() -> List[Playbook]:
    return [
        Playbook(
            id=uid("pb"),
            title="Suspicious Sign-in (Cloud)",
            summary=(
                "Triage risky sign-in alerts: validate user, IP reputation, MFA status, device posture, "
                "and recent activity. Contain quickly if indicators are strong."
            ),
            steps=[
                "Confirm alert source and timestamp; check for correlated events (MFA resets, impossible travel).",
                "Validate user context: expected travel? new device? delegated admin?",
                "Check IP: geo, ASN, known VPN/hosting providers (simulation list).",
                "Review conditional access outcomes; confirm MFA challenge and result.",
                "Contain if needed: revoke sessions, reset password, require MFA re-registration, block sign-in from IP.",
                "Document: timeline, evidence, actions, and user notification.",
            ],
            artifacts=["Sign-in logs", "Conditional Access report", "User timeline", "Session revocation record"],
            severity_map={"low": "Monitor", "medium": "Validate", "high": "Contain"},
        ),
        Playbook(
            id=uid("pb"),
            title="Phishing Reported by User",
            summary=(
                "Standard response flow: gather headers, assess links/attachments, search for similar messages, "
                "quarantine, educate."
            ),
            steps=[
                "Collect the suspicious email (headers + body) using the analysis tools.",
                "Defang and inspect URLs; check for lookalike domains and redirect chains (simulation).",
                "Search mail for similar messages across users; identify impacted recipients.",
                "Quarantine/remove malicious emails if confirmed; block sender/domain as appropriate.",
                "Reset credentials or sessions for any user who interacted with the message.",
                "Record findings and create awareness follow-up.",
            ],
            artifacts=["Email headers", "URL analysis", "Message trace results", "Remediation actions"],
            severity_map={"low": "Educate", "medium": "Quarantine", "high": "Quarantine + Reset"},
        ),
        Playbook(
            id=uid("pb"),
            title="Endpoint Malware Signal (EDR)",
            summary=(
                "Runbook for endpoint detections: isolate host, gather triage package, check persistence, "
                "remediate, confirm."
            ),
            steps=[
                "Validate detection: file path, process tree, parent/child processes, hashes.",
                "Isolate endpoint if high confidence or active threat.",
                "Collect triage data: autoruns (sim), scheduled tasks, browser extensions, recent downloads.",
                "Remove/purge artifacts and revert persistence mechanisms (sim steps).",
                "Re-enable protections and confirm clean state; monitor for recurrence.",
            ],
            artifacts=["Process tree", "File hashes", "Persistence checks", "Isolate/Release record"],
            severity_map={"low": "Validate", "medium": "Triage", "high": "Isolate"},
        ),
    ]
