"""
Pytest configuration and fixtures
"""
import os
import tempfile

import pytest

# Set test environment before anything imports socsim.config
_TMP_DIR = tempfile.mkdtemp(prefix="socsim-test-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'api.db')}"
os.environ["API_KEY"] = "test-api-key"
os.environ["RATE_LIMIT"] = "10000/minute"
os.environ["GENERATOR_ENABLED_AT_BOOT"] = "false"
os.environ["RANDOM_SEED"] = "1234"
os.environ["LOG_LEVEL"] = "WARNING"

from sqlalchemy.orm import sessionmaker  # noqa: E402

from socsim.database import Base, build_engine  # noqa: E402
from socsim.schemas import Alert, Evidence, LogEntry  # noqa: E402
from socsim.services.simulator import SimulatorController  # noqa: E402
from socsim.services.store import SnapshotStore  # noqa: E402
from socsim.services.synthesis import make_rng  # noqa: E402


@pytest.fixture
def store(tmp_path):
    """Snapshot store on its own SQLite file"""
    engine = build_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield SnapshotStore(factory, "state_test", "prefs_test")
    engine.dispose()


@pytest.fixture
def controller(store):
    """Small, seeded controller: 6 demo alerts, 20 logs, caps of 10 / 15"""
    ctl = SimulatorController(
        store,
        make_rng(7),
        seed_alert_count=6,
        seed_log_count=20,
        max_alerts=10,
        max_logs=15,
        generator_on=True,
    )
    ctl.load()
    return ctl


@pytest.fixture
def make_alert():
    def _make(**overrides) -> Alert:
        data = dict(
            id="al_test_0001",
            created_at="2024-01-07T10:30:00.000Z",
            source="Entra ID",
            severity="high",
            status="new",
            title="Unusual login from new device",
            summary="source=Entra ID user=tyler.seder host=LAB-UBU-002",
            user="tyler.seder",
            host="LAB-UBU-002",
            tactic="Initial Access",
            technique="Valid Accounts",
            tags=["Initial Access", "Valid Accounts", "Entra ID", "high"],
            evidence=Evidence(
                ip="34.117.59.81",
                geo="US-IL",
                asn="AS15169",
                hash="ab" * 32,
                url="https://sharepoint-docs-login.net/view",
                mail_from="office@verify-mfa-now.com",
            ),
        )
        data.update(overrides)
        return Alert(**data)

    return _make


@pytest.fixture
def make_log():
    def _make(**overrides) -> LogEntry:
        data = dict(
            id="log_test_0001",
            ts="2024-01-07T10:31:00.000Z",
            source="Entra ID",
            severity="high",
            action="User sign-in failed",
            user="audra.rawlings",
            host="FIN-WS-014",
            tactic="Credential Access",
            technique="Password Spraying",
            details='event=entra_id user=audra.rawlings host=FIN-WS-014 technique="Password Spraying"',
            tags=["Credential Access", "Password Spraying", "Entra ID", "high"],
        )
        data.update(overrides)
        return LogEntry(**data)

    return _make
