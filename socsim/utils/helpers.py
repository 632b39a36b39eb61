"""
Helper utility functions
"""
import hashlib
import json
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any


def now_iso() -> str:
    """UTC timestamp in the snapshot format, e.g. 2024-01-07T10:30:00.123Z"""
    return to_iso(datetime.now(timezone.utc))


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def iso_ago(seconds: float) -> str:
    return to_iso(datetime.now(timezone.utc) - timedelta(seconds=seconds))


def uid(prefix: str = "id") -> str:
    """
    Unique-enough record id: prefix, hex millis, random hex
    e.g. al_18c2f6d1a2b_5e0c9f1d2a
    """
    millis = format(int(time.time() * 1000), "x")
    return f"{prefix}_{millis}_{uuid.uuid4().hex[:10]}"


def hash_data(data: Any) -> str:
    """
    Create SHA256 hash of data
    """
    if isinstance(data, dict):
        data_str = json.dumps(data, sort_keys=True)
    else:
        data_str = str(data)

    return hashlib.sha256(data_str.encode()).hexdigest()


def is_blank(value: Any) -> bool:
    """None or whitespace-only string"""
    return value is None or not str(value).strip()
