"""
Offline analyst tools: email header triage, URL defang/refang,
hashing/encoding and a toy reputation lookup.

Nothing here touches the network.
"""

import base64
import binascii
import re
from typing import Dict, List, Optional

from socsim.utils.helpers import hash_data, is_blank

REPUTATION_DB: Dict[str, Dict[str, object]] = {
    "8.8.8.8": {"score": 10, "verdict": "benign", "notes": "Public resolver (example)."},
    "1.1.1.1": {"score": 10, "verdict": "benign", "notes": "Public resolver (example)."},
    "sharepoint-docs-login.net": {"score": 92, "verdict": "malicious", "notes": "Lookalike domain pattern."},
    "verify-mfa-now.com": {"score": 88, "verdict": "malicious", "notes": "Common phishing lure phrasing."},
    "micr0soft-login.com": {"score": 96, "verdict": "malicious", "notes": "Typosquat pattern (0 in microsoft)."},
    "login.microsoftonline.com": {"score": 5, "verdict": "benign", "notes": "Legitimate Microsoft login."},
}

UNKNOWN_REPUTATION = {
    "score": 35,
    "verdict": "unknown",
    "notes": "Not in local list. Treat as unknown and gather more context.",
}

NOT_FOUND = "(not found)"


# ----------------------------------------------------------------------------
# Email headers
# ----------------------------------------------------------------------------

def _header(lines: List[str], name: str) -> Optional[str]:
    pattern = re.compile(r"^" + re.escape(name) + r"\s*:\s*(.*)$", re.IGNORECASE)
    for line in lines:
        match = pattern.match(line)
        if match:
            return match.group(1).strip()
    return None


def analyze_headers(text: str) -> Dict[str, object]:
    """
    Pull common fields out of pasted email headers and flag obvious issues.
    A simulation parser: one header per line, no folding.
    """
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]

    sender = _header(lines, "From") or NOT_FOUND
    received = sum(1 for line in lines if re.match(r"^Received:", line, re.IGNORECASE))
    auth = _header(lines, "Received-SPF") or _header(lines, "Authentication-Results") or NOT_FOUND
    reply_to = _header(lines, "Reply-To")

    flags = []
    if re.search(r"fail", auth, re.IGNORECASE):
        flags.append("SPF/DMARC failure indication present")
    if received <= 1:
        flags.append("Very few Received hops (could be internal or malformed)")
    if reply_to and reply_to != sender:
        flags.append("Reply-To differs from From")

    return {
        "from_addr": sender,
        "to": _header(lines, "To") or NOT_FOUND,
        "subject": _header(lines, "Subject") or NOT_FOUND,
        "message_id": _header(lines, "Message-ID") or NOT_FOUND,
        "received_hops": received,
        "auth_hint": auth,
        "flags": flags,
    }


# ----------------------------------------------------------------------------
# URL defang / refang
# ----------------------------------------------------------------------------

def defang(text: str) -> str:
    def _scheme(match: re.Match) -> str:
        return "hxxps[://]" if match.group(0).lower().startswith("https") else "hxxp[://]"

    out = re.sub(r"https?://", _scheme, text or "", flags=re.IGNORECASE)
    return out.replace(".", "[.]")


def refang(text: str) -> str:
    out = re.sub(r"hxxps\[://\]", "https://", text or "", flags=re.IGNORECASE)
    out = re.sub(r"hxxp\[://\]", "http://", out, flags=re.IGNORECASE)
    return out.replace("[.]", ".")


# ----------------------------------------------------------------------------
# Hash & encoding
# ----------------------------------------------------------------------------

def sha256_hex(text: str) -> str:
    return hash_data(text or "")


def b64_encode(text: str) -> str:
    return base64.b64encode((text or "").encode("utf-8")).decode("ascii")


def b64_decode(text: str) -> str:
    try:
        return base64.b64decode((text or "").strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError("Base64 decode failed (input not valid Base64).") from exc


# ----------------------------------------------------------------------------
# Reputation (toy model)
# ----------------------------------------------------------------------------

def check_reputation(indicator: str) -> Dict[str, object]:
    if is_blank(indicator):
        raise ValueError("Enter an IP or domain.")
    key = indicator.strip().lower()
    hit = REPUTATION_DB.get(key, UNKNOWN_REPUTATION)
    return {"indicator": key, **hit}
