"""
Tests for the offline analyst tools.
"""

import pytest

from socsim.utils import tools

HEADERS_SAMPLE = """\
Received: from mail.example.net (mail.example.net [203.0.113.7])
Received-SPF: fail (domain of micr0soft-login.com does not designate 203.0.113.7)
From: "IT Support" <support@micr0soft-login.com>
Reply-To: helpdesk@evil.example
To: audra.rawlings@peachtreetc.com
Subject: Action required: verify your mailbox
Message-ID: <abc123@micr0soft-login.com>
"""


def test_analyze_headers_extracts_fields():
    result = tools.analyze_headers(HEADERS_SAMPLE)
    assert result["from_addr"] == '"IT Support" <support@micr0soft-login.com>'
    assert result["to"] == "audra.rawlings@peachtreetc.com"
    assert result["subject"] == "Action required: verify your mailbox"
    assert result["message_id"] == "<abc123@micr0soft-login.com>"
    assert result["received_hops"] == 1
    assert result["auth_hint"].startswith("fail")
    assert result["flags"] == [
        "SPF/DMARC failure indication present",
        "Very few Received hops (could be internal or malformed)",
        "Reply-To differs from From",
    ]


def test_analyze_headers_missing_fields():
    result = tools.analyze_headers("")
    assert result["from_addr"] == "(not found)"
    assert result["auth_hint"] == "(not found)"
    assert result["received_hops"] == 0


def test_clean_headers_have_no_auth_flag():
    text = "Received: a\nReceived: b\nAuthentication-Results: spf=pass\nFrom: it@peachtreetc.com\n"
    assert tools.analyze_headers(text)["flags"] == []


def test_defang_and_refang():
    assert tools.defang("https://evil.com/a and http://x.org") == "hxxps[://]evil[.]com/a and hxxp[://]x[.]org"
    assert tools.refang("hxxps[://]evil[.]com/a") == "https://evil.com/a"
    assert tools.refang("HXXP[://]x[.]org") == "http://x.org"


def test_sha256():
    assert tools.sha256_hex("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_base64():
    assert tools.b64_encode("hello") == "aGVsbG8="
    assert tools.b64_decode("aGVsbG8=") == "hello"
    assert tools.b64_decode(tools.b64_encode("naïve")) == "naïve"


@pytest.mark.parametrize("bad", ["!!!", "abc", "/w=="])
def test_base64_decode_rejects_bad_input(bad):
    with pytest.raises(ValueError):
        tools.b64_decode(bad)


def test_reputation_lookup():
    hit = tools.check_reputation("  Micr0soft-Login.com ")
    assert hit == {
        "indicator": "micr0soft-login.com",
        "score": 96,
        "verdict": "malicious",
        "notes": "Typosquat pattern (0 in microsoft).",
    }
    unknown = tools.check_reputation("example.org")
    assert (unknown["score"], unknown["verdict"]) == (35, "unknown")


def test_reputation_requires_indicator():
    with pytest.raises(ValueError):
        tools.check_reputation("   ")
