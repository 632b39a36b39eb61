"""
Query language for filtering alerts, logs and cases.

Grammar (whitespace separated, double quotes keep spaces together):

    severity:high AND source:"Entra ID"
    phishing OR technique:phishing
    NOT status:closed user:tyler

- ``field:value``  fielded term, substring match on one attribute
- ``value``        free-text term, substring match on a bag of key attributes
- ``AND`` / ``OR`` combinator for the next term (``AND`` is implicit)
- ``NOT``          negates the next term only; ``NOT NOT x`` is ``x``

Evaluation is strictly left to right with no precedence and no grouping:
``a OR b AND c`` means ``(a OR b) AND c``. Operators that have no term to
apply to (leading ``AND``/``OR``, trailing operators) are ignored.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Union

OPERATORS = ("AND", "OR", "NOT")

_FIELDED = re.compile(r"^([A-Za-z_]+):(.*)$", re.DOTALL)

# Query field name -> attribute path on the record
QUERY_FIELDS = {
    "id": ("id",),
    "title": ("title",),
    "summary": ("summary",),
    "source": ("source",),
    "severity": ("severity",),
    "status": ("status",),
    "user": ("user",),
    "host": ("host",),
    "tactic": ("tactic",),
    "technique": ("technique",),
    "action": ("action",),
    "details": ("details",),
    "owner": ("owner",),
    "priority": ("priority",),
    "ts": ("ts",),
    "createdat": ("created_at",),
    "ip": ("evidence", "ip"),
    "geo": ("evidence", "geo"),
    "asn": ("evidence", "asn"),
    "hash": ("evidence", "hash"),
    "url": ("evidence", "url"),
    "mailfrom": ("evidence", "mail_from"),
}

TAG_FIELDS = ("tag", "tags")

FREE_TEXT_FIELDS = ("title", "summary", "source", "severity", "user", "host", "tactic", "technique")


@dataclass(frozen=True)
class Term:
    value: str
    field: Optional[str] = None


@dataclass
class ParsedQuery:
    terms: List[Term] = field(default_factory=list)
    operators: List[str] = field(default_factory=list)
    # Terms and operators interleaved in their original order
    tokens: List[Union[Term, str]] = field(default_factory=list)


# ----------------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------------

def tokenize(query: str) -> List[str]:
    """Split on whitespace, keeping double-quoted spans whole (quotes dropped)."""
    tokens: List[str] = []
    current = ""
    in_quotes = False
    for ch in query:
        if ch == '"':
            in_quotes = not in_quotes
            continue
        if not in_quotes and ch.isspace():
            if current:
                tokens.append(current)
                current = ""
        else:
            current += ch
    if current:
        tokens.append(current)
    return tokens


def parse_query(query: Optional[str]) -> ParsedQuery:
    parsed = ParsedQuery()
    query = (query or "").strip()
    if not query:
        return parsed

    for token in tokenize(query):
        upper = token.upper()
        if upper in OPERATORS:
            parsed.operators.append(upper)
            parsed.tokens.append(upper)
            continue

        match = _FIELDED.match(token)
        if match:
            term = Term(field=match.group(1).lower(), value=match.group(2).lower())
        else:
            term = Term(value=token.lower())
        parsed.terms.append(term)
        parsed.tokens.append(term)

    return parsed


# ----------------------------------------------------------------------------
# Matching
# ----------------------------------------------------------------------------

def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value).lower()
    return str(value).lower()


def _resolve(record: Any, path: Sequence[str]) -> Any:
    value = record
    for attr in path:
        value = getattr(value, attr, None)
        if value is None:
            return None
    return value


def field_text(record: Any, name: str) -> Optional[str]:
    """
    Lower-cased text of a queryable field.
    Returns None for names outside QUERY_FIELDS; a field the record
    does not carry is the empty string.
    """
    if name in TAG_FIELDS:
        return _stringify(getattr(record, "tags", None))
    path = QUERY_FIELDS.get(name)
    if path is None:
        return None
    return _stringify(_resolve(record, path))


def free_text_bag(record: Any) -> str:
    parts = [_stringify(getattr(record, name, None)) for name in FREE_TEXT_FIELDS]
    parts.append(_stringify(getattr(record, "tags", None)))
    return " • ".join(parts)


def term_matches(record: Any, term: Term) -> bool:
    if term.field is None:
        return term.value in free_text_bag(record)
    text = field_text(record, term.field)
    if text is None:
        return False
    # "user:" matches everything
    return term.value in text


def match_query(record: Any, query: Union[str, ParsedQuery, None]) -> bool:
    """True when the record satisfies the query. Blank queries match everything."""
    parsed = query if isinstance(query, ParsedQuery) else parse_query(query)
    if not parsed.terms:
        return True

    result: Optional[bool] = None
    pending = "AND"
    negate = False

    for token in parsed.tokens:
        if isinstance(token, str):
            if token == "NOT":
                negate = not negate
            else:
                pending = token
            continue

        ok = term_matches(record, token)
        if negate:
            ok = not ok

        if result is None:
            result = ok
        elif pending == "OR":
            result = result or ok
        else:
            result = result and ok

        pending = "AND"
        negate = False

    return bool(result)


def filter_records(records: Iterable[Any], query: Optional[str], limit: Optional[int] = None) -> List[Any]:
    parsed = parse_query(query)
    hits = [r for r in records if match_query(r, parsed)]
    if limit is not None:
        hits = hits[:limit]
    return hits
