"""
SPF and DMARC record tokenizers.
Turn raw TXT text into typed records once, so evaluators never re-scan strings.
Malformed terms and tags are skipped rather than raised.
"""
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.constants import (
    DMARC_MARKER,
    DMARC_POLICIES,
    SPF_MARKER,
    SPF_QUALIFIERS,
    SPF_STRONG_QUALIFIERS,
    SPF_VERSION,
)

# name=value, where name cannot contain ':' or '/' (keeps include:a=b a mechanism)
_MODIFIER_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9_.-]*)=(.*)$")
_MECHANISM_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_.-]*$")


@dataclass(frozen=True)
class SPFMechanism:
    qualifier: str  # + - ~ ? (+ when omitted)
    name: str  # all, include, a, mx, ip4, ...
    value: Optional[str] = None  # text after ':' (domain, network), None when absent
    term: str = ""  # term as written

    @property
    def is_strong(self) -> bool:
        return self.qualifier in SPF_STRONG_QUALIFIERS


@dataclass
class SPFRecord:
    """Parsed v=spf1 record: ordered mechanisms plus modifiers (redirect, exp, ...)."""

    raw: str
    mechanisms: list[SPFMechanism] = field(default_factory=list)
    modifiers: dict[str, str] = field(default_factory=dict)

    def _all(self) -> Optional[SPFMechanism]:
        for m in self.mechanisms:
            if m.name == "all":
                return m
        return None

    @property
    def all_term(self) -> Optional[str]:
        """The all mechanism as written (-all, ~all, all, ...), or None."""
        m = self._all()
        return m.term if m else None

    @property
    def all_qualifier(self) -> Optional[str]:
        m = self._all()
        return m.qualifier if m else None

    @property
    def has_strong_all(self) -> bool:
        m = self._all()
        return bool(m and m.is_strong)

    @property
    def redirect(self) -> Optional[str]:
        return self.modifiers.get("redirect") or None

    @property
    def includes(self) -> list[str]:
        return [m.value for m in self.mechanisms if m.name == "include" and m.value]


@dataclass
class DMARCRecord:
    """Parsed v=DMARC1 record: ordered tag=value pairs, first occurrence wins."""

    raw: str
    tags: dict[str, str] = field(default_factory=dict)

    def tag(self, name: str) -> Optional[str]:
        return self.tags.get(name.lower())

    def _policy_tag(self, name: str) -> Optional[str]:
        value = (self.tag(name) or "").lower()
        return value if value in DMARC_POLICIES else None

    @property
    def policy(self) -> Optional[str]:
        """p= normalized to none|quarantine|reject; unknown values count as absent."""
        return self._policy_tag("p")

    @property
    def subdomain_policy(self) -> Optional[str]:
        return self._policy_tag("sp")

    @property
    def pct(self) -> Optional[int]:
        value = self.tag("pct")
        if value is None or not value.isdigit():
            return None
        return int(value)

    @property
    def rua(self) -> list[str]:
        return _uri_list(self.tag("rua"))

    @property
    def ruf(self) -> list[str]:
        return _uri_list(self.tag("ruf"))


def _uri_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [u.strip() for u in value.split(",") if u.strip()]


def _strip_record(text: str) -> str:
    return text.strip().strip('"').strip()


def parse_spf(text: str) -> SPFRecord:
    """Tokenize an SPF record into mechanisms and modifiers."""
    raw = _strip_record(text)
    record = SPFRecord(raw=raw)
    for term in raw.split():
        if term.lower() == SPF_VERSION:
            continue
        modifier = _MODIFIER_RE.match(term)
        if modifier:
            name = modifier.group(1).lower()
            # RFC 7208 6: redirect and exp appear at most once; keep the first
            record.modifiers.setdefault(name, modifier.group(2).strip())
            continue
        qualifier = "+"
        body = term
        if term[0] in SPF_QUALIFIERS:
            qualifier, body = term[0], term[1:]
        name, sep, value = body.partition(":")
        if not sep:
            # a/24, mx/24: CIDR suffix without a domain
            name = body.split("/", 1)[0]
            value = None
        if not _MECHANISM_NAME_RE.match(name):
            continue
        record.mechanisms.append(
            SPFMechanism(qualifier=qualifier, name=name.lower(), value=value or None, term=term)
        )
    return record


def parse_dmarc(text: str) -> DMARCRecord:
    """Split a DMARC record into tag=value segments."""
    raw = _strip_record(text)
    record = DMARCRecord(raw=raw)
    for part in raw.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        k, v = part.split("=", 1)
        k, v = k.strip().lower(), v.strip()
        if not k:
            continue
        record.tags.setdefault(k, v)
    return record


def extract_tag(record_text: str, tag: str) -> Optional[str]:
    """Value of a DMARC tag in raw record text, or None when the tag is absent."""
    return parse_dmarc(record_text).tag(tag)


def _select(txts: Iterable[str], marker: str) -> Optional[str]:
    for t in txts:
        if marker in t:
            return _strip_record(t)
    return None


def select_spf_record(txts: Iterable[str]) -> Optional[str]:
    """First TXT string carrying an SPF version tag, quotes stripped."""
    return _select(txts, SPF_MARKER)


def select_dmarc_record(txts: Iterable[str]) -> Optional[str]:
    """First TXT string carrying a DMARC version tag, quotes stripped."""
    return _select(txts, DMARC_MARKER)
