"""
Observations: human-readable commentary collected while SPF and DMARC are evaluated.
They form the audit trail of a check and never influence control flow.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

# Levels (console renderer maps each to a colored marker)
INFO = "info"
GOOD = "good"
WARNING = "warning"
ERROR = "error"
LEVELS = (INFO, GOOD, WARNING, ERROR)

AXIS_SPF = "spf"
AXIS_DMARC = "dmarc"
AXIS_VERDICT = "verdict"

OBSERVATION_IDS = {
    "CHECK_START": "check_start",
    "SPF_FOUND": "spf_found",
    "SPF_MISSING": "spf_missing",
    "SPF_LOOKUP_FAILED": "spf_lookup_failed",
    "SPF_ALL_STRONG": "spf_all_strong",
    "SPF_ALL_WEAK": "spf_all_weak",
    "SPF_NO_ALL": "spf_no_all",
    "SPF_REDIRECT": "spf_redirect",
    "SPF_REDIRECT_STRONG": "spf_redirect_strong",
    "SPF_REDIRECT_WEAK": "spf_redirect_weak",
    "SPF_INCLUDE": "spf_include",
    "SPF_INCLUDES_STRONG": "spf_includes_strong",
    "SPF_INCLUDES_WEAK": "spf_includes_weak",
    "SPF_RECURSION_LIMIT": "spf_recursion_limit",
    "DNS_LOOKUP_LIMIT": "dns_lookup_limit",
    "DMARC_FOUND": "dmarc_found",
    "DMARC_MISSING": "dmarc_missing",
    "DMARC_LOOKUP_FAILED": "dmarc_lookup_failed",
    "DMARC_POLICY_ENFORCED": "dmarc_policy_enforced",
    "DMARC_POLICY_WEAK": "dmarc_policy_weak",
    "DMARC_PCT_PARTIAL": "dmarc_pct_partial",
    "DMARC_RUA": "dmarc_rua",
    "DMARC_RUF": "dmarc_ruf",
    "DMARC_ORG_LOOKUP": "dmarc_org_lookup",
    "DMARC_ORG_FOUND": "dmarc_org_found",
    "DMARC_ORG_MISSING": "dmarc_org_missing",
    "DMARC_ORG_SP_ENFORCED": "dmarc_org_sp_enforced",
    "DMARC_ORG_SP_NONE": "dmarc_org_sp_none",
    "DMARC_ORG_SP_DEFAULT": "dmarc_org_sp_default",
    "STEP_FAILED": "step_failed",
    "VERDICT": "verdict",
}


@dataclass
class Observation:
    """One line of the audit trail."""

    id: str
    level: str
    message: str
    axis: str
    domain: Optional[str] = None
    evidence: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def observation(
    key: str,
    level: str,
    message: str,
    axis: str,
    domain: Optional[str] = None,
    **evidence: Any,
) -> Observation:
    """Build an Observation from a key in OBSERVATION_IDS."""
    if level not in LEVELS:
        raise ValueError(f"Unknown observation level: {level}")
    return Observation(
        id=OBSERVATION_IDS[key],
        level=level,
        message=message,
        axis=axis,
        domain=domain,
        evidence={k: v for k, v in evidence.items() if v is not None},
    )
