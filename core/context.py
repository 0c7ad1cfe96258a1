"""
Target and check state management.
Holds domain, options, and the observations collected for one evaluation.
One context per evaluated domain; no state is shared between evaluations.
"""
from dataclasses import dataclass, field
import logging
from typing import Any, Optional

from analysis.findings import Observation
from core.constants import MAX_DNS_LOOKUPS, ORG_DOMAIN_LABELS, SPF_MAX_DEPTH
from core.utils import TxtResolver, TxtResult, build_txt_resolver

logger = logging.getLogger("spoofcheck.context")

# Documented keys populated by check modules (unknown keys still accepted)
KNOWN_DNS_KEYS = frozenset({
    "spf_record", "spf_status", "spf_message",
    "dmarc_record", "dmarc_status", "dmarc_message",
    "org_domain", "org_dmarc_record", "org_dmarc_status",
})

# Status returned when the lookup budget is spent; the query is never sent
LOOKUP_LIMIT_STATUS = "limit"


@dataclass
class CheckContext:
    """Holds target domain, check configuration and collected results."""

    target_domain: str
    verbose: bool = False
    quiet: bool = False
    color: bool = True

    # Recursion and lookup budgets
    max_depth: int = SPF_MAX_DEPTH
    max_lookups: int = MAX_DNS_LOOKUPS
    org_domain_mode: str = ORG_DOMAIN_LABELS

    # DNS: per-lookup timeout (None = default) and optional custom nameservers
    dns_timeout: Optional[float] = None
    nameservers: list[str] = field(default_factory=list)
    # TXT collaborator; built from dns_timeout/nameservers when not supplied
    resolver: Optional[TxtResolver] = None

    # Output: format (text | json | all), directory for JSON report, log file
    output_format: str = "text"
    output_dir: Optional[str] = None
    log_file: Optional[str] = None
    timeout_seconds: Optional[float] = None
    exit_on_spoofable: bool = False

    # Collected data
    dns_data: dict[str, Any] = field(default_factory=dict)
    observations: list[Observation] = field(default_factory=list)
    # Every query sent, and the SPF queries charged against max_lookups
    lookup_count: int = 0
    charged_lookups: int = 0

    # Per-axis outcome (None until the step has run)
    spf_strong: Optional[bool] = None
    dmarc_strong: Optional[bool] = None

    # Step errors (step name -> error message) when a step fails; check continues
    step_errors: list[dict[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.resolver is None:
            self.resolver = build_txt_resolver(self.dns_timeout, self.nameservers or None)

    @property
    def spoofable(self) -> bool:
        """Spoofing is possible unless both axes evaluated strong."""
        return not (self.spf_strong is True and self.dmarc_strong is True)

    @property
    def lookups_left(self) -> int:
        """SPF recursion lookups still allowed by max_lookups."""
        return max(0, self.max_lookups - self.charged_lookups)

    def lookup_txt(self, hostname: str, charge: bool = True) -> TxtResult:
        """
        Query TXT for hostname through the resolver.
        charge=True counts the query against max_lookups (SPF recursion); DMARC
        lookups pass charge=False so a long SPF chain cannot starve them.
        """
        if charge:
            if not self.lookups_left:
                logger.debug("Lookup budget (%d) spent; not querying %s", self.max_lookups, hostname)
                return ([], LOOKUP_LIMIT_STATUS, f"DNS lookup limit of {self.max_lookups} reached")
            self.charged_lookups += 1
        self.lookup_count += 1
        records, status, message = self.resolver(hostname)
        logger.debug("TXT %s -> %s (%d record(s)) %s", hostname, status, len(records), message)
        return (records, status, message)

    def add_observation(self, obs: Observation) -> None:
        self.observations.append(obs)

    def add_step_error(self, step: str, error: str) -> None:
        """Record a step failure; check continues."""
        self.step_errors.append({"step": step, "error": error})

    def add_dns_data(self, key: str, value: Any) -> None:
        """Store DNS-related data. Prefer keys from KNOWN_DNS_KEYS for consistency."""
        if key not in KNOWN_DNS_KEYS:
            logger.debug("add_dns_data unknown key: %s", key)
        self.dns_data[key] = value
