"""
Verdict aggregation: run both axes, then combine.
Spoofing is possible unless SPF and DMARC are both strong. Both axes always run so
the audit trail covers each of them whatever the outcome.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from analysis.findings import AXIS_VERDICT, ERROR, GOOD, INFO, WARNING, Observation, observation
from core.context import CheckContext
from core.utils import TxtResolver, normalize_domain

logger = logging.getLogger("spoofcheck.analysis")


@dataclass
class Verdict:
    domain: str
    spf_strong: bool
    dmarc_strong: bool
    observations: list[Observation] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    lookups: int = 0

    @property
    def spoofable(self) -> bool:
        return not (self.spf_strong and self.dmarc_strong)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "spoofable": self.spoofable,
            "spf_strong": self.spf_strong,
            "dmarc_strong": self.dmarc_strong,
            "lookups": self.lookups,
            "observations": [o.to_dict() for o in self.observations],
            "errors": self.errors,
        }


def _run_step(ctx: CheckContext, name: str, fn: Callable[[CheckContext], None]) -> None:
    """Run a single axis; on exception log, record the error and leave the axis weak."""
    try:
        fn(ctx)
    except Exception as e:
        logger.exception("Step %s failed: %s", name, e)
        ctx.add_step_error(name, str(e))
        ctx.add_observation(observation(
            "STEP_FAILED", ERROR, f"{name} failed ({e}); treating as weak", AXIS_VERDICT, ctx.target_domain,
        ))


def check_domain(ctx: CheckContext) -> Verdict:
    """Evaluate SPF then DMARC for ctx.target_domain and return the combined verdict."""
    from dns_checks import dmarc
    from dns_checks import spf

    ctx.add_observation(observation(
        "CHECK_START", INFO, f"Checking domain: {ctx.target_domain}", AXIS_VERDICT, ctx.target_domain,
    ))
    for name, fn in (("SPF", spf.run), ("DMARC", dmarc.run)):
        _run_step(ctx, name, fn)
    return build_verdict(ctx)


def build_verdict(ctx: CheckContext) -> Verdict:
    """Freeze the context into a Verdict and append the closing observation."""
    verdict = Verdict(
        domain=ctx.target_domain,
        spf_strong=ctx.spf_strong is True,
        dmarc_strong=ctx.dmarc_strong is True,
        observations=ctx.observations,
        errors=ctx.step_errors,
        lookups=ctx.lookup_count,
    )
    if verdict.spoofable:
        weak = [axis for axis, strong in (("SPF", verdict.spf_strong), ("DMARC", verdict.dmarc_strong)) if not strong]
        ctx.add_observation(observation(
            "VERDICT", WARNING, f"Spoofing possible for {ctx.target_domain}", AXIS_VERDICT, ctx.target_domain,
            weak_axes=weak,
        ))
    else:
        ctx.add_observation(observation(
            "VERDICT", GOOD, f"Spoofing not possible for {ctx.target_domain}", AXIS_VERDICT, ctx.target_domain,
        ))
    logger.debug(
        "Verdict %s: spf=%s dmarc=%s spoofable=%s lookups=%d",
        verdict.domain, verdict.spf_strong, verdict.dmarc_strong, verdict.spoofable, verdict.lookups,
    )
    return verdict


def evaluate(domain: str, resolver: Optional[TxtResolver] = None, **options: Any) -> Verdict:
    """
    Assess whether domain can be spoofed.
    resolver: callable hostname -> (records, status, message); dnspython when omitted.
    options: any CheckContext field (max_depth, max_lookups, org_domain_mode, dns_timeout, ...).
    """
    ctx = CheckContext(target_domain=normalize_domain(domain), resolver=resolver, **options)
    return check_domain(ctx)
