"""
SPF strength: all qualifier, then redirect= and include: delegation, evaluated recursively.
A record is strong when its all mechanism soft- or hard-fails, or when a delegated record is.
Recursion is bounded by depth, a per-path visited set and the context lookup budget.
"""
import logging
from typing import Optional

from analysis.findings import AXIS_SPF, ERROR, GOOD, INFO, WARNING, observation
from core.context import LOOKUP_LIMIT_STATUS, CheckContext
from core.utils import normalize_domain
from dns_checks.records import parse_spf, select_spf_record

logger = logging.getLogger("spoofcheck.dns")


def _observe(ctx: CheckContext, key: str, level: str, message: str, domain: str, **evidence) -> None:
    ctx.add_observation(observation(key, level, message, AXIS_SPF, domain, **evidence))


def _within_bounds(ctx: CheckContext, domain: str, depth: int, visited: frozenset) -> bool:
    if domain in visited:
        _observe(
            ctx, "SPF_RECURSION_LIMIT", ERROR,
            f"SPF delegation loops back to {domain}; treating as weak",
            domain, depth=depth, chain=sorted(visited),
        )
        return False
    if depth > ctx.max_depth:
        _observe(
            ctx, "SPF_RECURSION_LIMIT", ERROR,
            f"SPF delegation deeper than {ctx.max_depth} levels at {domain}; treating as weak",
            domain, depth=depth,
        )
        return False
    return True


def _get_spf_record(ctx: CheckContext, domain: str) -> tuple[Optional[str], str, str]:
    """Returns (spf_record_or_none, status, message). status: ok | empty | nxdomain | timeout | error | limit."""
    txts, status, message = ctx.lookup_txt(domain)
    return (select_spf_record(txts), status, message)


def is_spf_strong(
    ctx: CheckContext,
    domain: str,
    depth: int = 0,
    visited: Optional[frozenset] = None,
) -> bool:
    """Return True when domain's effective SPF policy rejects unauthenticated senders."""
    domain = normalize_domain(domain)
    visited = visited or frozenset()
    if not _within_bounds(ctx, domain, depth, visited):
        return False

    spf_raw, status, message = _get_spf_record(ctx, domain)
    if depth == 0:
        ctx.add_dns_data("spf_record", spf_raw)
        ctx.add_dns_data("spf_status", status)
        ctx.add_dns_data("spf_message", message)

    if not spf_raw:
        if status == LOOKUP_LIMIT_STATUS:
            _observe(ctx, "DNS_LOOKUP_LIMIT", ERROR, f"{message}; {domain} not checked, treating as weak", domain)
        elif status in ("timeout", "error"):
            _observe(
                ctx, "SPF_LOOKUP_FAILED", ERROR,
                f"Could not check SPF for {domain} ({status}: {message})", domain, status=status,
            )
        else:
            _observe(ctx, "SPF_MISSING", WARNING, f"{domain} has no SPF record!", domain, status=status)
        return False

    _observe(ctx, "SPF_FOUND", INFO, f"Found SPF record: {spf_raw}", domain, record=spf_raw)
    record = parse_spf(spf_raw)
    logger.debug(
        "SPF %s depth=%d all=%s redirect=%s includes=%s",
        domain, depth, record.all_term, record.redirect, record.includes,
    )

    if record.has_strong_all:
        _observe(ctx, "SPF_ALL_STRONG", GOOD, f"SPF record contains an All item: {record.all_term}", domain)
        return True
    if record.all_term:
        _observe(ctx, "SPF_ALL_WEAK", WARNING, f"SPF record All item is too weak: {record.all_term}", domain)
    else:
        _observe(ctx, "SPF_NO_ALL", WARNING, "SPF record has no All string", domain)

    path = visited | {domain}
    if record.redirect:
        _observe(ctx, "SPF_REDIRECT", INFO, f"Processing SPF redirect domain: {record.redirect}", domain)
        if is_spf_strong(ctx, record.redirect, depth + 1, path):
            _observe(ctx, "SPF_REDIRECT_STRONG", GOOD, "Redirect mechanism is strong.", domain)
            return True
        _observe(ctx, "SPF_REDIRECT_WEAK", WARNING, "Redirect mechanism is not strong.", domain)

    if record.includes:
        for include_domain in record.includes:
            _observe(ctx, "SPF_INCLUDE", INFO, f"Processing an SPF include domain: {include_domain}", domain)
            if is_spf_strong(ctx, include_domain, depth + 1, path):
                _observe(ctx, "SPF_INCLUDES_STRONG", GOOD, "Include mechanisms include a strong record", domain)
                return True
        _observe(ctx, "SPF_INCLUDES_WEAK", WARNING, "Include mechanisms are not strong", domain)
    return False


def run(ctx: CheckContext) -> None:
    ctx.spf_strong = is_spf_strong(ctx, ctx.target_domain)
    if ctx.verbose:
        logger.debug("SPF %s strong=%s lookups=%d", ctx.target_domain, ctx.spf_strong, ctx.lookup_count)
