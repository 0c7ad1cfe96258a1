"""
DMARC strength: record at _dmarc.domain, policy (none/quarantine/reject),
with fallback to the organizational domain's sp= / p= when the host has no record.
"""
import logging
from typing import Optional

from analysis.findings import AXIS_DMARC, ERROR, GOOD, INFO, WARNING, observation
from core.constants import DMARC_ENFORCING_POLICIES, DMARC_PREFIX
from core.context import CheckContext
from core.utils import normalize_domain, organizational_domain
from dns_checks.records import DMARCRecord, parse_dmarc, select_dmarc_record

logger = logging.getLogger("spoofcheck.dns")


def _observe(ctx: CheckContext, key: str, level: str, message: str, domain: str, **evidence) -> None:
    ctx.add_observation(observation(key, level, message, AXIS_DMARC, domain, **evidence))


def _get_dmarc_record(ctx: CheckContext, domain: str) -> tuple[Optional[str], str, str]:
    """Returns (record_or_none, status, message). status: ok | empty | nxdomain | timeout | error."""
    txts, status, message = ctx.lookup_txt(f"{DMARC_PREFIX}.{domain}", charge=False)
    return (select_dmarc_record(txts), status, message)


def _report_unavailable(ctx: CheckContext, domain: str, status: str, message: str) -> bool:
    """Observe a failed lookup. Returns True when one was reported."""
    if status in ("timeout", "error"):
        _observe(
            ctx, "DMARC_LOOKUP_FAILED", ERROR,
            f"Could not check DMARC for {domain} ({status}: {message})", domain, status=status,
        )
        return True
    return False


def check_dmarc_policy(ctx: CheckContext, record: DMARCRecord, domain: str) -> bool:
    """True when p= is quarantine or reject."""
    raw_policy = record.tag("p")
    if record.policy in DMARC_ENFORCING_POLICIES:
        _observe(ctx, "DMARC_POLICY_ENFORCED", GOOD, f"DMARC policy set to p={record.policy}", domain)
        return True
    shown = f"p={raw_policy}" if raw_policy is not None else "nothing (no p tag)"
    _observe(ctx, "DMARC_POLICY_WEAK", WARNING, f"DMARC policy set to {shown}", domain, policy=raw_policy)
    return False


def check_dmarc_extras(ctx: CheckContext, record: DMARCRecord, domain: str) -> None:
    """Report pct, rua and ruf for a record whose policy does not enforce."""
    pct = record.pct
    if pct is not None and pct != 100:
        _observe(ctx, "DMARC_PCT_PARTIAL", WARNING, f"DMARC pct is set to {pct}% - might be possible", domain, pct=pct)
    if record.rua:
        _observe(ctx, "DMARC_RUA", WARNING, f"Aggregate reports will be sent: {','.join(record.rua)}", domain)
    if record.ruf:
        _observe(ctx, "DMARC_RUF", WARNING, f"Forensics reports will be sent: {','.join(record.ruf)}", domain)


def check_dmarc_org_policy(ctx: CheckContext, domain: str, org_domain: str) -> bool:
    """Organizational fallback: explicit sp= wins, otherwise the org record's p=. One hop only."""
    org_raw, status, message = _get_dmarc_record(ctx, org_domain)
    ctx.add_dns_data("org_dmarc_record", org_raw)
    ctx.add_dns_data("org_dmarc_status", status)

    if not org_raw:
        if not _report_unavailable(ctx, org_domain, status, message):
            _observe(ctx, "DMARC_ORG_MISSING", WARNING, "No organization DMARC record", org_domain)
        return False

    _observe(ctx, "DMARC_ORG_FOUND", INFO, f"Found organizational DMARC record: {org_raw}", org_domain, record=org_raw)
    org_record = parse_dmarc(org_raw)
    # Invalid sp= values parse as None and fall through to the org p=
    subdomain_policy = org_record.subdomain_policy

    if subdomain_policy is None:
        _observe(
            ctx, "DMARC_ORG_SP_DEFAULT", INFO,
            "No explicit organizational subdomain policy. Defaulting to organizational policy...", org_domain,
        )
        return check_dmarc_policy(ctx, org_record, org_domain)
    if subdomain_policy == "none":
        _observe(ctx, "DMARC_ORG_SP_NONE", WARNING, "Organizational subdomain policy set to sp=none", org_domain)
        return False
    _observe(
        ctx, "DMARC_ORG_SP_ENFORCED", GOOD,
        f"Organizational subdomain policy explicitly set to sp={subdomain_policy}", org_domain,
    )
    return True


def is_dmarc_strong(ctx: CheckContext, domain: str) -> bool:
    """Return True when failing mail for domain is quarantined or rejected."""
    domain = normalize_domain(domain)
    dmarc_raw, status, message = _get_dmarc_record(ctx, domain)
    ctx.add_dns_data("dmarc_record", dmarc_raw)
    ctx.add_dns_data("dmarc_status", status)
    ctx.add_dns_data("dmarc_message", message)

    if dmarc_raw:
        _observe(ctx, "DMARC_FOUND", INFO, f"Found DMARC record: {dmarc_raw}", domain, record=dmarc_raw)
        record = parse_dmarc(dmarc_raw)
        if check_dmarc_policy(ctx, record, domain):
            return True
        check_dmarc_extras(ctx, record, domain)
        return False

    # Could not check is not the same as no record: no org fallback
    if _report_unavailable(ctx, domain, status, message):
        return False

    org_domain = organizational_domain(domain, ctx.org_domain_mode)
    ctx.add_dns_data("org_domain", org_domain)
    if not org_domain or org_domain == domain:
        _observe(ctx, "DMARC_MISSING", WARNING, f"{domain} has no DMARC record!", domain)
        return False

    _observe(
        ctx, "DMARC_ORG_LOOKUP", INFO,
        f"No DMARC record found. Looking for organizational record at {org_domain}...", domain,
    )
    return check_dmarc_org_policy(ctx, domain, org_domain)


def run(ctx: CheckContext) -> None:
    ctx.dmarc_strong = is_dmarc_strong(ctx, ctx.target_domain)
    if ctx.verbose:
        logger.debug(
            "DMARC %s strong=%s org=%s", ctx.target_domain, ctx.dmarc_strong, ctx.dns_data.get("org_domain"),
        )
