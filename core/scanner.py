"""
Check orchestration: configure logging, evaluate SPF and DMARC, then report.
A global timeout and step failures fail closed: the verdict stays "spoofable".
"""
import logging
import threading

from analysis.verdict import Verdict, build_verdict, check_domain
from core.context import CheckContext

logger = logging.getLogger("spoofcheck")


def setup_logging(ctx: CheckContext) -> None:
    """Console (stderr) logging plus optional log file; verbose switches on debug detail."""
    log_format = "%(name)s %(levelname)s %(message)s" if ctx.verbose else "%(message)s"
    log_level = logging.DEBUG if ctx.verbose else logging.WARNING
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if ctx.log_file:
        try:
            fh = logging.FileHandler(ctx.log_file, encoding="utf-8")
            fh.setFormatter(logging.Formatter(log_format))
            handlers.append(fh)
        except OSError as e:
            logger.warning("Could not open log file %s: %s", ctx.log_file, e)
    logging.basicConfig(level=log_level, format=log_format, handlers=handlers, force=True)
    # Quiet down noisy libraries (tldextract cache locking)
    logging.getLogger("filelock").setLevel(logging.WARNING)
    logging.getLogger("tldextract").setLevel(logging.WARNING)


def run_check(ctx: CheckContext) -> Verdict:
    """Evaluate ctx.target_domain, honouring ctx.timeout_seconds when set."""
    timeout_sec = ctx.timeout_seconds
    if not timeout_sec or float(timeout_sec) <= 0:
        return check_domain(ctx)

    result: list[Verdict] = []

    def run_check_thread() -> None:
        result.append(check_domain(ctx))

    t = threading.Thread(target=run_check_thread, daemon=True)
    t.start()
    t.join(timeout=float(timeout_sec))
    if result:
        return result[0]
    logger.warning("Check timed out after %s seconds", timeout_sec)
    ctx.add_step_error("Check", f"Check timed out after {timeout_sec}s")
    # Detach from the still-running worker before freezing the verdict
    timed_out = CheckContext(
        target_domain=ctx.target_domain,
        resolver=ctx.resolver,
        observations=list(ctx.observations),
        step_errors=list(ctx.step_errors),
        dns_data=dict(ctx.dns_data),
        lookup_count=ctx.lookup_count,
        spf_strong=ctx.spf_strong,
        dmarc_strong=ctx.dmarc_strong,
    )
    return build_verdict(timed_out)


def run_reporting(ctx: CheckContext, verdict: Verdict) -> None:
    """Render the verdict in ctx.output_format (text, json or all)."""
    from reporting import console
    from reporting import json_report

    fmt = (ctx.output_format or "text").lower()
    if fmt in ("text", "all"):
        console.render(verdict, color=ctx.color, quiet=ctx.quiet)
    if fmt in ("json", "all"):
        try:
            path = json_report.generate(ctx, verdict)
            if path:
                logger.info("JSON report written to %s", path)
        except OSError as e:
            logger.exception("JSON report failed: %s", e)
            ctx.add_step_error("Reporting: JSON report", str(e))


def main_check(ctx: CheckContext) -> Verdict:
    """Entry point for a check; handles logging, timeout, reporting and errors."""
    setup_logging(ctx)
    logger.debug(
        "spoofcheck | Target: %s | max_depth=%d max_lookups=%d org_domain=%s",
        ctx.target_domain, ctx.max_depth, ctx.max_lookups, ctx.org_domain_mode,
    )
    verdict = run_check(ctx)
    run_reporting(ctx, verdict)
    if ctx.step_errors:
        logger.warning("Step errors: %d", len(ctx.step_errors))
        for err in ctx.step_errors:
            logger.warning("  %s: %s", err.get("step"), err.get("error", ""))
    return verdict
