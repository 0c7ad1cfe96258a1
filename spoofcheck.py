#!/usr/bin/env python3
"""
spoofcheck: can this domain be spoofed in email?
Evaluates the published SPF and DMARC policy of a domain, following SPF
redirect/include delegation and the DMARC organizational-domain fallback.
Intended for auditing your own or your clients' domains.
"""
import argparse
import os
import sys

# Ensure project root is on path when run as script
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import load_env_config, load_file_config, merge_config
from core.constants import (
    EXIT_CHECK_FAILURE,
    EXIT_SPOOFABLE,
    EXIT_SUCCESS,
    EXIT_VALIDATION,
    MAX_DNS_LOOKUPS,
    ORG_DOMAIN_LABELS,
    ORG_DOMAIN_MODES,
    OUTPUT_FORMATS,
    SPF_MAX_DEPTH,
)
from core.context import CheckContext
from core.requirements_check import check_requirements
from core.scanner import main_check
from core.utils import normalize_domain


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spoofcheck",
        description="Check whether a domain's SPF and DMARC records allow email spoofing.",
    )
    parser.add_argument("domain", nargs="?", metavar="DOMAIN", help="Target domain (e.g. example.com)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose (debug) logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print the final verdict line")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format (default: text)")
    parser.add_argument("--output-dir", "-o", metavar="DIR", help="Save the JSON report to DIR instead of stdout")
    parser.add_argument("--log-file", metavar="FILE", help="Append logs to file")
    parser.add_argument("--timeout", type=float, metavar="SEC", help="Global check timeout in seconds")
    parser.add_argument("--dns-timeout", type=float, metavar="SEC", help="Per-query DNS timeout in seconds (each attempt may take up to twice this)")
    parser.add_argument("--max-depth", type=int, metavar="N", help=f"SPF redirect/include depth limit (default: {SPF_MAX_DEPTH})")
    parser.add_argument("--max-lookups", type=int, metavar="N", help=f"Total TXT lookups per check (default: {MAX_DNS_LOOKUPS})")
    parser.add_argument("--org-domain", choices=ORG_DOMAIN_MODES, help="Organizational domain: last two labels or public suffix list (default: labels)")
    parser.add_argument("--nameserver", action="append", metavar="IP", help="Query this nameserver (repeatable)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--exit-code", action="store_true", help=f"Exit with {EXIT_SPOOFABLE} when spoofing is possible")
    parser.add_argument("--config", metavar="FILE", help="Path to JSON config file (overridden by CLI)")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _or_default(value, default):
    return default if value is None else value


def build_context(args: argparse.Namespace) -> CheckContext:
    """Merge env, config file and CLI options into a CheckContext."""
    env_cfg = load_env_config()
    file_cfg = load_file_config(args.config or "")
    cli_cfg = {
        "verbose": args.verbose if args.verbose else None,
        "quiet": args.quiet if args.quiet else None,
        "no_color": args.no_color if args.no_color else None,
        "exit_code": args.exit_code if args.exit_code else None,
        "output_format": args.format,
        "output_dir": (args.output_dir or "").strip() or None,
        "log_file": (args.log_file or "").strip() or None,
        "timeout_seconds": args.timeout,
        "dns_timeout": args.dns_timeout,
        "max_depth": args.max_depth,
        "max_lookups": args.max_lookups,
        "org_domain_mode": args.org_domain,
        "nameservers": args.nameserver,
    }
    cli_cfg = {k: v for k, v in cli_cfg.items() if v is not None}
    merged = merge_config(env_cfg, file_cfg, cli_cfg)

    return CheckContext(
        target_domain=normalize_domain(args.domain),
        verbose=merged.get("verbose", False),
        quiet=merged.get("quiet", False),
        color=not merged.get("no_color", False) and sys.stdout.isatty(),
        max_depth=_or_default(merged.get("max_depth"), SPF_MAX_DEPTH),
        max_lookups=_or_default(merged.get("max_lookups"), MAX_DNS_LOOKUPS),
        org_domain_mode=merged.get("org_domain_mode") or ORG_DOMAIN_LABELS,
        dns_timeout=merged.get("dns_timeout"),
        nameservers=merged.get("nameservers") or [],
        output_format=merged.get("output_format") or "text",
        output_dir=merged.get("output_dir"),
        log_file=merged.get("log_file"),
        timeout_seconds=merged.get("timeout_seconds"),
        exit_on_spoofable=merged.get("exit_code", False),
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not normalize_domain(args.domain or ""):
        print("spoofcheck: No arguments supplied. A target domain is required. Example: spoofcheck example.com", file=sys.stderr)
        _build_parser().print_usage(sys.stderr)
        return EXIT_VALIDATION

    ctx = build_context(args)
    check_requirements(ctx.org_domain_mode)
    verdict = main_check(ctx)
    if ctx.step_errors:
        return EXIT_CHECK_FAILURE
    if ctx.exit_on_spoofable and verdict.spoofable:
        return EXIT_SPOOFABLE
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
