"""
Pre-flight check: ensure required packages are available.
If anything is missing, print warnings and exit with non-zero.
"""
import sys

from core.constants import EXIT_VALIDATION, ORG_DOMAIN_LABELS, ORG_DOMAIN_PSL


def _check_module(module: str, label: str) -> tuple[bool, str]:
    """Return (ok, message)."""
    try:
        __import__(module)
        return True, label
    except ImportError:
        return False, f"{label} (pip install {label})"


def check_requirements(org_domain_mode: str = ORG_DOMAIN_LABELS) -> None:
    """Check required dependencies. Print missing items and exit with 1 if any missing."""
    wanted = [("DNS resolution", "dns.resolver", "dnspython"), ("Terminal colors", "colorama", "colorama")]
    if org_domain_mode == ORG_DOMAIN_PSL:
        wanted.append(("Public suffix list", "tldextract", "tldextract"))
    missing = []
    for name, module, label in wanted:
        ok, msg = _check_module(module, label)
        if not ok:
            missing.append((name, msg))

    if not missing:
        return

    print("spoofcheck: missing required package. Please install before running.\n", file=sys.stderr)
    for name, msg in missing:
        print(f"  [X] {name}: {msg}", file=sys.stderr)
    print("\nAfter installing, run spoofcheck again.", file=sys.stderr)
    sys.exit(EXIT_VALIDATION)
