"""
Common utilities: DNS TXT resolution (robust, with status) and domain helpers.
Clear ok/empty/nxdomain/timeout/error statuses so "no record" is never confused with "could not check".
"""
import functools
import logging
from typing import Any, Callable, Optional, Sequence

from core.constants import (
    DNS_LIFETIME,
    DNS_RETRIES,
    DNS_TIMEOUT,
    ORG_DOMAIN_LABELS,
    ORG_DOMAIN_PSL,
)

logger = logging.getLogger("spoofcheck.utils")

# (records, status, message)
TxtResult = tuple[list[str], str, str]
TxtResolver = Callable[[str], TxtResult]

# Statuses that mean "query succeeded, result is definitive"
DNS_DEFINITIVE_STATUS = ("ok", "empty", "nxdomain")


def _dns_resolve(
    domain: str,
    rtype: str,
    extract: Any,
    timeout: Optional[float] = None,
    nameservers: Optional[Sequence[str]] = None,
) -> tuple[list[Any], str, str]:
    """
    Resolve DNS with retries. Returns (data_list, status, message).
    status: ok | empty | nxdomain | timeout | error
    """
    import dns.resolver
    import dns.exception

    resolver = dns.resolver.Resolver()
    resolver.timeout = timeout or DNS_TIMEOUT
    # Each attempt is capped by lifetime; an explicit timeout shortens it
    resolver.lifetime = timeout * 2 if timeout else DNS_LIFETIME
    if nameservers:
        resolver.nameservers = list(nameservers)
    last_exc = None
    for attempt in range(DNS_RETRIES + 1):
        try:
            answers = resolver.resolve(domain, rtype)
            data = extract(answers)
            if data:
                return (data, "ok", "")
            return ([], "empty", "No records")
        except dns.resolver.NXDOMAIN:
            return ([], "nxdomain", "Domain does not exist")
        except dns.resolver.NoAnswer:
            return ([], "empty", "No records")
        except dns.resolver.NoNameservers:
            last_exc = "No nameservers"
        except dns.exception.Timeout:
            last_exc = "Timeout"
        except dns.exception.DNSException as e:
            last_exc = str(e) or e.__class__.__name__
            logger.debug("%s %s failed: %s", rtype, domain, e)
        logger.debug("%s %s attempt %d failed: %s", rtype, domain, attempt + 1, last_exc)
    return ([], "timeout" if "Timeout" in str(last_exc) else "error", last_exc or "Unknown error")


def _extract_txt(answers) -> list[str]:
    return [b"".join(r.strings).decode("utf-8", errors="replace") for r in answers]


def resolve_txt_ex(
    domain: str,
    timeout: Optional[float] = None,
    nameservers: Optional[Sequence[str]] = None,
) -> TxtResult:
    """TXT with status."""
    return _dns_resolve(domain, "TXT", _extract_txt, timeout=timeout, nameservers=nameservers)


def resolve_txt(domain: str) -> list[str]:
    """Resolve TXT records. Plain form without status."""
    data, _, _ = resolve_txt_ex(domain)
    return data


def build_txt_resolver(
    timeout: Optional[float] = None,
    nameservers: Optional[Sequence[str]] = None,
) -> TxtResolver:
    """Bind timeout and nameservers into a single-argument TXT resolver."""
    return functools.partial(resolve_txt_ex, timeout=timeout, nameservers=nameservers)


def status_resolver(lookup: Callable[[str], Sequence[str]]) -> TxtResolver:
    """
    Adapt a plain hostname -> TXT strings function to the (records, status, message) form.
    Exceptions raised by lookup become an "error" status.
    """
    def resolve(hostname: str) -> TxtResult:
        try:
            records = list(lookup(hostname) or [])
        except Exception as e:
            logger.debug("TXT lookup for %s raised: %s", hostname, e)
            return ([], "error", str(e) or e.__class__.__name__)
        return (records, "ok", "") if records else ([], "empty", "No records")

    return resolve


def normalize_domain(domain: str) -> str:
    """Lower-case, strip whitespace and a trailing root dot."""
    return (domain or "").strip().lower().rstrip(".")


def organizational_domain(domain: str, mode: str = ORG_DOMAIN_LABELS) -> str:
    """
    Return the registrable (organizational) domain for a hostname.
    labels: last two labels (wrong for multi-part suffixes such as co.uk).
    psl: tldextract with its bundled public suffix snapshot; falls back to labels
    when the name has no recognised suffix.
    """
    domain = normalize_domain(domain)
    if mode == ORG_DOMAIN_PSL:
        org = _psl_organizational_domain(domain)
        if org:
            return org
    labels = [label for label in domain.split(".") if label]
    return ".".join(labels[-2:])


@functools.lru_cache(maxsize=1)
def _psl_extractor():
    import tldextract

    # Empty URL list: bundled snapshot only, never fetch over the network
    return tldextract.TLDExtract(suffix_list_urls=())


def _psl_organizational_domain(domain: str) -> str:
    ext = _psl_extractor()(domain)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return ""
