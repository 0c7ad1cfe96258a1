"""
Shared fixtures: an in-memory TXT resolver so no test touches the network.
"""
import pytest

from core.context import CheckContext


class FakeDNS:
    """hostname -> TXT strings. Unknown names answer NXDOMAIN; failures map hostname -> status."""

    def __init__(self, records=None, failures=None):
        self.records = {k.lower(): list(v) for k, v in (records or {}).items()}
        self.failures = {k.lower(): v for k, v in (failures or {}).items()}
        self.queries = []

    def __call__(self, hostname):
        hostname = hostname.lower()
        self.queries.append(hostname)
        if hostname in self.failures:
            status = self.failures[hostname]
            return ([], status, "Timeout" if status == "timeout" else "SERVFAIL")
        if hostname not in self.records:
            return ([], "nxdomain", "Domain does not exist")
        txts = self.records[hostname]
        if not txts:
            return ([], "empty", "No records")
        return (list(txts), "ok", "")


@pytest.fixture
def fake_dns():
    """Factory: fake_dns(records, failures=None) -> FakeDNS."""
    def _make(records=None, failures=None):
        return FakeDNS(records, failures)
    return _make


@pytest.fixture
def make_ctx(fake_dns):
    """Factory: make_ctx(records, domain=..., failures=..., **options) -> (CheckContext, FakeDNS)."""
    def _make(records=None, domain="example.com", failures=None, **options):
        dns = fake_dns(records, failures)
        ctx = CheckContext(target_domain=domain, resolver=dns, **options)
        return ctx, dns
    return _make


def ids(ctx_or_verdict):
    """Observation ids in emission order."""
    return [o.id for o in ctx_or_verdict.observations]
