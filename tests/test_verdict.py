"""
End-to-end tests for the verdict aggregator
"""
from conftest import FakeDNS, ids
from analysis.verdict import Verdict, check_domain, evaluate
from core.context import CheckContext
from core.utils import status_resolver

SCENARIOS = {
    "weak.example": ["v=spf1 +all"],
    "strong.example": ["v=spf1 -all"],
    "_dmarc.strong.example": ["v=DMARC1; p=reject; pct=100"],
    "mixed.example": ["v=spf1 redirect=strong.example"],
    "_dmarc.mixed.example": ["v=DMARC1; p=none"],
}


class TestEvaluate:
    """Scenario checks against an in-memory zone"""

    def test_scenario_weak(self):
        verdict = evaluate("weak.example", resolver=FakeDNS(SCENARIOS))

        assert verdict.spf_strong is False
        assert verdict.dmarc_strong is False
        assert verdict.spoofable is True

    def test_scenario_strong(self):
        verdict = evaluate("strong.example", resolver=FakeDNS(SCENARIOS))

        assert verdict.spf_strong is True
        assert verdict.dmarc_strong is True
        assert verdict.spoofable is False
        assert verdict.observations[-1].message == "Spoofing not possible for strong.example"

    def test_scenario_mixed(self):
        verdict = evaluate("mixed.example", resolver=FakeDNS(SCENARIOS))

        assert verdict.spf_strong is True
        assert verdict.dmarc_strong is False
        assert verdict.spoofable is True
        assert verdict.observations[-1].evidence["weak_axes"] == ["DMARC"]

    def test_nothing_published(self):
        verdict = evaluate("empty.example", resolver=FakeDNS({}))

        assert verdict.spoofable is True
        assert "spf_missing" in ids(verdict)
        assert "dmarc_missing" in ids(verdict)

    def test_both_axes_always_run(self):
        dns = FakeDNS({"_dmarc.weak.example": ["v=DMARC1; p=reject"]})
        verdict = evaluate("weak.example", resolver=dns)

        assert dns.queries == ["weak.example", "_dmarc.weak.example"]
        assert verdict.dmarc_strong is True
        assert verdict.spoofable is True

    def test_domain_normalized(self):
        verdict = evaluate("  Strong.Example. ", resolver=FakeDNS(SCENARIOS))

        assert verdict.domain == "strong.example"
        assert verdict.spoofable is False

    def test_plain_lookup_function(self):
        zone = {"strong.example": ["v=spf1 -all"], "_dmarc.strong.example": ["v=DMARC1; p=quarantine"]}
        verdict = evaluate("strong.example", resolver=status_resolver(lambda host: zone.get(host, [])))

        assert verdict.spoofable is False

    def test_options_forwarded(self):
        verdict = evaluate("mixed.example", resolver=FakeDNS(SCENARIOS), max_depth=0)

        assert verdict.spf_strong is False
        assert "spf_recursion_limit" in ids(verdict)

    def test_to_dict(self):
        data = evaluate("weak.example", resolver=FakeDNS(SCENARIOS)).to_dict()

        assert data["domain"] == "weak.example"
        assert data["spoofable"] is True
        assert data["lookups"] == 2
        assert data["observations"][0]["id"] == "check_start"
        assert data["observations"][-1]["id"] == "verdict"


class TestFailClosed:
    """Unexpected failures leave the axis weak"""

    def test_resolver_exception_recorded(self):
        def broken(hostname):
            raise RuntimeError("resolver exploded")

        ctx = CheckContext(target_domain="strong.example", resolver=broken)
        verdict = check_domain(ctx)

        assert isinstance(verdict, Verdict)
        assert verdict.spoofable is True
        assert [e["step"] for e in verdict.errors] == ["SPF", "DMARC"]
        assert ids(verdict).count("step_failed") == 2

    def test_plain_lookup_exception_is_error_status(self):
        def broken(hostname):
            raise OSError("network down")

        verdict = evaluate("strong.example", resolver=status_resolver(broken))

        assert verdict.spoofable is True
        assert verdict.errors == []
        assert "spf_lookup_failed" in ids(verdict)
        assert "dmarc_lookup_failed" in ids(verdict)


class TestLookupBudget:
    """max_lookups bounds SPF recursion only"""

    def test_long_spf_chain_leaves_dmarc_checked(self):
        includes = [f"i{n}.example" for n in range(29)]
        zone = {
            "example.com": ["v=spf1 " + " ".join(f"include:{name}" for name in includes) + " ?all"],
            "_dmarc.example.com": ["v=DMARC1; p=reject"],
        }
        for name in includes[:-1]:
            zone[name] = ["v=spf1 ?all"]
        zone[includes[-1]] = ["v=spf1 -all"]

        verdict = evaluate("example.com", resolver=FakeDNS(zone))

        assert verdict.spf_strong is True
        assert verdict.dmarc_strong is True
        assert verdict.spoofable is False
        assert "dns_lookup_limit" not in ids(verdict)
        assert verdict.lookups == 31

    def test_budget_exhausted_by_spf_only(self):
        zone = {
            "example.com": ["v=spf1 include:a.example include:b.example ?all"],
            "a.example": ["v=spf1 ?all"],
            "b.example": ["v=spf1 -all"],
            "_dmarc.example.com": ["v=DMARC1; p=quarantine"],
        }

        verdict = evaluate("example.com", resolver=FakeDNS(zone), max_lookups=2)

        assert verdict.spf_strong is False
        assert verdict.dmarc_strong is True
        assert "dns_lookup_limit" in ids(verdict)
