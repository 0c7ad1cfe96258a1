"""
Unit tests for the recursive SPF evaluator
"""
import pytest

from conftest import ids
from dns_checks import spf


class TestSPFAllMechanism:
    """The all qualifier on the queried record"""

    @pytest.mark.parametrize("record", ["v=spf1 -all", "v=spf1 ~all", "v=spf1 mx ~all"])
    def test_strong_all(self, make_ctx, record):
        ctx, _ = make_ctx({"example.com": [record]})

        assert spf.is_spf_strong(ctx, "example.com") is True
        assert "spf_all_strong" in ids(ctx)

    @pytest.mark.parametrize("record", ["v=spf1 +all", "v=spf1 all", "v=spf1 ?all", "v=spf1 mx"])
    def test_weak_without_delegation(self, make_ctx, record):
        ctx, _ = make_ctx({"example.com": [record]})

        assert spf.is_spf_strong(ctx, "example.com") is False

    def test_strong_all_ignores_delegation(self, make_ctx):
        ctx, dns = make_ctx({"example.com": ["v=spf1 include:weak.example redirect=weak.example -all"]})

        assert spf.is_spf_strong(ctx, "example.com") is True
        assert dns.queries == ["example.com"]

    def test_no_all_observed(self, make_ctx):
        ctx, _ = make_ctx({"example.com": ["v=spf1 a"]})
        spf.is_spf_strong(ctx, "example.com")

        assert "spf_no_all" in ids(ctx)

    def test_non_spf_txt_ignored(self, make_ctx):
        ctx, _ = make_ctx({"example.com": ["google-site-verification=x", "v=spf1 -all"]})

        assert spf.is_spf_strong(ctx, "example.com") is True


class TestSPFAbsentAndFailures:
    """No record and lookup failures are weak, and told apart"""

    def test_missing_record(self, make_ctx):
        ctx, _ = make_ctx({"example.com": ["some other txt"]})

        assert spf.is_spf_strong(ctx, "example.com") is False
        assert "spf_missing" in ids(ctx)

    def test_nxdomain(self, make_ctx):
        ctx, _ = make_ctx({})

        assert spf.is_spf_strong(ctx, "example.com") is False
        assert "spf_missing" in ids(ctx)

    @pytest.mark.parametrize("status", ["timeout", "error"])
    def test_lookup_failure(self, make_ctx, status):
        ctx, _ = make_ctx({}, failures={"example.com": status})

        assert spf.is_spf_strong(ctx, "example.com") is False
        assert "spf_lookup_failed" in ids(ctx)
        assert "spf_missing" not in ids(ctx)


class TestSPFDelegation:
    """redirect= and include: are followed recursively"""

    def test_redirect_strong(self, make_ctx):
        ctx, _ = make_ctx({
            "mixed.example": ["v=spf1 redirect=strong.example"],
            "strong.example": ["v=spf1 -all"],
        })

        assert spf.is_spf_strong(ctx, "mixed.example") is True
        assert "spf_redirect_strong" in ids(ctx)

    def test_redirect_weak_then_include_strong(self, make_ctx):
        ctx, _ = make_ctx({
            "example.com": ["v=spf1 include:good.example redirect=bad.example"],
            "bad.example": ["v=spf1 +all"],
            "good.example": ["v=spf1 -all"],
        })

        assert spf.is_spf_strong(ctx, "example.com") is True
        assert "spf_redirect_weak" in ids(ctx)
        assert "spf_includes_strong" in ids(ctx)

    def test_any_include_strong(self, make_ctx):
        ctx, dns = make_ctx({
            "example.com": ["v=spf1 include:a.example include:b.example include:c.example ?all"],
            "a.example": ["v=spf1 +all"],
            "b.example": ["v=spf1 ~all"],
            "c.example": ["v=spf1 -all"],
        })

        assert spf.is_spf_strong(ctx, "example.com") is True
        # first strong include short-circuits
        assert "c.example" not in dns.queries

    def test_all_includes_weak(self, make_ctx):
        ctx, _ = make_ctx({
            "example.com": ["v=spf1 include:a.example include:missing.example"],
            "a.example": ["v=spf1 ?all"],
        })

        assert spf.is_spf_strong(ctx, "example.com") is False
        assert "spf_includes_weak" in ids(ctx)

    def test_nested_include(self, make_ctx):
        ctx, _ = make_ctx({
            "example.com": ["v=spf1 include:one.example"],
            "one.example": ["v=spf1 include:two.example"],
            "two.example": ["v=spf1 -all"],
        })

        assert spf.is_spf_strong(ctx, "example.com") is True

    def test_diamond_is_not_a_cycle(self, make_ctx):
        ctx, _ = make_ctx({
            "example.com": ["v=spf1 include:a.example include:b.example"],
            "a.example": ["v=spf1 include:shared.example"],
            "b.example": ["v=spf1 include:shared.example redirect=end.example"],
            "shared.example": ["v=spf1 +all"],
            "end.example": ["v=spf1 -all"],
        })

        assert spf.is_spf_strong(ctx, "example.com") is True
        assert "spf_recursion_limit" not in ids(ctx)


class TestSPFRecursionBounds:
    """Cyclic and deep chains terminate weak"""

    def test_include_cycle_terminates(self, make_ctx):
        ctx, _ = make_ctx({
            "a.example": ["v=spf1 include:b.example"],
            "b.example": ["v=spf1 include:a.example"],
        })

        assert spf.is_spf_strong(ctx, "a.example") is False
        assert "spf_recursion_limit" in ids(ctx)

    def test_self_redirect_terminates(self, make_ctx):
        ctx, dns = make_ctx({"loop.example": ["v=spf1 redirect=LOOP.example."]})

        assert spf.is_spf_strong(ctx, "loop.example") is False
        assert dns.queries == ["loop.example"]
        assert "spf_recursion_limit" in ids(ctx)

    def test_depth_limit(self, make_ctx):
        records = {f"d{i}.example": [f"v=spf1 include:d{i + 1}.example"] for i in range(10)}
        records["d10.example"] = ["v=spf1 -all"]
        ctx, _ = make_ctx(records, max_depth=3)

        assert spf.is_spf_strong(ctx, "d0.example") is False
        assert "spf_recursion_limit" in ids(ctx)

    def test_depth_within_limit(self, make_ctx):
        records = {f"d{i}.example": [f"v=spf1 include:d{i + 1}.example"] for i in range(3)}
        records["d3.example"] = ["v=spf1 -all"]
        ctx, _ = make_ctx(records, max_depth=3)

        assert spf.is_spf_strong(ctx, "d0.example") is True

    def test_lookup_budget(self, make_ctx):
        includes = " ".join(f"include:i{i}.example" for i in range(10))
        records = {"example.com": [f"v=spf1 {includes}"]}
        records.update({f"i{i}.example": ["v=spf1 ?all"] for i in range(9)})
        records["i9.example"] = ["v=spf1 -all"]
        ctx, dns = make_ctx(records, max_lookups=5)

        assert spf.is_spf_strong(ctx, "example.com") is False
        assert len(dns.queries) == 5
        assert "dns_lookup_limit" in ids(ctx)


class TestSPFRun:
    def test_run_sets_axis_and_dns_data(self, make_ctx):
        ctx, _ = make_ctx({"example.com": ["v=spf1 -all"]})
        spf.run(ctx)

        assert ctx.spf_strong is True
        assert ctx.dns_data["spf_record"] == "v=spf1 -all"
        assert ctx.dns_data["spf_status"] == "ok"
