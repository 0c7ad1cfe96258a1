"""
JSON report generation. Verdict, observations and check metadata for CI/automation.
"""
import json
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from analysis.verdict import Verdict
from core.context import CheckContext


def build_payload(ctx: CheckContext, verdict: Verdict) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    payload = {
        "tool": "spoofcheck",
        "check_date": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "target_domain": ctx.target_domain,
        "options": {
            "max_depth": ctx.max_depth,
            "max_lookups": ctx.max_lookups,
            "org_domain_mode": ctx.org_domain_mode,
        },
        "dns_summary": {
            "spf_record": ctx.dns_data.get("spf_record"),
            "spf_status": ctx.dns_data.get("spf_status"),
            "dmarc_record": ctx.dns_data.get("dmarc_record"),
            "dmarc_status": ctx.dns_data.get("dmarc_status"),
            "org_domain": ctx.dns_data.get("org_domain"),
            "org_dmarc_record": ctx.dns_data.get("org_dmarc_record"),
        },
    }
    payload.update(verdict.to_dict())
    return payload


def generate(ctx: CheckContext, verdict: Verdict, stream: Optional[TextIO] = None) -> Optional[str]:
    """
    Write the JSON report. With ctx.output_dir set, save to a file (UTC timestamp in the name)
    and return its path; otherwise print to stream (stdout) and return None.
    """
    payload = build_payload(ctx, verdict)
    if not ctx.output_dir:
        stream = stream or sys.stdout
        json.dump(payload, stream, indent=2, ensure_ascii=False)
        stream.write("\n")
        stream.flush()
        return None
    out_dir = os.path.abspath(ctx.output_dir)
    os.makedirs(out_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    safe_domain = "".join(c if c.isalnum() or c in ".-" else "_" for c in ctx.target_domain)
    out_path = os.path.join(out_dir, f"spoofcheck_{safe_domain}_{timestamp}.json")
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return out_path
