"""
Shared constants for spoofcheck: DNS defaults, recursion budgets and policy vocabulary.
Use these instead of hardcoding limits or tag values across modules.
"""
# DNS
DNS_TIMEOUT = 5.0
DNS_RETRIES = 2
DNS_LIFETIME = 10.0  # max total time per query

# SPF recursion: RFC 7208 4.6.4 caps DNS-querying terms at 10
SPF_MAX_DEPTH = 10
# Total TXT lookups allowed for one evaluation (SPF chain + DMARC)
MAX_DNS_LOOKUPS = 30

SPF_VERSION = "v=spf1"
SPF_MARKER = "spf1"
SPF_STRONG_QUALIFIERS = ("~", "-")
SPF_QUALIFIERS = "+-~?"

DMARC_MARKER = "DMARC1"
DMARC_PREFIX = "_dmarc"
DMARC_POLICIES = ("none", "quarantine", "reject")
DMARC_ENFORCING_POLICIES = ("quarantine", "reject")

# Organizational domain modes
ORG_DOMAIN_LABELS = "labels"
ORG_DOMAIN_PSL = "psl"
ORG_DOMAIN_MODES = (ORG_DOMAIN_LABELS, ORG_DOMAIN_PSL)

OUTPUT_FORMATS = ("text", "json", "all")

# Exit codes: 0 = success, 1 = validation/deps error, 2 = step errors, 3 = spoofable (--exit-code)
EXIT_SUCCESS = 0
EXIT_VALIDATION = 1
EXIT_CHECK_FAILURE = 2
EXIT_SPOOFABLE = 3
