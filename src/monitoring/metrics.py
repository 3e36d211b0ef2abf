from prometheus_client import Counter, Histogram

# -----------------------
# Request-level metrics
# -----------------------

REQUESTS_TOTAL = Counter(
    "docextract_requests_total",
    "Total extraction requests"
)

REQUEST_FAILURES_TOTAL = Counter(
    "docextract_requests_failed_total",
    "Total failed extraction requests",
    ["reason"]
)

REQUEST_LATENCY_MS = Histogram(
    "docextract_request_latency_ms",
    "End-to-end extraction latency (ms)",
    buckets=(100, 300, 500, 1000, 2000, 5000, 10000, 30000)
)

# -----------------------
# Upstream probing
# -----------------------

PROBE_ATTEMPTS_TOTAL = Counter(
    "docextract_probe_attempts_total",
    "Upstream calls per authentication probe",
    ["probe"]
)

PROBE_ACCEPTED_TOTAL = Counter(
    "docextract_probe_accepted_total",
    "Probe that produced the final non-401 response",
    ["probe"]
)

# -----------------------
# Normalization
# -----------------------

ENTITIES_EMITTED_TOTAL = Counter(
    "docextract_entities_emitted_total",
    "Entities produced by normalization"
)
