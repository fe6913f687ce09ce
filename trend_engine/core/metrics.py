"""
Prometheus metrics for the trend engine.

Metrics exposed:
- Collaborator fetch success/failure counters
- Superseded (cancelled) fetch counter
- Analysis cache hit/miss counters
- Ingest rejection counter
"""
from prometheus_client import Counter

# Collaborator fetch metrics
provider_fetch_success_total = Counter(
    "trend_provider_fetch_success_total",
    "Total successful collaborator fetches",
    ["provider"]
)

provider_fetch_failure_total = Counter(
    "trend_provider_fetch_failure_total",
    "Total failed collaborator fetches",
    ["provider", "error_type"]
)

provider_fetch_superseded_total = Counter(
    "trend_provider_fetch_superseded_total",
    "In-flight fetches cancelled by a newer fetch",
    ["provider"]
)

# Analysis cache metrics
analysis_cache_hits_total = Counter(
    "trend_analysis_cache_hits_total",
    "Reconstructions served from the analysis cache"
)

analysis_cache_misses_total = Counter(
    "trend_analysis_cache_misses_total",
    "Reconstructions computed because no fresh cache entry existed"
)

# Ingest metrics
ingest_rejected_total = Counter(
    "trend_ingest_rejected_total",
    "Provider records rejected at the ingest boundary",
    ["record_type"]
)
