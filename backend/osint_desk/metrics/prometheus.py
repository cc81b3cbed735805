from prometheus_client import Counter, Histogram

api_request_latency_seconds = Histogram(
    "api_request_latency_seconds",
    "API request latency in seconds",
    ["route", "method", "status"],
)

cases_created_total = Counter(
    "cases_created_total",
    "Total investigation cases created",
)

entities_created_total = Counter(
    "entities_created_total",
    "Total entities added to cases",
    ["type"],
)

searches_total = Counter(
    "searches_total",
    "Total searches proxied to providers",
    ["type", "status"],
)

provider_requests_total = Counter(
    "provider_requests_total",
    "Total outbound provider calls",
    ["provider", "outcome"],
)

provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Latency of outbound provider calls in seconds",
    ["provider"],
)
