"""Prometheus metrics for the price updater."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("price_updater", "Dynamic price updater application info")
app_info.info({"version": "1.0.0", "name": "dynamic-price-updater"})

# Quote metrics
price_quotes_total = Counter(
    "price_quotes_total",
    "Total number of price quotes computed",
    ["outcome"],  # discounted, regular, not_found
)

price_quote_duration_seconds = Histogram(
    "price_quote_duration_seconds",
    "Time spent computing a price quote",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Rule data quality
discount_rules_skipped_total = Counter(
    "discount_rules_skipped_total",
    "Stored discount rules or brackets skipped because they are malformed",
    ["reason"],
)

# Rule cache
rules_cache_requests_total = Counter(
    "rules_cache_requests_total",
    "Discount rule cache lookups",
    ["result"],  # hit, miss, error
)


def record_quote(outcome: str, duration: float):
    """Record a computed price quote."""
    price_quotes_total.labels(outcome=outcome).inc()
    price_quote_duration_seconds.observe(duration)


def record_rule_skipped(reason: str):
    """Record a malformed rule or bracket being skipped."""
    discount_rules_skipped_total.labels(reason=reason).inc()


def record_cache_lookup(result: str):
    """Record a rule cache hit, miss or backend error."""
    rules_cache_requests_total.labels(result=result).inc()
