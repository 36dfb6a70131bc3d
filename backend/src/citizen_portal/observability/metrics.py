"""Prometheus metrics for the submission intake service."""

from prometheus_client import Counter, Histogram

# Outcome of every POST /api/submit, labelled by response code (OK, RATE_LIMIT, ...)
submissions_total = Counter(
    "portal_submissions_total",
    "Total submission attempts by outcome code",
    ["code"]
)

submissions_flagged_total = Counter(
    "portal_submissions_flagged_total",
    "Submissions persisted with FLAGGED status"
)

spam_score_histogram = Histogram(
    "portal_spam_score",
    "Spam score distribution of accepted submissions",
    buckets=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)

# Rate limiting
rate_limit_rejections_total = Counter(
    "portal_rate_limit_rejections_total",
    "Requests rejected by the rate limiter",
    ["backend"]  # backend: redis|memory
)

rate_limit_fallbacks_total = Counter(
    "portal_rate_limit_fallbacks_total",
    "Rate limit checks served by the in-process fallback after a Redis error"
)

# Attachments
attachment_bytes_histogram = Histogram(
    "portal_attachment_bytes",
    "Size of stored attachments in bytes",
    buckets=[
        10_000, 100_000, 1_000_000, 5_000_000, 10_000_000,
        25_000_000, 100_000_000, 500_000_000,
    ]
)

attachment_rejections_total = Counter(
    "portal_attachment_rejections_total",
    "Attachments rejected during validation"
)
