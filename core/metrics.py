"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, Histogram

# Matching metrics
likes_total = Counter("likes_total", "Total number of like requests", ["outcome"])  # created, repeat

dislikes_total = Counter("dislikes_total", "Total number of dislike requests")

matches_created_total = Counter("matches_created_total", "Total number of mutual-like matches created")

# Notification metrics
notifications_created_total = Counter(
    "notifications_created_total", "Total number of notifications persisted", ["kind"]
)

notifications_enqueue_errors_total = Counter(
    "notifications_enqueue_errors_total", "Notifications that could not be queued for delivery"
)

notifications_requeued_total = Counter(
    "notifications_requeued_total", "Stale pending notifications queued again by the sweep"
)

delivery_reclaimed_total = Counter("delivery_reclaimed_total", "Stream entries reclaimed from stalled consumers")

webhook_deliveries_total = Counter(
    "webhook_deliveries_total", "Webhook delivery outcomes", ["outcome"]
)  # delivered, failed, skipped, missing, duplicate

webhook_attempts_total = Counter("webhook_attempts_total", "Individual webhook HTTP attempts", ["result"])

webhook_delivery_duration = Histogram(
    "webhook_delivery_duration_seconds", "Time from first attempt to final delivery outcome"
)

# Suggestion metrics
suggestions_resolved_total = Counter(
    "suggestions_resolved_total", "Location suggestions resolved", ["status"]
)  # accepted, rejected, conflict

# Response time metrics
api_request_duration = Histogram(
    "api_request_duration_seconds", "API request duration in seconds", ["method", "endpoint", "status"]
)
