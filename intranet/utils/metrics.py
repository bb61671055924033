"""
Centralized Prometheus metrics.

All application metrics are defined here to prevent duplication
and ensure consistent labeling across modules.
"""

from prometheus_client import Counter, Histogram


# ── Notification Fan-out ──────────────────────────────────────────────────────

notifications_total = Counter(
    "intranet_notifications_total",
    "Notification rows written by fan-out",
    ["type", "status"]
)

fanout_recipients = Histogram(
    "intranet_notification_fanout_recipients",
    "Recipients targeted by a single fan-out",
    ["type"],
    buckets=[1, 2, 5, 10, 25, 50, 100, 250, 500]
)


# ── Activity Log ──────────────────────────────────────────────────────────────

activity_writes_total = Counter(
    "intranet_activity_log_writes_total",
    "Activity log writes",
    ["action", "status"]
)


# ── Uploads ───────────────────────────────────────────────────────────────────

uploads_total = Counter(
    "intranet_uploads_total",
    "Uploaded files by category",
    ["category", "status"]
)

upload_size_bytes = Histogram(
    "intranet_upload_size_bytes",
    "Size of accepted uploads",
    ["category"],
    buckets=[10_000, 100_000, 1_000_000, 5_000_000, 10_000_000, 20_000_000]
)


# ── Badges ────────────────────────────────────────────────────────────────────

badge_render_seconds = Histogram(
    "intranet_badge_render_seconds",
    "Badge PDF render time",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0]
)
