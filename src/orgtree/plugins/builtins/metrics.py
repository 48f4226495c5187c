"""Built-in Prometheus metrics plugin.

Turns lifecycle hooks into counters, and the ``post_operation``,
``post_http_request`` and ``post_db_query`` hooks into duration histograms. Metrics live in a private ``CollectorRegistry`` so they
never collide with the default process registry, and one plugin instance is
shared per namespace for the life of the process.
"""

from __future__ import annotations

import threading

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from orgtree.plugins.hookspecs import hookimpl

# Hierarchy operations are single-transaction writes and indexed reads.
DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
# Single statements against an indexed table.
QUERY_BUCKETS = (0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0)


class MetricsPlugin:
    """Counts hierarchy writes and observes every operation's duration."""

    def __init__(self, namespace: str = "orgtree") -> None:
        self.registry = CollectorRegistry()
        self.users_created = Counter(
            "user_created_total",
            "Total number of users created",
            namespace=namespace,
            registry=self.registry,
        )
        self.groups_created = Counter(
            "group_created_total",
            "Total number of groups created",
            namespace=namespace,
            registry=self.registry,
        )
        self.user_group_links = Counter(
            "user_group_links_total",
            "Total number of users linked below a group",
            namespace=namespace,
            registry=self.registry,
        )
        self.operation_duration = Histogram(
            "operation_duration_seconds",
            "Service operation duration in seconds",
            ["op", "ok"],
            namespace=namespace,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "route", "status_code"],
            namespace=namespace,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.db_query_duration = Histogram(
            "db_query_duration_seconds",
            "SQL statement duration in seconds",
            namespace=namespace,
            buckets=QUERY_BUCKETS,
            registry=self.registry,
        )

    @hookimpl
    def post_create_group(self, group_id: str, name: str, parent_id: str | None) -> None:
        self.groups_created.inc()

    @hookimpl
    def post_create_user(self, user_id: str, name: str, email: str) -> None:
        self.users_created.inc()

    @hookimpl
    def post_add_user_to_group(self, user_id: str, group_id: str, edges_added: int) -> None:
        self.user_group_links.inc()

    @hookimpl
    def post_operation(self, op: str, ok: bool, duration_seconds: float) -> None:
        self.operation_duration.labels(op=op, ok=str(ok).lower()).observe(duration_seconds)

    @hookimpl
    def post_http_request(
        self, method: str, route: str, status_code: int, duration_seconds: float
    ) -> None:
        self.request_duration.labels(
            method=method, route=route, status_code=str(status_code)
        ).observe(duration_seconds)

    @hookimpl
    def post_db_query(self, duration_seconds: float) -> None:
        self.db_query_duration.observe(duration_seconds)

    def render(self) -> bytes:
        """Prometheus text exposition of this plugin's registry."""
        return generate_latest(self.registry)


_plugins: dict[str, MetricsPlugin] = {}
_lock = threading.Lock()


def get_metrics_plugin(namespace: str = "orgtree") -> MetricsPlugin:
    """Return the process-wide MetricsPlugin for *namespace*, creating it once."""
    with _lock:
        plugin = _plugins.get(namespace)
        if plugin is None:
            plugin = MetricsPlugin(namespace)
            _plugins[namespace] = plugin
        return plugin


def render_metrics(namespace: str = "orgtree") -> bytes:
    """Prometheus text exposition for *namespace*."""
    return get_metrics_plugin(namespace).render()
