# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus counters for composed and delivered messages.

All metrics use the ``mc_`` prefix (mail-composer) and carry a
``transport`` label holding the name of the transport that handled the
message.

Metrics exposed:
    - ``mc_composed_total``: Counter of messages rendered for delivery.
    - ``mc_sent_total``: Counter of messages delivered to every recipient.
    - ``mc_deferred_total``: Counter of messages accepted without full confirmation.
    - ``mc_errors_total``: Counter of deliveries that raised.

Example:
    Passing the collector to a message::

        metrics = MailMetrics()
        message = Message(metrics=metrics, to="you@example.com", body="Hi")
        await message.deliver()
        print(metrics.generate_latest().decode())
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest


class MailMetrics:
    """Prometheus metrics collector for the composer.

    Attributes:
        registry: The Prometheus CollectorRegistry holding all metrics.
        composed: Counter of composed messages.
        sent: Counter of confirmed deliveries.
        deferred: Counter of deliveries accepted without confirmation.
        errors: Counter of failed deliveries.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Create the counters inside the provided registry.

        Args:
            registry: Optional Prometheus CollectorRegistry. A new one is
                created when omitted, so several collectors never clash.
        """
        self.registry = registry or CollectorRegistry()
        self.composed = Counter("mc_composed_total", "Total composed messages", ["transport"], registry=self.registry)
        self.sent = Counter("mc_sent_total", "Total delivered messages", ["transport"], registry=self.registry)
        self.deferred = Counter("mc_deferred_total", "Total deferred messages", ["transport"], registry=self.registry)
        self.errors = Counter("mc_errors_total", "Total delivery errors", ["transport"], registry=self.registry)

    def inc_composed(self, transport: str) -> None:
        """Increment the composed messages counter.

        Args:
            transport: Name of the selected transport. Empty values are
                recorded as "default".
        """
        self.composed.labels(transport=transport or "default").inc()

    def inc_sent(self, transport: str) -> None:
        """Increment the delivered messages counter.

        Args:
            transport: Name of the transport. Empty values are recorded as
                "default".
        """
        self.sent.labels(transport=transport or "default").inc()

    def inc_deferred(self, transport: str) -> None:
        """Increment the deferred messages counter.

        Args:
            transport: Name of the transport. Empty values are recorded as
                "default".
        """
        self.deferred.labels(transport=transport or "default").inc()

    def inc_error(self, transport: str) -> None:
        """Increment the delivery errors counter.

        Args:
            transport: Name of the transport. Empty values are recorded as
                "default".
        """
        self.errors.labels(transport=transport or "default").inc()

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format.

        Returns:
            The metrics snapshot as bytes, ready to be served to a scraper.
        """
        return generate_latest(self.registry)
