"""Periodic settlement reconciliation for long-running workers."""

import asyncio

import structlog
from protean.domain import Domain

from dispatch.settlement.reconciler import ReconciliationReport, SettlementReconciler

logger = structlog.get_logger(__name__)


def reconcile_once(domain: Domain) -> ReconciliationReport:
    with domain.domain_context():
        return SettlementReconciler().run()


async def reconcile_periodically(domain: Domain, interval_seconds: float, stop: asyncio.Event | None = None) -> None:
    """Run reconciliation every ``interval_seconds`` until ``stop`` is set.

    A failed pass is logged and the next tick tries again; reconciliation
    is idempotent so a partial pass is completed by the following one.
    """
    stop = stop or asyncio.Event()
    while not stop.is_set():
        try:
            await asyncio.to_thread(reconcile_once, domain)
        except Exception:
            logger.exception("Scheduled reconciliation failed")

        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
        except TimeoutError:
            continue
