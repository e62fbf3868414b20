"""Protean Engine runner for the dispatch domain.

Starts the Engine that delivers events asynchronously to the change relays
(production config) and, optionally, a periodic settlement reconciliation.

Usage:
    python src/server.py                          # Engine only
    python src/server.py --reconcile-every 300    # Engine + reconcile every 5 minutes
    python src/server.py --no-engine --reconcile-every 60
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from dispatch.domain import dispatch

    dispatch.init()
    return dispatch


async def run(run_engine: bool, reconcile_every: float | None):
    from dispatch.settlement.scheduler import reconcile_periodically

    domain = _get_domain()
    tasks = []
    if run_engine:
        tasks.append(Engine(domain).run())
    if reconcile_every:
        tasks.append(reconcile_periodically(domain, reconcile_every))

    await asyncio.gather(*tasks)


def main():
    parser = argparse.ArgumentParser(description="Dispatch Engine runner")
    parser.add_argument(
        "--reconcile-every",
        type=float,
        metavar="SECONDS",
        help="Run settlement reconciliation on this interval",
    )
    parser.add_argument(
        "--no-engine",
        action="store_true",
        help="Do not start the event Engine",
    )
    args = parser.parse_args()

    if args.no_engine and not args.reconcile_every:
        parser.error("--no-engine requires --reconcile-every")

    asyncio.run(run(not args.no_engine, args.reconcile_every))


if __name__ == "__main__":
    main()
