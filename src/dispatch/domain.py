"""Dispatch bounded context — Order Fulfillment and Shop Settlement.

Handles the delivery order lifecycle (CQRS), the two-step delivery assignment
protocol with its compensating rollback, shop settlement reconciliation, and
the table-level change feed that keeps observer surfaces in sync.
"""

import os

from protean.domain import Domain

from dispatch.utils.logging import configure_logging

configure_logging(log_dir=os.getenv("LOG_DIR"))

dispatch = Domain(name="dispatch")
