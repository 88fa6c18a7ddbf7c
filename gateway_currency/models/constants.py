"""Order lifecycle constants.

The order state machine:
    created -> confirmed (thank-you page shown)
    created | confirmed | partially_refunded -> partially_refunded | refunded
"""

from typing import Dict, Set

ORDER_STATUSES: Set[str] = {"created", "confirmed", "partially_refunded", "refunded"}
TOTALS_STATUSES: Set[str] = {"pending", "recorded", "missing"}

REFUND_TARGETS: Set[str] = {"partially_refunded", "refunded"}
ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    "created": {"confirmed"} | REFUND_TARGETS,
    "confirmed": set(REFUND_TARGETS),
    "partially_refunded": set(REFUND_TARGETS),
    "refunded": set(),
}

# Rendering surfaces that get the "amount paid in settlement currency" line
ADDENDUM_SURFACES: Set[str] = {"admin", "customer", "email"}
