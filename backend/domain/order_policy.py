"""
Order status transition policy.

Business and driver dashboards request coarse statuses ("accepted", "ready",
...). What actually gets stored depends on who gathers the items:

    flow                   requested   driver id   stored
    ─────────────────────  ─────────   ─────────   ────────────────
    shopped_by_driver      accepted    given       shopping
    prepared_by_business   ready       -           ready_for_pickup
    shopped_by_driver      ready       -           items_collected
    any                    anything else           verbatim

Every update stamps updated_at; "completed" also stamps completed_at.
No transition validity is enforced: any status may replace any other.

Everything here is pure so it can be tested without a database.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from domain.constants import MERGEABLE_ORDER_FIELDS
from domain.enums import BusinessType, FulfillmentFlow, OrderStatus
from domain.errors import ValidationError
from utils.timeutil import utcnow


@dataclass(frozen=True)
class StatusUpdate:
    """Result of applying the policy: the stored status plus every column to write."""
    status: str
    fields: dict[str, Any] = field(default_factory=dict)


def fulfillment_flow(needs_preparation: bool | None, business_type: str | None) -> FulfillmentFlow:
    """
    Classify an order. An explicit needs_preparation wins; older records
    without it fall back to the business type.
    """
    if needs_preparation is None:
        needs_preparation = business_type == BusinessType.RESTAURANT.value
    if needs_preparation:
        return FulfillmentFlow.PREPARED_BY_BUSINESS
    return FulfillmentFlow.SHOPPED_BY_DRIVER


def resolve_status(requested_status: str, flow: FulfillmentFlow, driver_id: str | None = None) -> str:
    """Map a requested status to the one that gets persisted."""
    shopped = flow == FulfillmentFlow.SHOPPED_BY_DRIVER

    if requested_status == OrderStatus.ACCEPTED.value:
        if shopped and driver_id:
            return OrderStatus.SHOPPING.value
    elif requested_status == OrderStatus.READY.value:
        return OrderStatus.ITEMS_COLLECTED.value if shopped else OrderStatus.READY_FOR_PICKUP.value
    return requested_status


def _check_extra_fields(extra_fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(extra_fields) - MERGEABLE_ORDER_FIELDS)
    if unknown:
        raise ValidationError(
            f"cannot be set with a status change: {', '.join(unknown)}",
            field="extra_fields",
            details={"allowed": sorted(MERGEABLE_ORDER_FIELDS)},
        )
    return dict(extra_fields)


def plan_status_update(
    order: Any,
    requested_status: str,
    extra_fields: Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> StatusUpdate:
    """
    Compute the status update for `order` (anything exposing needs_preparation
    and business_type) without touching storage.
    """
    if not requested_status:
        raise ValidationError("status is required", field="status")

    extras = _check_extra_fields(extra_fields or {})
    now = now or utcnow()

    flow = fulfillment_flow(
        getattr(order, "needs_preparation", None),
        getattr(order, "business_type", None),
    )
    status = resolve_status(requested_status, flow, extras.get("driver_id"))

    fields: dict[str, Any] = {"status": status, "updated_at": now, **extras}
    if requested_status == OrderStatus.COMPLETED.value:
        fields["completed_at"] = now

    return StatusUpdate(status=status, fields=fields)
