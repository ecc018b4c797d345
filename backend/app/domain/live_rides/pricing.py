"""
Live-ride pricing.

Live rides use flat platform rates per route rather than the boat's own
pricing. Amounts are integer cents.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

from backend.app.core.config import settings
from backend.app.models.live_ride_enums import Route


ROUTE_HOURLY_RATE_CENTS: Dict[Route, int] = {
    Route.R1: 60_00,
    Route.R2: 80_00,
    Route.R3: 100_00,
}

SNAPSHOT_TYPE = "LIVE_RIDE_FIXED"


@dataclass(frozen=True)
class LiveRideQuote:
    hourly_rate_cents: int
    subtotal_cents: int
    commission_rate: float
    commission_cents: int
    total_cents: int
    currency: str


def commission_for(subtotal_cents: int, rate: float) -> int:
    """Commission rounded half-up to the cent."""
    amount = Decimal(subtotal_cents) * Decimal(str(rate))
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quote_live_ride(route: Route, hours: int, commission_rate: float = None, currency: str = None) -> LiveRideQuote:
    """Price a live ride of `hours` on `route`."""
    rate = settings.live_ride_commission_rate if commission_rate is None else commission_rate
    hourly = ROUTE_HOURLY_RATE_CENTS[route]
    subtotal = hourly * hours
    commission = commission_for(subtotal, rate)
    return LiveRideQuote(
        hourly_rate_cents=hourly,
        subtotal_cents=subtotal,
        commission_rate=rate,
        commission_cents=commission,
        total_cents=subtotal + commission,
        currency=currency or settings.live_ride_currency,
    )


def pricing_snapshot(request) -> Dict[str, Any]:
    """Pricing facts frozen onto the trip at accept time."""
    return {
        "type": SNAPSHOT_TYPE,
        "pickup_point": request.pickup_point,
        "route": request.route.value,
        "currency": request.currency,
        "hourly_rate_cents": request.hourly_rate_cents,
    }
