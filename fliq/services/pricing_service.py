"""Booking cost model.

    base_amount  = rate_for_unit(unit) * duration
    platform_fee = round_half_up(base_amount * 5%)
    total_amount = base_amount + platform_fee

Amounts are whole Naira. The fee is rounded half up on the exact decimal
product, so 10 * 5% = 0.5 -> 1 regardless of float representation.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

FEE_RATE = Decimal("0.05")

DURATION_UNITS = ("hours", "days", "weeks")
_UNIT_DELTAS = {"hours": timedelta(hours=1), "days": timedelta(days=1), "weeks": timedelta(weeks=1)}


@dataclass(frozen=True)
class Pricing:
    hourly: int | None = None
    daily: int | None = None
    weekly: int | None = None

    @classmethod
    def from_service(cls, service) -> "Pricing":
        return cls(hourly=service.price_hour, daily=service.price_day, weekly=service.price_week)

    @classmethod
    def from_hourly_rate(cls, rate: int | None) -> "Pricing":
        return cls(hourly=rate)

    def rate_for_unit(self, unit: str) -> int | None:
        return {"hours": self.hourly, "days": self.daily, "weeks": self.weekly}.get(unit)


@dataclass(frozen=True)
class CostBreakdown:
    base_amount: int = 0
    platform_fee: int = 0
    total_amount: int = 0

    @property
    def provider_payout(self) -> int:
        return self.total_amount - self.platform_fee


ZERO = CostBreakdown()


def platform_fee_for(base_amount: int) -> int:
    return int((Decimal(base_amount) * FEE_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_duration(value) -> int | None:
    """Positive integer duration from form input, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    try:
        d = int(str(value).strip())
    except ValueError:
        return None
    return d if d > 0 else None


def calculate_costs(duration, unit: str, pricing: Pricing) -> CostBreakdown:
    """Pure cost calculation.

    Returns zeros for a non-positive or non-numeric duration. A unit with no
    rate gives a zero base amount; callers restrict the selectable units with
    `selectable_units` to avoid that.
    """
    d = parse_duration(duration)
    if d is None:
        return ZERO
    rate = pricing.rate_for_unit(unit) or 0
    base = int(rate) * d
    fee = platform_fee_for(base)
    return CostBreakdown(base_amount=base, platform_fee=fee, total_amount=base + fee)


def selectable_units(pricing: Pricing) -> list[str]:
    """Units a client may pick: those with a rate."""
    return [u for u in DURATION_UNITS if pricing.rate_for_unit(u)]


def end_of(start: datetime, duration: int, unit: str) -> datetime:
    if unit not in _UNIT_DELTAS:
        raise ValueError(f"unknown duration unit: {unit}")
    return start + _UNIT_DELTAS[unit] * duration


def has_price_tier(price_hour, price_day, price_week) -> bool:
    return any(p for p in (price_hour, price_day, price_week))
