"""Four-step booking request flow.

COLLECTING_SCHEDULE -> REVIEWING_SUMMARY -> SELECTING_PAYMENT -> SUBMITTED

Form fields survive back/forward navigation. Costs are recomputed on every
field update. SUBMITTED is only reached after the store accepted the booking;
a failed submit leaves the wizard on SELECTING_PAYMENT so the client can press
submit again.
"""
import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time, timezone
from enum import Enum

from fliq.core.session_context import SessionContext
from fliq.services.booking_service import BookingStore, NewBooking
from fliq.services.pricing_service import (
    ZERO,
    CostBreakdown,
    Pricing,
    calculate_costs,
    end_of,
    parse_duration,
    selectable_units,
)

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("wallet", "card")
HOURS_PER_UNIT = {"hours": 1, "days": 24, "weeks": 168}


class WizardStep(str, Enum):
    COLLECTING_SCHEDULE = "collecting_schedule"
    REVIEWING_SUMMARY = "reviewing_summary"
    SELECTING_PAYMENT = "selecting_payment"
    SUBMITTED = "submitted"


class BookingValidationError(ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class WizardStateError(RuntimeError):
    pass


class BookingSubmissionError(RuntimeError):
    pass


@dataclass
class ScheduleForm:
    date: str = ""  # YYYY-MM-DD
    start_time: str = ""  # HH:MM
    duration: str = ""
    duration_unit: str = "hours"
    location: str = ""
    notes: str = ""
    payment_method: str = "wallet"


@dataclass(frozen=True)
class BookingTarget:
    """Provider (and optional service) being booked, with pricing snapshotted at load time."""
    provider_id: str
    provider_user_id: str
    category: str
    pricing: Pricing
    verified: bool = True
    service_id: str | None = None
    min_booking_hours: int = 1

    @classmethod
    def for_provider(cls, provider, service=None) -> "BookingTarget":
        if service is None:
            return cls(
                provider_id=provider.id,
                provider_user_id=provider.user_id,
                category=provider.category,
                pricing=Pricing.from_hourly_rate(provider.base_price),
                verified=bool(provider.verified),
            )
        return cls(
            provider_id=provider.id,
            provider_user_id=provider.user_id,
            category=provider.category,
            pricing=Pricing.from_service(service),
            verified=bool(provider.verified),
            service_id=service.id,
            min_booking_hours=service.min_booking_hours or 1,
        )


_FORM_FIELDS = {f.name for f in fields(ScheduleForm)}
_REQUIRED = ("date", "start_time", "duration", "location")


class BookingWizard:
    def __init__(self, session: SessionContext, target: BookingTarget, store: BookingStore):
        self.client = session.require_role("client")
        if not target.verified:
            raise BookingValidationError(["provider is not verified"])
        if target.provider_user_id == self.client.id:
            raise BookingValidationError(["you cannot book yourself"])
        self.target = target
        self.store = store
        self.step = WizardStep.COLLECTING_SCHEDULE
        self.form = ScheduleForm()
        self.costs: CostBreakdown = ZERO
        self.booking = None
        self.error: str | None = None

    @property
    def units(self) -> list[str]:
        return selectable_units(self.target.pricing)

    def update(self, **changes) -> CostBreakdown:
        """Set form fields and recompute costs immediately."""
        if self.step == WizardStep.SUBMITTED:
            raise WizardStateError("booking already submitted")
        unknown = set(changes) - _FORM_FIELDS
        if unknown:
            raise BookingValidationError([f"unknown field: {name}" for name in sorted(unknown)])
        if "payment_method" in changes and changes["payment_method"] not in PAYMENT_METHODS:
            raise BookingValidationError([f"payment method must be one of {', '.join(PAYMENT_METHODS)}"])
        clean = {}
        for name, value in changes.items():
            value = "" if value is None else str(value)
            clean[name] = value if name == "notes" else value.strip()
        self.form = replace(self.form, **clean)
        self.costs = calculate_costs(self.form.duration, self.form.duration_unit, self.target.pricing)
        return self.costs

    def _start(self) -> datetime | None:
        try:
            d = date.fromisoformat(self.form.date)
            t = time.fromisoformat(self.form.start_time)
        except ValueError:
            return None
        return datetime.combine(d, t, tzinfo=timezone.utc)

    def schedule_errors(self) -> list[str]:
        errors = [f"{name} is required" for name in _REQUIRED if not getattr(self.form, name)]
        if errors:
            return errors
        start = self._start()
        if start is None:
            errors.append("date/start_time are not valid")
        elif start.date() < datetime.now(timezone.utc).date():
            errors.append("date is in the past")
        duration = parse_duration(self.form.duration)
        if duration is None:
            errors.append("duration must be a positive whole number")
        if self.form.duration_unit not in self.units:
            errors.append(f"duration unit {self.form.duration_unit!r} is not offered for this booking")
        elif duration is not None and self.target.service_id:
            hours = duration * HOURS_PER_UNIT[self.form.duration_unit]
            if hours < self.target.min_booking_hours:
                errors.append(f"minimum booking is {self.target.min_booking_hours} hours")
        return errors

    def can_advance(self) -> bool:
        if self.step == WizardStep.COLLECTING_SCHEDULE:
            return not self.schedule_errors()
        return self.step == WizardStep.REVIEWING_SUMMARY

    def advance(self) -> WizardStep:
        if self.step == WizardStep.COLLECTING_SCHEDULE:
            errors = self.schedule_errors()
            if errors:
                raise BookingValidationError(errors)
            self.step = WizardStep.REVIEWING_SUMMARY
        elif self.step == WizardStep.REVIEWING_SUMMARY:
            self.step = WizardStep.SELECTING_PAYMENT
        else:
            raise WizardStateError(f"cannot advance from {self.step.value}")
        return self.step

    def back(self) -> WizardStep:
        if self.step == WizardStep.SELECTING_PAYMENT:
            self.step = WizardStep.REVIEWING_SUMMARY
        elif self.step == WizardStep.REVIEWING_SUMMARY:
            self.step = WizardStep.COLLECTING_SCHEDULE
        else:
            raise WizardStateError(f"cannot go back from {self.step.value}")
        return self.step

    def select_payment_method(self, method: str) -> None:
        if self.step != WizardStep.SELECTING_PAYMENT:
            raise WizardStateError("payment method is chosen on the payment step")
        self.update(payment_method=method)

    def submit(self):
        if self.step != WizardStep.SELECTING_PAYMENT:
            raise WizardStateError("submit is only possible on the payment step")
        errors = self.schedule_errors()
        if errors:
            raise BookingValidationError(errors)

        duration = parse_duration(self.form.duration)
        start = self._start()
        costs = calculate_costs(duration, self.form.duration_unit, self.target.pricing)
        record = NewBooking(
            client_id=self.client.id,
            provider_id=self.target.provider_id,
            service_id=self.target.service_id,
            category=self.target.category,
            requested_start=start,
            requested_end=end_of(start, duration, self.form.duration_unit),
            duration=duration,
            duration_unit=self.form.duration_unit,
            location=self.form.location,
            notes=self.form.notes,
            payment_method=self.form.payment_method,
            estimated_amount=costs.total_amount,
            platform_fee=costs.platform_fee,
            provider_payout=costs.provider_payout,
        )
        self.error = None
        try:
            booking = self.store.create(record)
        except Exception as exc:
            logger.exception("creating booking for client %s with provider %s failed", self.client.id, self.target.provider_id)
            self.error = "Failed to create booking"
            raise BookingSubmissionError(self.error) from exc

        self.costs = costs
        self.booking = booking
        self.step = WizardStep.SUBMITTED
        logger.info("booking %s requested by %s", booking.id, self.client.id)
        return booking
