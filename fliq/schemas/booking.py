from pydantic import BaseModel, Field
from typing import Optional, Union

class QuoteRequest(BaseModel):
    providerId: str
    serviceId: Optional[str] = None
    duration: Union[int, str] = ""  # number or raw form input; non-numeric quotes to zero
    durationUnit: str = "hours"

class QuoteOut(BaseModel):
    baseAmount: int
    platformFee: int
    totalAmount: int
    durationUnits: list[str]
    minBookingHours: int = 1

class BookingCreate(BaseModel):
    providerId: str
    serviceId: Optional[str] = None
    date: str  # YYYY-MM-DD
    startTime: str  # HH:MM
    duration: Union[int, str]
    durationUnit: str = "hours"
    location: str
    notes: str = ""
    paymentMethod: str = "wallet"

class BookingTransitionIn(BaseModel):
    expectedVersion: Optional[int] = None
    finalAmount: Optional[int] = Field(default=None, ge=0)
    reason: str = ""

class DisputeCreate(BaseModel):
    reason: str
