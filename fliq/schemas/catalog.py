from pydantic import BaseModel, Field
from typing import List, Optional

class ServiceExtra(BaseModel):
    name: str
    price: int = Field(ge=0)

class OnboardingIn(BaseModel):
    category: str
    bio: str = ""
    basePrice: int = Field(ge=0)
    documents: List[str] = Field(default_factory=list)  # URLs returned by /uploads
    avatarUrl: Optional[str] = None

class ServiceIn(BaseModel):
    title: str
    description: str = ""
    price_hour: Optional[int] = Field(default=None, ge=0)
    price_day: Optional[int] = Field(default=None, ge=0)
    price_week: Optional[int] = Field(default=None, ge=0)
    min_booking_hours: int = 1
    extras: List[ServiceExtra] = Field(default_factory=list)
    active: bool = True

class ServicesCreate(BaseModel):
    services: List[ServiceIn]

class ServiceUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price_hour: Optional[int] = Field(default=None, ge=0)
    price_day: Optional[int] = Field(default=None, ge=0)
    price_week: Optional[int] = Field(default=None, ge=0)
    min_booking_hours: Optional[int] = None
    extras: Optional[List[ServiceExtra]] = None
    active: Optional[bool] = None
