from pydantic import BaseModel
from typing import Optional

class VerificationDecision(BaseModel):
    expectedVersion: Optional[int] = None

class VerificationRejection(BaseModel):
    reason: str = ""
    expectedVersion: Optional[int] = None

class DisputeResolution(BaseModel):
    note: str = ""

class DashboardStats(BaseModel):
    totalUsers: int
    totalProviders: int
    totalBookings: int
    totalRevenue: int
    pendingDisputes: int
    pendingVerifications: int
