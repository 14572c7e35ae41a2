from pydantic import BaseModel
from typing import Optional

class ResolveAccountRequest(BaseModel):
    account_number: str = ""
    bank_code: str = ""

class SubaccountRequest(BaseModel):
    provider_id: str = ""
    business_name: str = ""
    settlement_bank: str = ""
    account_number: str = ""
    percentage_charge: Optional[float] = None
