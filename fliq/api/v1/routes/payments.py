"""Paystack pass-through endpoints.

Every response is an envelope: {"status": true, "data": ...} on success,
{"status": false, "message": ...} with HTTP 500 on any failure. Callers
check `status`, not only the HTTP code.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from fliq.api.deps import get_session_context
from fliq.core.config import settings
from fliq.core.session_context import SessionContext
from fliq.db.session import get_db
from fliq.models.provider import Provider
from fliq.schemas.payments import ResolveAccountRequest, SubaccountRequest
from fliq.services.audit_service import log_activity
from fliq.services.paystack_client import PaystackClient, PaystackConfig, PaystackError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}


def _ok(data, message: str | None = None) -> JSONResponse:
    body = {"status": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(body, headers=CORS_HEADERS)


def _fail(message: str) -> JSONResponse:
    return JSONResponse({"status": False, "message": message}, status_code=500, headers=CORS_HEADERS)


def paystack_client() -> PaystackClient:
    return PaystackClient(PaystackConfig(secret_key=settings.PAYSTACK_SECRET_KEY, base_url=settings.PAYSTACK_BASE_URL))


@router.options("/payments/paystack/{path:path}")
def preflight(path: str):
    return Response(status_code=200, headers=CORS_HEADERS)


@router.get("/payments/paystack/banks")
def banks():
    try:
        items = paystack_client().list_banks()
        return _ok([b for b in items if b.get("country", "Nigeria") == "Nigeria"])
    except Exception as e:
        logger.exception("fetching banks failed")
        return _fail(str(e) if isinstance(e, PaystackError) else "Failed to fetch banks")


@router.post("/payments/paystack/verify-account")
def verify_account(body: ResolveAccountRequest):
    try:
        if not body.account_number or not body.bank_code:
            raise PaystackError("Account number and bank code are required")
        return _ok(paystack_client().resolve_account(account_number=body.account_number, bank_code=body.bank_code))
    except Exception as e:
        logger.exception("verifying account failed")
        return _fail(str(e) if isinstance(e, PaystackError) else "Failed to verify account")


@router.post("/payments/paystack/subaccount")
def subaccount(body: SubaccountRequest, db: Session = Depends(get_db),
               session: SessionContext = Depends(get_session_context)):
    """Create the provider's settlement sub-account, or update it if one exists."""
    try:
        client = paystack_client()
        if not session.is_authenticated:
            raise PaystackError("Unauthorized")
        user = session.require_user()
        if not (body.provider_id and body.business_name and body.settlement_bank and body.account_number):
            raise PaystackError("Missing required fields")
        provider = db.get(Provider, body.provider_id)
        if not provider:
            raise PaystackError("Provider not found")
        if provider.user_id != user.id:
            raise PaystackError("Unauthorized - not your provider account")

        charge = body.percentage_charge if body.percentage_charge is not None else settings.PAYSTACK_DEFAULT_PERCENTAGE_CHARGE
        fields = dict(business_name=body.business_name, settlement_bank=body.settlement_bank,
                      account_number=body.account_number, percentage_charge=charge)
        if provider.paystack_subaccount_code:
            data = client.update_subaccount(provider.paystack_subaccount_code, **fields)
            return _ok(data, "Subaccount updated successfully")

        data = client.create_subaccount(**fields)
        provider.paystack_subaccount_code = data.get("subaccount_code")
        log_activity(db, user.id, "subaccount_created", "provider", provider.id, {"code": provider.paystack_subaccount_code})
        db.commit()
        return _ok(data, "Subaccount created successfully")
    except Exception as e:
        db.rollback()
        logger.exception("subaccount request failed")
        return _fail(str(e) if isinstance(e, PaystackError) else "Failed to process subaccount")
