from dataclasses import dataclass
from urllib.parse import quote

import requests


@dataclass
class PaystackConfig:
    secret_key: str
    base_url: str = "https://api.paystack.co"
    timeout: int = 20


class PaystackError(RuntimeError):
    pass


class PaystackClient:
    def __init__(self, cfg: PaystackConfig):
        if not cfg.secret_key:
            raise PaystackError("Paystack secret key not configured")
        self.cfg = cfg

    def request(self, method: str, path: str, payload: dict | None = None, params: dict | None = None) -> dict:
        url = f"{self.cfg.base_url.rstrip('/')}{path}"
        headers = {
            "Authorization": f"Bearer {self.cfg.secret_key}",
            "Content-Type": "application/json",
        }
        r = requests.request(method=method.upper(), url=url, json=payload, params=params, headers=headers, timeout=self.cfg.timeout)
        try:
            data = r.json() if r.text else {}
        except ValueError:
            data = {"message": r.text}
        if r.status_code >= 400:
            raise PaystackError(data.get("message") or f"Paystack API error: {r.status_code}")
        return data

    def list_banks(self, country: str = "nigeria") -> list[dict]:
        data = self.request("GET", "/bank", params={"country": country, "perPage": 100})
        return data.get("data") or []

    def resolve_account(self, *, account_number: str, bank_code: str) -> dict:
        data = self.request("GET", "/bank/resolve", params={"account_number": account_number, "bank_code": bank_code})
        return data.get("data") or {}

    def create_subaccount(self, *, business_name: str, settlement_bank: str, account_number: str, percentage_charge: float) -> dict:
        payload = {
            "business_name": business_name,
            "settlement_bank": settlement_bank,
            "account_number": account_number,
            "percentage_charge": percentage_charge,
        }
        return self.request("POST", "/subaccount", payload).get("data") or {}

    def update_subaccount(self, code: str, *, business_name: str, settlement_bank: str, account_number: str, percentage_charge: float) -> dict:
        payload = {
            "business_name": business_name,
            "settlement_bank": settlement_bank,
            "account_number": account_number,
            "percentage_charge": percentage_charge,
        }
        return self.request("PUT", f"/subaccount/{quote(code, safe='')}", payload).get("data") or {}
