"""
COVERWISE • core/payments.py
Payment gate for cover-letter generation.

A request passes when the gate is switched off, when it carries a configured
promo code, or when its Razorpay payment id resolves to a captured payment.
Every outcome is a tagged result; nothing here raises to the caller.
"""

from __future__ import annotations

import hmac
import re
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from coverwise.core.config import Settings
from coverwise.core.errors import Err, Ok, Result
from coverwise.core.utils import log_event


class RazorpayPayment(BaseModel):
    """The subset of Razorpay's payment entity the gate relies on."""

    id: str
    status: str
    amount: int = 0
    currency: str = ""


PAYMENT_REQUIRED = Err("Payment required", "Please complete payment to generate cover letter", 403)
PAYMENT_NOT_COMPLETED = Err("Payment not completed", "Your payment was not successful", 403)

PAYMENT_ID = re.compile(r"pay_[A-Za-z0-9]+")


def _verification_failed(detail: str) -> Err:
    return Err("Payment verification failed", "Could not verify your payment", 500, detail)


class PaymentGate:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _is_promo(self, promo_code: Optional[str]) -> bool:
        code = (promo_code or "").strip()
        if not code:
            return False
        raw = code.encode("utf-8")
        return any(hmac.compare_digest(raw, valid.encode("utf-8")) for valid in self.settings.promo_codes)

    async def fetch_payment(self, payment_id: str) -> RazorpayPayment:
        url = f"{self.settings.razorpay_api_base}/payments/{quote(payment_id, safe='')}"
        auth = (self.settings.razorpay_key_id, self.settings.razorpay_key_secret)
        async with httpx.AsyncClient(timeout=self.settings.payment_timeout_sec, transport=self._transport) as client:
            r = await client.get(url, auth=auth)
        r.raise_for_status()
        return RazorpayPayment.model_validate(r.json())

    async def authorize(
        self,
        payment_id: Optional[str],
        promo_code: Optional[str] = None,
        user: Optional[str] = None,
    ) -> Result[str]:
        if not self.settings.payment_required:
            return Ok("disabled")

        if self._is_promo(promo_code):
            log_event("promo_code_used", {"user": user or "unknown"})
            return Ok("promo")

        payment_id = (payment_id or "").strip()
        if not payment_id:
            log_event("payment_missing", {"user": user or "unknown"}, level="warn")
            return PAYMENT_REQUIRED
        if not PAYMENT_ID.fullmatch(payment_id):
            log_event("payment_id_rejected", {"user": user or "unknown", "length": len(payment_id)}, level="warn")
            return PAYMENT_REQUIRED

        if not (self.settings.razorpay_key_id and self.settings.razorpay_key_secret):
            log_event("payment_config_missing", {}, level="error")
            return _verification_failed("Razorpay credentials are not configured")

        try:
            payment = await self.fetch_payment(payment_id)
        except httpx.HTTPStatusError as e:
            log_event(
                "payment_verification_failed",
                {"payment_id": payment_id, "status": e.response.status_code},
                level="error",
            )
            return _verification_failed(f"Razorpay returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            log_event("payment_verification_failed", {"payment_id": payment_id, "error": str(e)}, level="error")
            return _verification_failed(f"{type(e).__name__}: {e}")
        except (ValidationError, ValueError) as e:
            log_event("payment_verification_failed", {"payment_id": payment_id, "error": "bad_payload"}, level="error")
            return _verification_failed(f"Unexpected payment payload: {e}")

        if payment.status != "captured":
            log_event("payment_not_captured", {"payment_id": payment.id, "status": payment.status}, level="warn")
            return PAYMENT_NOT_COMPLETED

        log_event("payment_verified", {
            "payment_id": payment.id,
            "amount": payment.amount / 100,
            "currency": payment.currency,
            "status": payment.status,
            "user": user or "unknown",
        })
        return Ok(payment.id)
