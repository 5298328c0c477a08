"""
Payment processor clients.

The booking service only sees `PaymentProcessor.charge`. A definitive answer
comes back as a PaymentResult; anything ambiguous (timeout, transport error,
5xx, unreadable body, a refused or in-flight idempotency key) raises
PaymentProcessingError so the booking stays PENDING and can be retried with
the same idempotency key. Only card declines (402 / card_error) are FAILED.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

import requests

from ..exceptions import PaymentProcessingError
from ..utils.constants import PaymentStatus

logger = logging.getLogger(__name__)


@dataclass
class PaymentRequest:
    amount: Decimal
    currency: str
    payment_method_token: str
    idempotency_key: str
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def amount_minor(self) -> int:
        """Amount in the currency's minor unit (cents)."""
        return int((self.amount * 100).to_integral_value())


@dataclass
class PaymentResult:
    status: str
    transaction_id: Optional[str] = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED


class PaymentProcessor(ABC):
    @abstractmethod
    def charge(self, request: PaymentRequest) -> PaymentResult:
        """Submit a charge; return a definitive result or raise PaymentProcessingError."""


# processor intent status -> our three outcomes
_STATUS_MAP = {
    "succeeded": PaymentStatus.SUCCEEDED,
    "requires_action": PaymentStatus.REQUIRES_ACTION,
    "requires_confirmation": PaymentStatus.REQUIRES_ACTION,
    "requires_payment_method": PaymentStatus.FAILED,
    "canceled": PaymentStatus.FAILED,
    "failed": PaymentStatus.FAILED,
}


class HttpPaymentProcessor(PaymentProcessor):
    """Payment-intents style HTTP gateway with bearer auth and idempotency keys."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError("PAYMENT_API_BASE is required for the http processor")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or requests.Session()

    def charge(self, request: PaymentRequest) -> PaymentResult:
        data = {
            "amount": request.amount_minor,
            "currency": request.currency,
            "payment_method": request.payment_method_token,
            "confirm": "true",
        }
        for k, v in request.metadata.items():
            data[f"metadata[{k}]"] = v

        try:
            resp = self.http.post(
                f"{self.base_url}/v1/payment_intents",
                data=data,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Idempotency-Key": request.idempotency_key,
                },
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Payment gateway timed out (key=%s)", request.idempotency_key)
            raise PaymentProcessingError("Payment gateway timed out, please retry") from None
        except requests.RequestException as e:
            logger.error("Payment gateway unreachable (key=%s): %s", request.idempotency_key, e)
            raise PaymentProcessingError() from None

        if resp.status_code >= 500:
            logger.error("Payment gateway returned %s (key=%s)", resp.status_code, request.idempotency_key)
            raise PaymentProcessingError()

        try:
            body = resp.json()
        except ValueError:
            logger.error("Unreadable payment gateway response (key=%s)", request.idempotency_key)
            raise PaymentProcessingError() from None

        if resp.status_code >= 400:
            err = (body.get("error") if isinstance(body, dict) else None) or {}
            if resp.status_code == 402 or err.get("type") == "card_error":
                return PaymentResult(PaymentStatus.FAILED, (err.get("payment_intent") or {}).get("id"),
                                     err.get("message") or "Payment was declined")
            # 409 in-flight key, idempotency_error, 429, auth failures: nothing was
            # declined, so the attempt stays open under the same key
            logger.error("Payment gateway refused request: %s %s (key=%s)",
                         resp.status_code, err.get("type"), request.idempotency_key)
            raise PaymentProcessingError()

        status = _STATUS_MAP.get(body.get("status"))
        if status is None:
            logger.error("Unexpected payment status %r (key=%s)", body.get("status"), request.idempotency_key)
            raise PaymentProcessingError()

        message = ""
        if status == PaymentStatus.REQUIRES_ACTION:
            message = "Additional authentication is required to complete this payment"
        elif status == PaymentStatus.FAILED:
            message = (body.get("last_payment_error") or {}).get("message") or "Payment was declined"
        return PaymentResult(status, body.get("id"), message)


class FakePaymentProcessor(PaymentProcessor):
    """
    In-process processor for development and tests.
    Tokens starting with 'tok_fail' are declined, 'tok_3ds' require action,
    'tok_timeout' behave like a gateway timeout; anything else succeeds.
    Replays by idempotency key return the first result; reusing a key with
    different parameters is refused the way real gateways refuse it.
    """

    def __init__(self):
        self.requests: List[PaymentRequest] = []
        self._params: Dict[str, tuple] = {}
        self._results: Dict[str, PaymentResult] = {}

    def charge(self, request: PaymentRequest) -> PaymentResult:
        self.requests.append(request)
        params = (request.amount, request.currency, request.payment_method_token)
        seen = self._params.setdefault(request.idempotency_key, params)
        if seen != params:
            raise PaymentProcessingError("Idempotency key was already used with different parameters")
        if request.idempotency_key in self._results:
            return self._results[request.idempotency_key]

        token = request.payment_method_token
        if token.startswith("tok_timeout"):
            raise PaymentProcessingError("Payment gateway timed out, please retry")
        if token.startswith("tok_fail"):
            result = PaymentResult(PaymentStatus.FAILED, f"pi_{uuid.uuid4().hex[:16]}",
                                   "Your card was declined")
        elif token.startswith("tok_3ds"):
            result = PaymentResult(PaymentStatus.REQUIRES_ACTION, f"pi_{uuid.uuid4().hex[:16]}",
                                   "Additional authentication is required to complete this payment")
        else:
            result = PaymentResult(PaymentStatus.SUCCEEDED, f"pi_{uuid.uuid4().hex[:16]}")
        self._results[request.idempotency_key] = result
        return result


def build_processor(config) -> PaymentProcessor:
    kind = (config.get("PAYMENT_PROCESSOR") or "fake").lower()
    if kind == "http":
        return HttpPaymentProcessor(
            config.get("PAYMENT_API_BASE", ""),
            config.get("PAYMENT_API_KEY", ""),
            timeout=config.get("PAYMENT_TIMEOUT_SECONDS", 10),
        )
    if kind != "fake":
        raise ValueError(f"Unknown PAYMENT_PROCESSOR {kind!r}")
    return FakePaymentProcessor()
