"""HTTP client for the payment backend.

The backend looks up (or creates) the processor customer for the uid on every
call and forwards to the processor. This client keeps no state and never
retries; non-2xx responses become a BackendError carrying the raw body text.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from groupgo.errors import BackendError
from groupgo.models import PaymentMethodList, SetupIntentResponse
from groupgo.result import returns_result

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


def _parse(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BackendError(f"Unexpected payment backend response: {e}") from e


class PaymentRelay:
    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"Payment backend unreachable: {e}") from e

        if not response.is_success:
            logger.error("Payment backend error: %d %s", response.status_code, response.text)
            raise BackendError(response.text or f"Backend error: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Payment backend returned invalid JSON: {e}") from e

    @returns_result
    async def create_setup_intent(self, uid: str, email: str) -> SetupIntentResponse:
        data = await self._request("POST", "/stripe/setup-intent", json={"uid": uid, "email": email})
        return _parse(SetupIntentResponse, data)

    @returns_result
    async def list_payment_methods(
        self,
        customer_id: str | None = None,
        uid: str | None = None,
        email: str | None = None,
    ) -> PaymentMethodList:
        params = {
            name: value
            for name, value in (("customerId", customer_id), ("uid", uid), ("email", email))
            if value and value.strip()
        }
        listing = _parse(PaymentMethodList, await self._request("GET", "/stripe/payment-methods", params=params))
        default = listing.default_payment_method
        if default:
            listing.payment_methods = [
                method.model_copy(update={"is_default": method.is_default or method.id == default})
                for method in listing.payment_methods
            ]
        return listing

    @returns_result
    async def set_default_payment_method(self, uid: str, email: str, payment_method_id: str) -> None:
        await self._request(
            "POST",
            "/stripe/payment-methods/default",
            json={"uid": uid, "email": email, "paymentMethodId": payment_method_id},
        )
        logger.info("Set default payment method for user %s", uid)

    @returns_result
    async def delete_payment_method(self, uid: str, email: str, payment_method_id: str) -> None:
        await self._request(
            "POST",
            "/stripe/payment-methods/delete",
            json={"uid": uid, "email": email, "paymentMethodId": payment_method_id},
        )
        logger.info("Deleted payment method for user %s", uid)
