"""
Async client for the EventSpark ticketing API.

Each public method returns schema objects or raises one of the ApiError
subclasses. Transport failures, ``success: false`` answers and unexpected
shapes are all mapped here, so callers handle exactly three error kinds.
"""

import uuid
from decimal import Decimal
from typing import Any, Callable, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from eventspark.core.config import Settings, get_settings
from eventspark.core.errors import BusinessError, MalformedResponseError, TransportError
from eventspark.core.logging import get_logger
from eventspark.core.metrics import record_api_call
from eventspark.infrastructure.request_logging import EVENT_HOOKS
from eventspark.infrastructure.responses import (
    unwrap_bookings,
    unwrap_current_user,
    unwrap_event,
    unwrap_events,
    unwrap_users,
)
from eventspark.infrastructure.token_store import TokenStore
from eventspark.schemas.booking import Booking
from eventspark.schemas.common import parse_decimal
from eventspark.schemas.event import Event, EventStatus
from eventspark.schemas.user import User, UserBuckets, UserCreate, UserRole

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse(model: Type[M], record: Any, endpoint: str) -> M:
    try:
        return model.model_validate(record)
    except ValidationError as e:
        logger.warning("response_validation_failed", endpoint=endpoint, errors=e.error_count())
        raise MalformedResponseError(f"Unexpected {model.__name__} record from {endpoint}") from e


def _parse_list(model: Type[M], records: list, endpoint: str) -> list[M]:
    """Parse every record, dropping the ones that do not validate.

    One bad record must not hide the rest of the collection.
    """
    parsed = []
    for index, record in enumerate(records):
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as e:
            record_id = record.get("_id", record.get("id")) if isinstance(record, dict) else None
            logger.warning(
                "record_skipped", endpoint=endpoint, index=index, record_id=record_id, errors=e.error_count()
            )
    return parsed


class TicketingApiClient:
    """Thin typed wrapper over ``httpx.AsyncClient``.

    ``transport`` is passed straight to httpx; tests use it to mount an
    in-process ASGI app.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self.tokens = token_store or TokenStore(settings.TOKEN_PATH)
        self._http = httpx.AsyncClient(
            base_url=settings.API_URL,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
            event_hooks=EVENT_HOOKS,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "TicketingApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self.tokens.load()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        endpoint: str,
        json: Optional[dict] = None,
        decode: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Send one request and return ``decode(body)``, or the body itself.

        The call counts as "ok" only once the body has been decoded.
        """
        request_id = str(uuid.uuid4())[:8]
        headers = {**self._auth_headers(), "X-Request-ID": request_id}

        with structlog.contextvars.bound_contextvars(request_id=request_id, endpoint=endpoint):
            try:
                response = await self._http.request(method, path, json=json, headers=headers)
            except httpx.HTTPError as e:
                record_api_call(endpoint, "transport_error")
                logger.warning("request_failed", error=str(e) or type(e).__name__)
                raise TransportError(f"Could not reach the server: {type(e).__name__}") from e

            try:
                body = response.json()
            except ValueError as e:
                if response.is_error:
                    record_api_call(endpoint, "transport_error")
                    raise TransportError(
                        f"Server error {response.status_code}", response.status_code
                    ) from e
                record_api_call(endpoint, "malformed")
                raise MalformedResponseError("Response is not JSON", response.status_code) from e

            failed = isinstance(body, dict) and body.get("success") is False
            if failed or response.is_error:
                message = body.get("message") if isinstance(body, dict) else None
                record_api_call(endpoint, "business_error")
                logger.info("request_rejected", status_code=response.status_code, message=message)
                raise BusinessError(
                    message or f"Request failed with status {response.status_code}",
                    response.status_code,
                )

            if decode is not None:
                try:
                    body = decode(body)
                except MalformedResponseError:
                    record_api_call(endpoint, "malformed")
                    raise

            record_api_call(endpoint, "ok")
            return body

    # Events

    async def list_events(self) -> list[Event]:
        return await self._request(
            "GET", "/api/events", "events.list",
            decode=lambda body: _parse_list(Event, unwrap_events(body), "events.list"),
        )

    async def get_event(self, event_id: str) -> Event:
        return await self._request(
            "GET", f"/api/events/{event_id}", "events.get",
            decode=lambda body: _parse(Event, unwrap_event(body), "events.get"),
        )

    async def update_event_status(self, event_id: str, status: EventStatus) -> None:
        await self._request(
            "PUT", f"/api/events/{event_id}", "events.update_status", json={"status": status.value}
        )

    async def deny_event(self, event_id: str) -> None:
        await self._request("PUT", f"/api/events/{event_id}/deny", "events.deny")

    async def sell_tickets(self, event_id: str, quantity: int = 1) -> Optional[Decimal]:
        """Returns the price the ticket sold for, when the server reports it."""
        body = await self._request(
            "POST", f"/api/events/{event_id}/sell-tickets", "events.sell_tickets", json={"quantity": quantity}
        )
        data = body.get("data") if isinstance(body, dict) else None
        return parse_decimal(data.get("ticketPrice")) if isinstance(data, dict) else None

    # Users

    async def current_user(self) -> User:
        return await self._request(
            "GET", "/api/auth/me", "auth.me",
            decode=lambda body: _parse(User, unwrap_current_user(body), "auth.me"),
        )

    async def list_users(self) -> UserBuckets:
        return await self._request(
            "GET", "/api/auth/users", "users.list",
            decode=lambda body: _parse(UserBuckets, unwrap_users(body), "users.list"),
        )

    async def create_user(self, form: UserCreate) -> None:
        await self._request(
            "POST", "/api/auth/users", "users.create", json=form.model_dump(by_alias=True, mode="json")
        )

    async def change_role(self, email: str, role: UserRole) -> None:
        await self._request(
            "PATCH", "/api/auth/users/role", "users.change_role", json={"email": email, "role": role.value}
        )

    # Bookings

    async def list_bookings(self) -> list[Booking]:
        return await self._request(
            "GET", "/api/bookings", "bookings.list",
            decode=lambda body: _parse_list(Booking, unwrap_bookings(body), "bookings.list"),
        )

    async def cancel_booking(self, booking_id: str) -> None:
        await self._request("PUT", f"/api/bookings/{booking_id}/cancel", "bookings.cancel")
