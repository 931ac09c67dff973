"""HTTP client for the budgeting service's notification API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final, TypeAlias, TypeVar

import httpx

from budgetsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from budgetsync.config.budgets import BudgetsConfig, get_budgets_config
from budgetsync.domain.errors import NotificationNotFoundError, RemoteError
from budgetsync.domain.ports.budgets import BudgetsClient

from .schema import (
    DescribeNotificationsResponse,
    DescribeSubscribersResponse,
    ErrorResponse,
    PaginatedResponse,
)
from .translator import (
    to_notification,
    to_notification_payload,
    to_subscriber,
    to_subscriber_payload,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from budgetsync.domain.model import NotificationDescriptor, SubscriberEntry

log = getLogger(__name__)

TARGET_PREFIX: Final[str] = "AWSBudgetServiceGateway"
CONTENT_TYPE: Final[str] = "application/x-amz-json-1.1"
MAX_PAGE_SIZE: Final[int] = 100
NOT_FOUND_CODE: Final[str] = "NotFoundException"

Payload: TypeAlias = dict[str, object]
TPage = TypeVar("TPage", bound=PaginatedResponse)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpBudgetsClient:
    """Blocking ``BudgetsClient`` over the service's JSON-RPC style endpoint.

    Each operation runs its own event loop and client session; the describe actions
    follow ``NextToken`` until every page has been read.
    """

    config: BudgetsConfig = field(default_factory=get_budgets_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    page_size: int = MAX_PAGE_SIZE

    def create_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscribers: Sequence[SubscriberEntry],
    ) -> None:
        self._run(
            "CreateNotification",
            {
                **_budget_scope(budget_name, account_id),
                "Notification": to_notification_payload(notification).to_request(),
                "Subscribers": [
                    to_subscriber_payload(subscriber).to_request() for subscriber in subscribers
                ],
            },
        )

    def list_notifications(
        self,
        *,
        budget_name: str,
        account_id: str,
    ) -> list[NotificationDescriptor]:
        pages = asyncio.run(
            self._collect_pages(
                "DescribeNotificationsForBudget",
                _budget_scope(budget_name, account_id),
                DescribeNotificationsResponse,
            )
        )
        return [to_notification(payload) for page in pages for payload in page.notifications]

    def list_subscribers(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
    ) -> list[SubscriberEntry]:
        pages = asyncio.run(
            self._collect_pages(
                "DescribeSubscribersForNotification",
                {
                    **_budget_scope(budget_name, account_id),
                    "Notification": to_notification_payload(notification).to_request(),
                },
                DescribeSubscribersResponse,
            )
        )
        entries: list[SubscriberEntry] = []
        for page in pages:
            for payload in page.subscribers:
                entry = to_subscriber(payload)
                if entry is not None:
                    entries.append(entry)
        return entries

    def add_subscriber(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscriber: SubscriberEntry,
    ) -> None:
        self._run(
            "CreateSubscriber",
            _subscriber_body(budget_name, account_id, notification, subscriber),
        )

    def remove_subscriber(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscriber: SubscriberEntry,
    ) -> None:
        self._run(
            "DeleteSubscriber",
            _subscriber_body(budget_name, account_id, notification, subscriber),
        )

    def update_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        old: NotificationDescriptor,
        new: NotificationDescriptor,
    ) -> None:
        self._run(
            "UpdateNotification",
            {
                **_budget_scope(budget_name, account_id),
                "OldNotification": to_notification_payload(old).to_request(),
                "NewNotification": to_notification_payload(new).to_request(),
            },
        )

    def delete_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
    ) -> None:
        self._run(
            "DeleteNotification",
            {
                **_budget_scope(budget_name, account_id),
                "Notification": to_notification_payload(notification).to_request(),
            },
        )

    def _run(self, action: str, body: Payload) -> Payload:
        return asyncio.run(self._call(action, body))

    async def _call(self, action: str, body: Payload) -> Payload:
        async with self.client_factory(self.config.resilience) as client:
            return await self._invoke(client, action, body)

    async def _collect_pages(
        self,
        action: str,
        body: Payload,
        page_model: type[TPage],
    ) -> list[TPage]:
        pages: list[TPage] = []
        next_token: str | None = None
        async with self.client_factory(self.config.resilience) as client:
            while True:
                request: Payload = {**body, "MaxResults": self.page_size}
                if next_token is not None:
                    request["NextToken"] = next_token
                payload = await self._invoke(client, action, request)
                page = page_model.model_validate(payload)
                pages.append(page)
                if not page.next_token:
                    break
                next_token = page.next_token
        return pages

    async def _invoke(self, client: ResilientClient, action: str, body: Payload) -> Payload:
        url = self.config.resilience.base_url or self.config.endpoint_url
        headers = {"Content-Type": CONTENT_TYPE, "X-Amz-Target": f"{TARGET_PREFIX}.{action}"}
        try:
            response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{action} request failed: {exc}") from exc

        if response.is_error:
            _raise_api_error(action, response)

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteError(f"Unexpected {action} response payload") from exc
        if not isinstance(payload, dict):
            raise RemoteError(f"Unexpected {action} response payload")
        return payload  # pyright: ignore[reportUnknownVariableType]


def _budget_scope(budget_name: str, account_id: str) -> Payload:
    return {"AccountId": account_id, "BudgetName": budget_name}


def _subscriber_body(
    budget_name: str,
    account_id: str,
    notification: NotificationDescriptor,
    subscriber: SubscriberEntry,
) -> Payload:
    return {
        **_budget_scope(budget_name, account_id),
        "Notification": to_notification_payload(notification).to_request(),
        "Subscriber": to_subscriber_payload(subscriber).to_request(),
    }


def _raise_api_error(action: str, response: httpx.Response) -> None:
    try:
        error = ErrorResponse.model_validate(response.json())
    except ValueError:
        raise RemoteError(
            f"{action} failed with HTTP {response.status_code}",
            status_code=response.status_code,
        ) from None

    log.error("Budgets API error %s on %s: %s", error.code, action, error.message)
    error_cls = NotificationNotFoundError if error.code == NOT_FOUND_CODE else RemoteError
    raise error_cls(
        error.message or error.code,
        code=error.code,
        status_code=response.status_code,
    )


if TYPE_CHECKING:
    _client_check: BudgetsClient = HttpBudgetsClient()
