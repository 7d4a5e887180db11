"""Webhook delivery with bounded retries and exponential backoff.

Retry policy:
- network errors, 3xx and 5xx responses are retried, waiting ``2 ** (attempt - 1)``
  seconds between attempts (1s, 2s, 4s, ...);
- a 4xx response stops immediately, since resending the same request
  cannot succeed;
- any 2xx response is a success.

Delivery is a side effect of a committed state transition. ``deliver``
never raises; a failed webhook is logged and reported as ``False``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from approvals.domain.models import Deal, EventMetadata, WebhookConfig
from approvals.domain.types import ApprovalEventType
from approvals.observability.metrics import WEBHOOK_DELIVERIES
from approvals.webhooks.payload import WebhookPayload, build_payload, canonical_body
from approvals.webhooks.signing import SIGNATURE_HEADER, sign_payload

logger = structlog.get_logger()

USER_AGENT = "approvals-webhook/1.0"


class RetryableResponse(Exception):
    """Raised internally for non-2xx, non-4xx responses so tenacity retries them."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"Retryable response {response.status_code}")


def _before_sleep_log(retry_state: RetryCallState) -> None:
    """Log a warning before each retry attempt.

    Args:
        retry_state: Tenacity retry state with attempt info.
    """
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "webhook_retrying",
        url=retry_state.kwargs.get("url"),
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
        error=str(exception),
    )


class WebhookDispatcher:
    """Deliver signed webhook payloads to external URLs.

    Args:
        client: Shared ``httpx.AsyncClient`` used for all deliveries.
        signing_secret: Fallback HMAC key for configs without their own secret.
        max_attempts: Default attempt ceiling per delivery.
        sleep: Awaitable sleep used between retries.  Injected in tests.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        signing_secret: str = "",
        max_attempts: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._signing_secret = signing_secret
        self._max_attempts = max_attempts
        self._sleep = sleep

    def _headers(self, payload: WebhookPayload, body: bytes, secret: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "X-Webhook-Event": payload.event.value,
        }
        key = secret or self._signing_secret
        if key:
            headers[SIGNATURE_HEADER] = sign_payload(body, key)
        else:
            logger.warning("webhook_unsigned", deal_id=payload.deal_id)
        return headers

    async def _post(self, *, url: str, body: bytes, headers: dict[str, str]) -> httpx.Response:
        response = await self._client.post(url, content=body, headers=headers)
        if not response.is_success and not response.is_client_error:
            raise RetryableResponse(response)
        return response

    async def deliver(
        self,
        url: str,
        payload: WebhookPayload,
        max_attempts: int | None = None,
        secret: str | None = None,
    ) -> bool:
        """POST *payload* to *url*, retrying transient failures.

        Args:
            url: The webhook target.
            payload: The event payload.
            max_attempts: Attempt ceiling; defaults to the dispatcher's.
            secret: Per-webhook signing key; defaults to the dispatcher's.

        Returns:
            True on a 2xx response, False otherwise.
        """
        attempts = max_attempts or self._max_attempts
        body = canonical_body(payload)
        headers = self._headers(payload, body, secret)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, exp_base=2),
            retry=retry_if_exception_type((httpx.TransportError, RetryableResponse)),
            before_sleep=_before_sleep_log,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            response = await retrying(self._post, url=url, body=body, headers=headers)
        except (httpx.TransportError, RetryableResponse) as exc:
            logger.error(
                "webhook_delivery_failed",
                url=url,
                webhook_event=payload.event.value,
                attempts=attempts,
                error=str(exc),
            )
            WEBHOOK_DELIVERIES.labels(outcome="failed").inc()
            return False
        except Exception:
            logger.exception("webhook_delivery_error", url=url, webhook_event=payload.event.value)
            WEBHOOK_DELIVERIES.labels(outcome="failed").inc()
            return False

        if response.is_success:
            logger.info(
                "webhook_delivered",
                url=url,
                webhook_event=payload.event.value,
                status_code=response.status_code,
            )
            WEBHOOK_DELIVERIES.labels(outcome="delivered").inc()
            return True

        logger.warning(
            "webhook_rejected",
            url=url,
            webhook_event=payload.event.value,
            status_code=response.status_code,
        )
        WEBHOOK_DELIVERIES.labels(outcome="rejected").inc()
        return False

    async def dispatch(
        self,
        event: ApprovalEventType,
        deal: Deal,
        configs: Iterable[WebhookConfig],
        metadata: EventMetadata | None = None,
    ) -> dict[str, bool]:
        """Deliver *event* to every config subscribed to it, concurrently.

        Each URL is retried independently; one slow or failing target does
        not affect the others.

        Returns:
            A mapping of webhook config id to delivery result.
        """
        targets = [config for config in configs if config.subscribes_to(event)]
        if not targets:
            return {}

        payload = build_payload(event, deal, metadata)
        results: list[Any] = await asyncio.gather(
            *(self.deliver(config.url, payload, secret=config.secret) for config in targets)
        )
        return {config.id: bool(ok) for config, ok in zip(targets, results, strict=True)}
