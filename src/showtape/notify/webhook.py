"""Webhook notifications for episode start and finish."""

import logging
from enum import Enum
from urllib.parse import quote

import httpx

from showtape.utils.errors import NotificationError
from showtape.utils.retry import RetryExecutor

logger = logging.getLogger(__name__)


class NotifyAction(str, Enum):
    """Event discriminator sent in the ``action`` field."""

    START = "Start"
    FINISH = "Finish"


def build_payload(
    container: str,
    file_name: str,
    series_name: str,
    action: NotifyAction | None = None,
) -> dict[str, str]:
    """Build the flat webhook body; every value is URL-encoded.

    Example:
        >>> build_payload("shows", "a b.mp3", "Morning Show", NotifyAction.START)
        {'action': 'Start', 'container': 'shows', 'fileName': 'a%20b.mp3', 'seriesName': 'Morning%20Show'}
    """
    payload = {}
    if action is not None:
        payload["action"] = quote(NotifyAction(action).value, safe="")
    payload["container"] = quote(container, safe="")
    payload["fileName"] = quote(file_name, safe="")
    payload["seriesName"] = quote(series_name, safe="")
    return payload


class Notifier:
    """POST JSON events to a webhook under the retry policy.

    Notifications are not best-effort: when every retry fails the error
    propagates and the run stops.
    """

    def __init__(
        self,
        webhook_url: str,
        retry: RetryExecutor | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        """Initialize notifier.

        Args:
            webhook_url: Endpoint receiving the events
            retry: Retry executor (default policy if None)
            client: httpx client (default: a new client with ``timeout``)
            timeout: Request timeout in seconds
        """
        self.webhook_url = str(webhook_url)
        self.retry = retry or RetryExecutor()
        self.client = client or httpx.Client(timeout=timeout)

    def notify(self, payload: dict[str, str]) -> None:
        """Deliver ``payload``, retrying on failure.

        Raises:
            NotificationError: If the endpoint keeps failing or answering non-2xx
        """
        action = payload.get("action", "event")
        logger.info(f"Notifying webhook: {action} {payload.get('fileName', '')}")
        self.retry.execute(self._post, payload)

    def _post(self, payload: dict[str, str]) -> None:
        try:
            response = self.client.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Webhook answered HTTP {response.status_code}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        self.client.close()
