"""Remote persistence helpers for notification entities."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from portal_notify.domain.entities import NotificationPage
from portal_notify.interfaces.api.schemas import NotificationPageRead

logger = logging.getLogger(__name__)


class NotificationApiError(RuntimeError):
    """Raised when a notification endpoint fails or answers unexpectedly."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotificationRepository:
    """Provide list and mutation operations against the notification REST API."""

    def __init__(
        self, client: httpx.AsyncClient, base_path: str = "/api/notifications"
    ) -> None:
        self.client = client
        self.base_path = base_path.rstrip("/")

    async def list_page(self, page: int = 1, limit: int = 10) -> NotificationPage:
        response = await self._request(
            "GET", self.base_path, params={"page": page, "limit": limit}
        )
        try:
            body = NotificationPageRead.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise NotificationApiError(
                "Notification list response could not be parsed",
                status_code=response.status_code,
            ) from exc
        return body.to_entity()

    async def mark_as_read(self, notification_id: str) -> None:
        await self._request("PATCH", f"{self.base_path}/{notification_id}/read")

    async def mark_all_as_read(self) -> None:
        await self._request("PATCH", f"{self.base_path}/read-all")

    async def delete(self, notification_id: str) -> bool:
        """Delete ``notification_id``; return ``False`` when it was already gone."""

        try:
            await self._request("DELETE", f"{self.base_path}/{notification_id}")
        except NotificationApiError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                logger.info("Notification %s was already deleted", notification_id)
                return False
            raise
        return True

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Notification API request %s %s failed: %s", method, url, exc)
            raise NotificationApiError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            detail = _extract_error_detail(response)
            logger.error(
                "Notification API responded with status %s for %s %s: %s",
                response.status_code,
                method,
                url,
                detail or "-",
            )
            raise NotificationApiError(
                detail or f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response


def _extract_error_detail(response: httpx.Response) -> str | None:
    """Return the ``message`` field of an error body, when there is one."""

    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if message:
            return str(message)
    return None


__all__ = ["NotificationApiError", "NotificationRepository"]
