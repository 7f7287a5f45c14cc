from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import httpx

from chan_reader.services.models import Board, Post
from chan_reader.services.retry import RetryableHttpError, RetryPolicy, with_retry

if TYPE_CHECKING:
    from chan_reader.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ApiError(Exception):
    status_code: int | None
    message: str

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_status(cls, status_code: int) -> "ApiError":
        if status_code == 404:
            return cls(status_code, "Thread or board no longer exists (404)")
        return cls(status_code, f"Server error ({status_code})")

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class ChanApiClient:
    def __init__(
        self,
        base_url: str = "https://a.4cdn.org",
        *,
        timeout_seconds: float = 20.0,
        user_agent: str = "chan-reader",
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.retry_policy = retry_policy or RetryPolicy()
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "ChanApiClient":
        return cls(
            settings.api_base_url,
            timeout_seconds=settings.api_timeout_seconds,
            user_agent=settings.api_user_agent,
            retry_policy=RetryPolicy.from_settings(settings),
            **kwargs,
        )

    async def _get_json(self, path: str, *, operation: str) -> Any:
        url = f"{self.base_url}{path}"

        async def _call() -> httpx.Response:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                transport=self._transport,
            ) as client:
                return await client.get(url)

        try:
            response = await with_retry(operation=operation, call=_call, policy=self.retry_policy, logger=logger)
        except RetryableHttpError as exc:
            raise ApiError.from_status(exc.status_code) from exc
        except httpx.HTTPError as exc:
            raise ApiError(None, f"Network error: {exc!r}") from exc

        if not response.is_success:
            logger.warning(
                "API request failed",
                extra={"event": "api_request_failed", "operation": operation, "status_code": response.status_code},
            )
            raise ApiError.from_status(response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(None, f"Data processing error: {exc}") from exc

    @staticmethod
    def _decode(payload: Any, decoder: Callable[[Any], T]) -> T:
        try:
            return decoder(payload)
        except (KeyError, TypeError, AttributeError) as exc:
            raise ApiError(None, f"Data processing error: {exc!r}") from exc

    async def fetch_boards(self) -> list[Board]:
        payload = await self._get_json("/boards.json", operation="fetch_boards")
        boards = self._decode(payload, lambda data: [Board.from_api(item) for item in data["boards"]])
        logger.info("Fetched boards", extra={"event": "boards_fetched", "count": len(boards)})
        return boards

    async def fetch_catalog(self, board: str) -> list[Post]:
        payload = await self._get_json(f"/{board}/catalog.json", operation="fetch_catalog")
        threads = self._decode(
            payload,
            lambda pages: [Post.from_api(item) for page in pages for item in (page.get("threads") or [])],
        )
        logger.info("Fetched catalog", extra={"event": "catalog_fetched", "board": board, "count": len(threads)})
        return threads

    async def fetch_thread(self, board: str, thread_id: int) -> list[Post]:
        payload = await self._get_json(f"/{board}/thread/{thread_id}.json", operation="fetch_thread")
        posts = self._decode(payload, lambda data: [Post.from_api(item) for item in data["posts"]])
        logger.info(
            "Fetched thread",
            extra={"event": "thread_fetched", "board": board, "thread_id": thread_id, "count": len(posts)},
        )
        return posts
