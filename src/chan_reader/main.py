import logging
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from chan_reader.config import Settings, get_settings
from chan_reader.services.api_client import ApiError, ChanApiClient
from chan_reader.services.boards import BoardDirectory
from chan_reader.services.logging_config import configure_logging
from chan_reader.services.models import MediaUrls
from chan_reader.services.store import Store
from chan_reader.services.thread_service import ThreadService
from chan_reader.services.thread_tree import EmptyInputError

logger = logging.getLogger(__name__)


def _api_failure(exc: ApiError, operation: str) -> HTTPException:
    logger.warning(
        "Upstream API failure",
        extra={"event": "upstream_api_failure", "operation": operation, "status_code": exc.status_code},
    )
    if exc.not_found:
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def create_app(
    settings: Optional[Settings] = None,
    api_client: Optional[ChanApiClient] = None,
    store: Optional[Store] = None,
) -> FastAPI:
    settings = settings or get_settings()
    api_client = api_client or ChanApiClient.from_settings(settings)
    store = store or Store(settings.database_file)
    media_urls = MediaUrls(settings.image_base_url, settings.static_base_url)

    directory = BoardDirectory(api_client, store)
    threads = ThreadService(api_client, store, media_urls)

    app = FastAPI(title="Chan Reader", version="0.1.0")

    @app.on_event("startup")
    def startup() -> None:
        store.init_db()
        logger.info("Application startup complete", extra={"event": "startup_complete"})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.app_env}

    @app.get("/boards")
    async def list_boards(sfw: bool = Query(default=False), q: str = Query(default="")) -> JSONResponse:
        try:
            listing = await directory.listing(sfw_only=sfw, query=q)
        except ApiError as exc:
            raise _api_failure(exc, "list_boards") from exc
        return JSONResponse(listing.as_dict())

    @app.put("/favorites/{board}")
    def add_favorite(board: str) -> dict[str, Any]:
        store.add_favorite(board)
        return {"board": board, "favorite": True}

    @app.delete("/favorites/{board}")
    def remove_favorite(board: str) -> dict[str, Any]:
        store.remove_favorite(board)
        return {"board": board, "favorite": False}

    @app.get("/boards/{board}/catalog")
    async def catalog(board: str) -> JSONResponse:
        try:
            threads_payload = await threads.catalog(board)
        except ApiError as exc:
            raise _api_failure(exc, "catalog") from exc
        return JSONResponse({"board": board, "threads": threads_payload})

    @app.get("/boards/{board}/threads/{thread_id}")
    async def thread(board: str, thread_id: int, flat: bool = Query(default=False)) -> JSONResponse:
        try:
            rendered = await threads.load(board, thread_id)
        except ApiError as exc:
            raise _api_failure(exc, "thread") from exc
        except EmptyInputError as exc:
            raise HTTPException(status_code=404, detail="thread has no posts") from exc

        payload = rendered.as_dict(flat=flat)
        payload["bookmarked"] = store.is_bookmarked(board, thread_id)
        return JSONResponse(payload)

    @app.put("/boards/{board}/threads/{thread_id}/bookmark")
    async def toggle_bookmark(board: str, thread_id: int) -> dict[str, Any]:
        try:
            bookmarked = await threads.toggle_bookmark(board, thread_id)
        except ApiError as exc:
            raise _api_failure(exc, "toggle_bookmark") from exc
        logger.info(
            "Bookmark toggled",
            extra={"event": "bookmark_toggled", "board": board, "thread_id": thread_id, "bookmarked": bookmarked},
        )
        return {"board": board, "thread_id": thread_id, "bookmarked": bookmarked}

    @app.get("/bookmarks")
    def bookmarks() -> dict[str, Any]:
        return {"bookmarks": [bookmark.as_dict() for bookmark in store.load_bookmarks()]}

    @app.delete("/bookmarks/{bookmark_id}")
    def delete_bookmark(bookmark_id: str) -> dict[str, Any]:
        if not store.remove_bookmark(bookmark_id):
            raise HTTPException(status_code=404, detail="bookmark not found")
        return {"id": bookmark_id, "deleted": True}

    return app


settings = get_settings()
configure_logging(settings.log_level)
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)
