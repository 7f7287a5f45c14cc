from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from chan_reader.services.markup import Span, render_spans
from chan_reader.services.models import MediaUrls, Post, messages_from_posts
from chan_reader.services.thread_tree import ThreadNode, build_tree

if TYPE_CHECKING:
    from chan_reader.services.api_client import ChanApiClient
    from chan_reader.services.store import Store

logger = logging.getLogger(__name__)


@dataclass
class RenderedThread:
    """A reply tree plus the styled spans of every post in it.

    Spans are keyed by arrival position rather than post id so that a thread
    carrying a duplicated id still renders both posts.
    """

    board: str
    root: ThreadNode
    spans: dict[int, list[Span]] = field(default_factory=dict)
    media_urls: MediaUrls = field(default_factory=MediaUrls)

    @property
    def thread_id(self) -> int:
        return self.root.id

    def spans_for(self, node: ThreadNode) -> list[Span]:
        return self.spans.get(node.position, [])

    def media_nodes(self) -> list[ThreadNode]:
        return self.root.media_nodes()

    def _media(self, post: Optional[Post]) -> Optional[dict[str, Any]]:
        if post is None or not post.has_file:
            return None
        return {
            "type": post.media_type.value,
            "filename": f"{post.filename or ''}{post.ext or ''}",
            "image_url": post.image_url(self.board, self.media_urls),
            "thumbnail_url": post.thumbnail_url(self.board, self.media_urls),
            "aspect_ratio": post.aspect_ratio,
            "spoiler": post.is_spoiler,
        }

    def node_dict(self, node: ThreadNode, *, nested: bool = True) -> dict[str, Any]:
        post = node.post
        parent = node.parent
        payload: dict[str, Any] = {
            "id": node.id,
            "position": node.position,
            "parent_id": parent.id if parent is not None else None,
            "quoted_ids": node.quoted_ids,
            "name": post.display_name if post else "Anonymous",
            "subject": post.clean_subject if post else "",
            "time": post.time if post else None,
            "reply_count": len(node.children),
            "media": self._media(post),
            "spans": [span.as_dict() for span in self.spans_for(node)],
        }
        if nested:
            payload["children"] = [self.node_dict(child) for child in node.children]
        return payload

    def as_dict(self, *, flat: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "board": self.board,
            "thread_id": self.thread_id,
            "post_count": len(self.root),
            "media_count": len(self.media_nodes()),
        }
        if flat:
            payload["posts"] = [self.node_dict(node, nested=False) for node in self.root.walk()]
        else:
            payload["root"] = self.node_dict(self.root)
        return payload


def render_thread(board: str, posts: list[Post], media_urls: MediaUrls | None = None) -> RenderedThread:
    root = build_tree(messages_from_posts(posts))
    rendered = RenderedThread(board=board, root=root, media_urls=media_urls or MediaUrls())
    for node in root.walk():
        parent = node.parent
        rendered.spans[node.position] = render_spans(
            node.message.clean_comment,
            thread_root_id=root.id,
            active_ancestor_id=parent.id if parent is not None else None,
        )
    return rendered


class ThreadService:
    def __init__(
        self,
        api_client: "ChanApiClient",
        store: "Store",
        media_urls: MediaUrls | None = None,
    ) -> None:
        self.api_client = api_client
        self.store = store
        self.media_urls = media_urls or MediaUrls()

    async def load(self, board: str, thread_id: int) -> RenderedThread:
        posts = await self.api_client.fetch_thread(board, thread_id)
        rendered = render_thread(board, posts, self.media_urls)
        logger.info(
            "Rendered thread",
            extra={
                "event": "thread_rendered",
                "board": board,
                "thread_id": thread_id,
                "post_count": len(posts),
                "top_level_replies": len(rendered.root.children),
            },
        )
        return rendered

    async def catalog(self, board: str) -> list[dict[str, Any]]:
        threads = await self.api_client.fetch_catalog(board)
        return [
            {
                "id": post.no,
                "subject": post.clean_subject,
                "preview_text": post.clean_comment,
                "replies": post.replies or 0,
                "images": post.images or 0,
                "sticky": post.sticky == 1,
                "closed": post.closed == 1,
                "thumbnail_url": post.thumbnail_url(board, self.media_urls),
                "bookmarked": self.store.is_bookmarked(board, post.no),
            }
            for post in threads
        ]

    async def toggle_bookmark(self, board: str, thread_id: int) -> bool:
        if self.store.is_bookmarked(board, thread_id):
            return self.store.toggle_bookmark(board, thread_id)

        posts = await self.api_client.fetch_thread(board, thread_id)
        opening = posts[0] if posts else None
        return self.store.toggle_bookmark(
            board,
            thread_id,
            subject=(opening.clean_subject or None) if opening else None,
            preview_text=(opening.clean_comment or None) if opening else None,
        )
