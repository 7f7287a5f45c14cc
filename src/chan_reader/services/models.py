from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from chan_reader.services.sanitizer import clean_text, decode_entities

DEFAULT_ASPECT_RATIO = 1.5


class MediaType(str, Enum):
    IMAGE = "image"
    GIF = "gif"
    VIDEO = "video"
    PDF = "pdf"
    NONE = "none"
    UNKNOWN = "unknown"


_MEDIA_TYPES = {
    ".jpg": MediaType.IMAGE,
    ".jpeg": MediaType.IMAGE,
    ".png": MediaType.IMAGE,
    ".heic": MediaType.IMAGE,
    ".gif": MediaType.GIF,
    ".webm": MediaType.VIDEO,
    ".mp4": MediaType.VIDEO,
    ".pdf": MediaType.PDF,
}


def _known_fields(cls: type, payload: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in payload.items() if key in names}


@dataclass(frozen=True)
class MediaUrls:
    image_base_url: str = "https://i.4cdn.org"
    static_base_url: str = "https://s.4cdn.org"

    def image(self, board: str, tim: int, ext: str) -> str:
        return f"{self.image_base_url}/{board}/{tim}{ext}"

    def thumbnail(self, board: str, tim: int) -> str:
        return f"{self.image_base_url}/{board}/{tim}s.jpg"

    @property
    def spoiler_thumbnail(self) -> str:
        return f"{self.static_base_url}/image/spoiler.png"


@dataclass(frozen=True)
class Post:
    """A single post as served by the JSON API (``no`` is the post number)."""

    no: int
    resto: Optional[int] = None
    time: Optional[int] = None
    now: Optional[str] = None
    name: Optional[str] = None
    sub: Optional[str] = None
    com: Optional[str] = None
    filename: Optional[str] = None
    ext: Optional[str] = None
    tim: Optional[int] = None
    w: Optional[int] = None
    h: Optional[int] = None
    tn_w: Optional[int] = None
    tn_h: Optional[int] = None
    replies: Optional[int] = None
    images: Optional[int] = None
    sticky: Optional[int] = None
    closed: Optional[int] = None
    archived: Optional[int] = None
    trip: Optional[str] = None
    capcode: Optional[str] = None
    country: Optional[str] = None
    country_name: Optional[str] = None
    filedeleted: Optional[int] = None
    spoiler: Optional[int] = None
    custom_spoiler: Optional[int] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Post":
        return cls(**_known_fields(cls, payload))

    @property
    def is_op(self) -> bool:
        return not self.resto

    @property
    def has_file(self) -> bool:
        return self.tim is not None and self.filedeleted != 1

    @property
    def is_spoiler(self) -> bool:
        return self.spoiler == 1

    @property
    def aspect_ratio(self) -> float:
        if not self.w or not self.h or self.w <= 0 or self.h <= 0:
            return DEFAULT_ASPECT_RATIO
        return self.w / self.h

    @property
    def media_type(self) -> MediaType:
        if not self.ext:
            return MediaType.NONE
        return _MEDIA_TYPES.get(self.ext.lower(), MediaType.UNKNOWN)

    @property
    def display_name(self) -> str:
        return self.name or "Anonymous"

    @property
    def clean_subject(self) -> str:
        return decode_entities(self.sub or "").strip()

    @property
    def clean_comment(self) -> str:
        return clean_text(self.com)

    def image_url(self, board: str, urls: MediaUrls | None = None) -> str | None:
        if self.tim is None or not self.ext:
            return None
        return (urls or MediaUrls()).image(board, self.tim, self.ext)

    def thumbnail_url(self, board: str, urls: MediaUrls | None = None) -> str | None:
        urls = urls or MediaUrls()
        if self.is_spoiler:
            return urls.spoiler_thumbnail
        if self.tim is None:
            return None
        return urls.thumbnail(board, self.tim)


@dataclass(frozen=True)
class Cooldowns:
    threads: int
    replies: int
    images: int


@dataclass(frozen=True)
class Board:
    board: str
    title: str
    ws_board: Optional[int] = None
    per_page: Optional[int] = None
    pages: Optional[int] = None
    meta_description: Optional[str] = None
    max_filesize: Optional[int] = None
    max_comment_chars: Optional[int] = None
    image_limit: Optional[int] = None
    cooldowns: Optional[Cooldowns] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Board":
        values = _known_fields(cls, payload)
        cooldowns = values.get("cooldowns")
        if isinstance(cooldowns, dict):
            values["cooldowns"] = Cooldowns(**_known_fields(Cooldowns, cooldowns))
        return cls(**values)

    @property
    def is_work_safe(self) -> bool:
        return self.ws_board == 1

    @property
    def display_name(self) -> str:
        return decode_entities(f"/{self.board}/ - {self.title}")

    @property
    def clean_description(self) -> str:
        return decode_entities(self.meta_description or "")


@dataclass(frozen=True)
class BookmarkedThread:
    board: str
    thread_id: int
    subject: Optional[str] = None
    preview_text: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def id(self) -> str:
        return bookmark_id(self.board, self.thread_id)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board": self.board,
            "thread_id": self.thread_id,
            "subject": self.subject,
            "preview_text": self.preview_text,
            "timestamp": self.timestamp.isoformat(),
        }


def bookmark_id(board: str, thread_id: int) -> str:
    return f"{board}_{thread_id}"


@dataclass(frozen=True)
class Message:
    """One post as seen by the reply-graph engine.

    ``thread_root_id`` is ``None`` for the opening post. ``arrival_index`` is
    the position in the flat list the API returned, which is kept because post
    numbers are not contiguous.
    """

    id: int
    arrival_index: int
    thread_root_id: Optional[int] = None
    raw_text: Optional[str] = None
    post: Optional[Post] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_post(cls, post: Post, arrival_index: int) -> "Message":
        return cls(
            id=post.no,
            arrival_index=arrival_index,
            thread_root_id=post.resto or None,
            raw_text=post.com,
            post=post,
        )

    @property
    def clean_comment(self) -> str:
        return clean_text(self.raw_text)


def messages_from_posts(posts: list[Post]) -> list[Message]:
    return [Message.from_post(post, index) for index, post in enumerate(posts)]
