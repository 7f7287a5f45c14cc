import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from chan_reader.services.models import BookmarkedThread, bookmark_id

logger = logging.getLogger(__name__)


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class Store:
    def __init__(self, database_path: Path) -> None:
        self.database_path = Path(database_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.database_path)

    def init_db(self) -> None:
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS favorite_boards (
                    board TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bookmarked_threads (
                    id TEXT PRIMARY KEY,
                    board TEXT NOT NULL,
                    thread_id INTEGER NOT NULL,
                    subject TEXT,
                    preview_text TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # Favorites

    def load_favorites(self) -> set[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT board FROM favorite_boards").fetchall()
        return {str(row[0]) for row in rows}

    def add_favorite(self, board: str) -> None:
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO favorite_boards(board) VALUES (?)", (board,))
            conn.commit()

    def remove_favorite(self, board: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM favorite_boards WHERE board = ?", (board,))
            conn.commit()

    # Bookmarks

    def load_bookmarks(self) -> list[BookmarkedThread]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, board, thread_id, subject, preview_text, created_at
                FROM bookmarked_threads
                ORDER BY created_at DESC, id ASC
                """
            ).fetchall()

        bookmarks: list[BookmarkedThread] = []
        for row in rows:
            try:
                bookmarks.append(
                    BookmarkedThread(
                        board=str(row[1]),
                        thread_id=int(row[2]),
                        subject=row[3],
                        preview_text=row[4],
                        timestamp=datetime.fromisoformat(str(row[5])),
                    )
                )
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping unreadable bookmark row",
                    extra={"event": "bookmark_row_invalid", "bookmark_id": row[0], "error": repr(exc)},
                )
        return bookmarks

    def is_bookmarked(self, board: str, thread_id: int) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM bookmarked_threads WHERE id = ?",
                (bookmark_id(board, thread_id),),
            ).fetchone()
            return row is not None

    def save_bookmark(self, bookmark: BookmarkedThread) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO bookmarked_threads(id, board, thread_id, subject, preview_text, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    subject=COALESCE(excluded.subject, bookmarked_threads.subject),
                    preview_text=COALESCE(excluded.preview_text, bookmarked_threads.preview_text)
                """,
                (
                    bookmark.id,
                    bookmark.board,
                    int(bookmark.thread_id),
                    bookmark.subject,
                    bookmark.preview_text,
                    _format_timestamp(bookmark.timestamp),
                ),
            )
            conn.commit()

    def remove_bookmark(self, bookmark_key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM bookmarked_threads WHERE id = ?", (bookmark_key,))
            conn.commit()
            return cursor.rowcount > 0

    def toggle_bookmark(
        self,
        board: str,
        thread_id: int,
        *,
        subject: Optional[str] = None,
        preview_text: Optional[str] = None,
    ) -> bool:
        if self.is_bookmarked(board, thread_id):
            self.remove_bookmark(bookmark_id(board, thread_id))
            return False
        self.save_bookmark(
            BookmarkedThread(board=board, thread_id=thread_id, subject=subject, preview_text=preview_text)
        )
        return True
