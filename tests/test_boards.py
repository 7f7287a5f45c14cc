from __future__ import annotations

import asyncio
from pathlib import Path

from chan_reader.services.boards import BoardDirectory
from chan_reader.services.models import Board
from chan_reader.services.store import Store


class _FakeApiClient:
    def __init__(self, boards: list[Board]) -> None:
        self.boards = boards

    async def fetch_boards(self) -> list[Board]:
        return self.boards


def _directory(tmp_path: Path, favorites: set[str] | None = None) -> BoardDirectory:
    store = Store(tmp_path / "boards.db")
    store.init_db()
    for board in favorites or set():
        store.add_favorite(board)
    boards = [
        Board(board="a", title="Anime & Manga", ws_board=1),
        Board(board="b", title="Random", ws_board=0),
        Board(board="v", title="Video Games", ws_board=1),
    ]
    return BoardDirectory(_FakeApiClient(boards), store)


def test_favorites_are_listed_separately(tmp_path: Path) -> None:
    listing = asyncio.run(_directory(tmp_path, {"v"}).listing())
    assert [board.board for board in listing.favorites] == ["v"]
    assert [board.board for board in listing.boards] == ["a", "b"]


def test_sfw_filter(tmp_path: Path) -> None:
    listing = asyncio.run(_directory(tmp_path).listing(sfw_only=True))
    assert [board.board for board in listing.boards] == ["a", "v"]


def test_search_mixes_favorites_in(tmp_path: Path) -> None:
    listing = asyncio.run(_directory(tmp_path, {"v"}).listing(query="GAMES"))
    assert listing.favorites == []
    assert [board.board for board in listing.boards] == ["v"]


def test_listing_as_dict(tmp_path: Path) -> None:
    payload = asyncio.run(_directory(tmp_path).listing(sfw_only=True)).as_dict()
    assert payload["favorites"] == []
    assert payload["boards"][0] == {
        "board": "a",
        "title": "Anime & Manga",
        "display_name": "/a/ - Anime & Manga",
        "description": "",
        "work_safe": True,
    }
