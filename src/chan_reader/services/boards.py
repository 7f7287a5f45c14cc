from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from chan_reader.services.models import Board

if TYPE_CHECKING:
    from chan_reader.services.api_client import ChanApiClient
    from chan_reader.services.store import Store


@dataclass
class BoardListing:
    favorites: list[Board] = field(default_factory=list)
    boards: list[Board] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "favorites": [_board_dict(board) for board in self.favorites],
            "boards": [_board_dict(board) for board in self.boards],
        }


def _board_dict(board: Board) -> dict[str, Any]:
    return {
        "board": board.board,
        "title": board.title,
        "display_name": board.display_name,
        "description": board.clean_description,
        "work_safe": board.is_work_safe,
    }


def _matches(board: Board, query: str) -> bool:
    needle = query.casefold()
    return needle in board.board.casefold() or needle in board.title.casefold()


class BoardDirectory:
    def __init__(self, api_client: "ChanApiClient", store: "Store") -> None:
        self.api_client = api_client
        self.store = store

    async def listing(self, *, sfw_only: bool = False, query: str = "") -> BoardListing:
        boards = await self.api_client.fetch_boards()
        if sfw_only:
            boards = [board for board in boards if board.is_work_safe]

        query = query.strip()
        if query:
            # A search shows favorites and the rest mixed together.
            return BoardListing(boards=[board for board in boards if _matches(board, query)])

        favorite_ids = self.store.load_favorites()
        return BoardListing(
            favorites=[board for board in boards if board.board in favorite_ids],
            boards=[board for board in boards if board.board not in favorite_ids],
        )
