from __future__ import annotations

import argparse
import asyncio
import json
import sys

from chan_reader.config import get_settings
from chan_reader.services.api_client import ApiError, ChanApiClient
from chan_reader.services.logging_config import configure_logging
from chan_reader.services.models import MediaUrls
from chan_reader.services.store import Store
from chan_reader.services.thread_service import ThreadService
from chan_reader.services.thread_tree import EmptyInputError


async def _run(board: str, thread_id: int, flat: bool) -> tuple[int, dict]:
    settings = get_settings()
    configure_logging(settings.log_level)

    store = Store(settings.database_file)
    store.init_db()

    service = ThreadService(
        ChanApiClient.from_settings(settings),
        store,
        MediaUrls(settings.image_base_url, settings.static_base_url),
    )
    try:
        rendered = await service.load(board, thread_id)
    except ApiError as exc:
        return 1, {"error": str(exc), "status_code": exc.status_code}
    except EmptyInputError as exc:
        return 1, {"error": str(exc), "status_code": None}
    return 0, rendered.as_dict(flat=flat)


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch one thread and print its rendered reply tree as JSON.")
    parser.add_argument("--board", required=True, help="Board short name, e.g. 'v'.")
    parser.add_argument("--thread", type=int, required=True, help="Thread (opening post) number.")
    parser.add_argument("--flat", action="store_true", help="Print posts as a flat list with parent ids.")
    args = parser.parse_args()

    code, payload = asyncio.run(_run(args.board, args.thread, args.flat))
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False), file=sys.stdout if code == 0 else sys.stderr)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
