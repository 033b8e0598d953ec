"""Command line entry point.

    python -m playsync sync <playlist_id> --user <user_id> [--no-create]
                            [--no-update] [--strict]
    python -m playsync status <playlist_id>
    python -m playsync serve [--host HOST] [--port PORT]
"""

import argparse
import json
import sys
from typing import List, Optional

from playsync.config import SPOTIFY_PLATFORM
from playsync.core import SyncOptions, configure_logging, log_error
from playsync.data import SyncRecordStore
from playsync.spotify import SpotifyPlaylistProvider, load_spotify_token
from playsync.sync import SyncEngine, SyncError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="playsync", description="Playlist sync engine")
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Sync one local playlist to Spotify")
    sync.add_argument("playlist_id")
    sync.add_argument("--user", required=True, help="Owner of the local playlist")
    sync.add_argument(
        "--no-create",
        action="store_true",
        help="Abort instead of creating a missing remote playlist",
    )
    sync.add_argument(
        "--no-update",
        action="store_true",
        help="Abort instead of modifying an existing remote playlist",
    )
    sync.add_argument(
        "--strict",
        action="store_true",
        help="Abort when any song cannot be matched",
    )

    status = sub.add_parser("status", help="Show the last sync record of a playlist")
    status.add_argument("playlist_id")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8888)
    return parser


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("playsync.api.fastapi_app:app", host=args.host, port=args.port)
        return 0

    if args.command == "status":
        record = SyncRecordStore().get(args.playlist_id, SPOTIFY_PLATFORM)
        _print(record.to_dict() if record else {"status": "not_synced"})
        return 0

    options = SyncOptions(
        create_if_not_exists=not args.no_create,
        update_existing=not args.no_update,
        handle_conflicts=not args.strict,
    )
    engine = SyncEngine(SpotifyPlaylistProvider(), load_spotify_token)
    try:
        result = engine.sync_playlist(args.user, args.playlist_id, options)
    except SyncError as e:
        log_error(e.message)
        _print(e.to_dict())
        return 1

    _print(result.to_dict())
    return 0 if result.status.value in ("completed", "partial") else 1


if __name__ == "__main__":
    sys.exit(main())
