from typing import Dict, List, Optional

from playsync.config import READ_PAGE_SIZE
from playsync.core import RemotePlaylistSnapshot, RemoteTrackRef, log_info, log_step

from .errors import (
    AuthError,
    ProviderAuthError,
    ProviderNotFound,
    ProviderRejected,
    RetryExhausted,
    TransientFetchError,
)
from .provider import PlaylistProvider
from .retry import RemoteCaller


def read_remote_playlist(
    provider: PlaylistProvider,
    token_info: Dict,
    remote_playlist_id: Optional[str],
    caller: Optional[RemoteCaller] = None,
    page_size: int = READ_PAGE_SIZE,
) -> RemotePlaylistSnapshot:
    """
    Fetch the full ordered track list of a remote playlist.

    - no remote id yet, or the provider reports 404 -> not-found snapshot
    - network / 5xx failures are retried by the caller wrapper, then raised
      as TransientFetchError
    """
    if not remote_playlist_id:
        return RemotePlaylistSnapshot.not_found()

    caller = caller or RemoteCaller()
    log_step(f"Reading remote playlist {remote_playlist_id} from {provider.name}...")

    tracks: List[RemoteTrackRef] = []
    offset = 0
    while True:
        try:
            page, _attempts = caller.call(
                "list_playlist_tracks",
                provider.list_playlist_tracks,
                token_info,
                remote_playlist_id,
                offset,
                page_size,
            )
        except ProviderNotFound:
            log_info(f"Remote playlist {remote_playlist_id} no longer exists.")
            return RemotePlaylistSnapshot.not_found(remote_playlist_id)
        except ProviderAuthError as e:
            raise AuthError(f"{provider.name} rejected the credentials: {e}") from e
        except RetryExhausted as e:
            raise TransientFetchError(
                f"Could not read remote playlist {remote_playlist_id}: {e.last_error}"
            ) from e
        except ProviderRejected as e:
            raise TransientFetchError(
                f"Provider refused to list playlist {remote_playlist_id}: {e}"
            ) from e

        tracks.extend(page.items)
        if not page.has_next or not page.items:
            break
        offset += len(page.items)

    # Positions are re-derived from the listing order, so a page boundary
    # shift can never produce gaps or duplicates.
    ordered = tuple(
        RemoteTrackRef(
            track_id=t.track_id,
            title=t.title,
            artist=t.artist,
            position=i,
            isrc=t.isrc,
        )
        for i, t in enumerate(tracks)
    )
    log_info(f"Remote playlist {remote_playlist_id}: {len(ordered)} tracks.")
    return RemotePlaylistSnapshot(playlist_id=remote_playlist_id, tracks=ordered, exists=True)
