import time
from typing import Any, Dict

from playsync.config import TOKENS_FILE
from playsync.core import read_json, update_json
from playsync.sync.errors import AuthError

from .client import spotify_request

# Tokens are considered expired this many seconds early
EXPIRY_MARGIN_SECONDS = 60


class SpotifyTokenMissing(AuthError):
    """No usable Spotify credential for this user."""


def load_spotify_token(user_id: str) -> Dict:
    """
    Load the Spotify token saved for `user_id` by the auth flow.

    The token file maps user ids to token payloads as returned by Spotify,
    plus the `timestamp` at which they were obtained. Refreshing is the auth
    flow's job: a missing or expired token raises SpotifyTokenMissing.
    """
    tokens = read_json(TOKENS_FILE, default={}) or {}
    token_info = tokens.get(user_id) if isinstance(tokens, dict) else None
    if not isinstance(token_info, dict) or not token_info.get("access_token"):
        raise SpotifyTokenMissing("Spotify authorization required.")

    now = int(time.time())
    expires_in = int(token_info.get("expires_in", 3600))
    if now - int(token_info.get("timestamp", 0)) > expires_in - EXPIRY_MARGIN_SECONDS:
        raise SpotifyTokenMissing("Spotify token expired; re-authorization required.")
    return token_info


def save_spotify_token(user_id: str, token_info: Dict) -> None:
    token_info = dict(token_info)
    token_info.setdefault("timestamp", int(time.time()))

    def mutate(doc: Any) -> Dict:
        doc = doc if isinstance(doc, dict) else {}
        doc[user_id] = token_info
        return doc

    update_json(TOKENS_FILE, mutate, default={})


def get_current_user_id(token_info: Dict) -> str:
    return spotify_request("GET", "/me", token_info)["id"]
