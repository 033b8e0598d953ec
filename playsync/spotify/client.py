"""Thin HTTP layer over the Spotify Web API.

Every request goes through `spotify_request`, which maps transport and
HTTP failures onto the provider error family used by the sync engine.
"""

from typing import Any, Dict, Optional

import requests

from playsync.config import HTTP_TIMEOUT_SECONDS, SPOTIFY_API_BASE
from playsync.sync.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderRejected,
    ProviderUnavailable,
)


class SpotifyAPIError(ProviderError):
    pass


class SpotifyAuthError(SpotifyAPIError, ProviderAuthError):
    pass


class SpotifyRateLimited(SpotifyAPIError, ProviderRateLimited):
    pass


class SpotifyServerError(SpotifyAPIError, ProviderUnavailable):
    pass


class SpotifyClientError(SpotifyAPIError, ProviderRejected):
    pass


class SpotifyNotFound(SpotifyClientError, ProviderNotFound):
    pass


def spotify_headers(token_info: Dict) -> Dict:
    return {"Authorization": f"Bearer {token_info['access_token']}"}


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason or ""
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or "")
    if isinstance(error, str):
        return payload.get("error_description") or error
    return ""


def _retry_after(response: requests.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def raise_for_spotify_status(response: requests.Response, what: str) -> None:
    status = response.status_code
    if status < 400:
        return
    message = f"{what}: HTTP {status} {_error_message(response)}".strip()
    if status == 401:
        raise SpotifyAuthError(message, status)
    if status == 404:
        raise SpotifyNotFound(message, status)
    if status == 429:
        raise SpotifyRateLimited(message, status, retry_after=_retry_after(response))
    if status >= 500:
        raise SpotifyServerError(message, status)
    raise SpotifyClientError(message, status)


def spotify_request(
    method: str,
    path: str,
    token_info: Dict,
    *,
    params: Optional[Dict[str, Any]] = None,
    json: Optional[Any] = None,
) -> Any:
    """
    Perform one Spotify Web API call and return the decoded JSON body
    (None for empty bodies).

    `path` is either relative to SPOTIFY_API_BASE or an absolute URL (as
    found in paging `next` links).
    """
    url = path if path.startswith("http") else f"{SPOTIFY_API_BASE}{path}"
    what = f"{method} {path.split('?')[0]}"
    try:
        response = requests.request(
            method,
            url,
            headers=spotify_headers(token_info),
            params=params,
            json=json,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
    except (requests.ConnectionError, requests.Timeout) as e:
        raise SpotifyServerError(f"{what}: {e}") from e

    raise_for_spotify_status(response, what)
    if response.status_code == 204 or not response.content:
        return None
    return response.json()
