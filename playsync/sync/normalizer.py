"""
Text normalization for fuzzy title/artist comparison.

Platforms spell the same recording differently ("Song - Remastered 2011",
"Song (feat. X)", "SONG!"), so titles and artists are reduced to a
comparable core before scoring.
"""

import re
import unicodedata
from difflib import SequenceMatcher

# Trailing " - xxx" / "(xxx)" / "[xxx]" annotations that do not change the recording
_VERSION_WORDS = (
    r"remaster(?:ed)?(?:\s+\d{4})?|\d{4}\s+remaster(?:ed)?|radio edit|single version"
    r"|album version|original mix|extended mix|edit|mono|stereo|explicit|clean"
    r"|deluxe(?: edition)?|bonus track|live"
)
_DASH_SUFFIX = re.compile(r"\s+-\s+(?:" + _VERSION_WORDS + r")(?:\s+version)?\s*$")
_BRACKETED = re.compile(r"[\(\[][^\)\]]*[\)\]]")
_FEAT = re.compile(r"\s+(?:feat\.?|ft\.?|featuring)\s+.*$")
_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def _fold(s: str) -> str:
    # "Beyoncé" and "Beyonce" should compare equal
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_title(title: str) -> str:
    """
    - lower-case, accents folded
    - drop bracketed annotations: "(Remastered)", "[Live]", "(feat. X)"
    - drop " - Radio Edit" / " - Remastered 2011" style suffixes
    - drop trailing "feat. X"
    - strip punctuation and collapse spaces
    """
    s = _fold(title or "").lower().strip()
    s = _BRACKETED.sub("", s)
    s = _DASH_SUFFIX.sub("", s.strip())
    s = _FEAT.sub("", s)
    s = _PUNCT.sub(" ", s)
    return _SPACES.sub(" ", s).strip()


def normalize_artist(artist: str) -> str:
    """Keep the lead artist only: "A, B", "A & B", "A feat. B" all reduce to "a"."""
    s = _fold(artist or "").lower().strip()
    s = _FEAT.sub("", s)
    for sep in (",", " & ", " x ", " and ", ";"):
        if sep in s:
            s = s.split(sep)[0]
    s = _PUNCT.sub(" ", s)
    return _SPACES.sub(" ", s).strip()


def similarity(a: str, b: str) -> float:
    """0..1 similarity of two already-normalized strings."""
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def title_artist_score(
    local_title: str,
    local_artist: str,
    remote_title: str,
    remote_artist: str,
) -> float:
    """Weighted score; the title carries more signal than the artist string."""
    title_score = similarity(normalize_title(local_title), normalize_title(remote_title))
    artist_score = similarity(
        normalize_artist(local_artist), normalize_artist(remote_artist)
    )
    return 0.6 * title_score + 0.4 * artist_score
