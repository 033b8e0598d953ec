from playsync.sync.normalizer import (
    normalize_artist,
    normalize_title,
    similarity,
    title_artist_score,
)


def test_normalize_title_strips_version_annotations() -> None:
    assert normalize_title("Hey Jude - Remastered 2015") == "hey jude"
    assert normalize_title("Blinding Lights (Radio Edit)") == "blinding lights"
    assert normalize_title("Song [Live]") == "song"
    assert normalize_title("Track - Radio Edit") == "track"


def test_normalize_title_drops_featuring_and_punctuation() -> None:
    assert normalize_title("Stay (feat. Justin Bieber)") == "stay"
    assert normalize_title("Stay feat. Justin Bieber") == "stay"
    assert normalize_title("Don't Stop Me Now!") == "don t stop me now"


def test_normalize_title_folds_accents() -> None:
    assert normalize_title("Café del Mar") == normalize_title("Cafe Del Mar")


def test_normalize_artist_keeps_lead_artist() -> None:
    assert normalize_artist("Daft Punk, Pharrell Williams") == "daft punk"
    assert normalize_artist("Simon & Garfunkel") == "simon"
    assert normalize_artist("Beyoncé feat. JAY-Z") == "beyonce"


def test_similarity_bounds() -> None:
    assert similarity("", "abc") == 0.0
    assert similarity("abc", "abc") == 1.0
    assert 0.0 < similarity("abcd", "abce") < 1.0


def test_title_artist_score_weights_title_more() -> None:
    same_title = title_artist_score("Yellow", "Coldplay", "Yellow", "Someone Else")
    same_artist = title_artist_score("Yellow", "Coldplay", "Clocks", "Coldplay")

    assert same_title > same_artist
    assert title_artist_score("Yellow", "Coldplay", "Yellow - Remastered", "Coldplay") == 1.0
