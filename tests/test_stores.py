from pathlib import Path

from playsync.core import (
    OperationOutcome,
    OutcomeStatus,
    SyncOperation,
    SyncResult,
    SyncStatus,
    UnmatchedSong,
)
from playsync.data import JsonPlaylistStore, SyncRecordStore

from conftest import make_playlist, make_song


def test_playlist_store_roundtrip_and_ownership(tmp_path: Path) -> None:
    store = JsonPlaylistStore(str(tmp_path / "playlists.json"))
    song = make_song("s1", "Yellow", "Coldplay", external_ids={"spotify": "R1"}, isrc="X1")
    store.save_playlist(make_playlist([song, song]))

    loaded = store.get_playlist("user-1", "pl-1")

    assert loaded is not None
    assert [s.id for s in loaded.songs] == ["s1", "s1"]
    assert loaded.songs[0].external_id("spotify") == "R1"
    assert store.get_playlist("user-2", "pl-1") is None
    assert store.list_playlist_ids("user-1") == ["pl-1"]


def test_playlist_store_uses_configured_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "custom.json"
    monkeypatch.setattr("playsync.data.playlists.PLAYLISTS_FILE", str(path))

    JsonPlaylistStore().save_playlist(make_playlist([]))

    assert path.exists()


def test_invalid_playlists_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "playlists.json"
    path.write_text("not json", encoding="utf-8")

    assert JsonPlaylistStore(str(path)).load_playlist("pl-1") is None


def test_sync_record_lifecycle(tmp_path: Path) -> None:
    store = SyncRecordStore(str(tmp_path / "records.json"))
    assert store.get("pl-1", "spotify") is None

    store.mark_in_progress("pl-1", "spotify")
    store.set_remote_playlist_id("pl-1", "spotify", "remote-1")
    result = SyncResult(
        playlist_id="pl-1",
        remote_playlist_id="remote-1",
        songs_added=1,
        unmatched=[UnmatchedSong("s2", "no confident match")],
        outcomes=[
            OperationOutcome(SyncOperation.add("R1", 0, "s1"), OutcomeStatus.SUCCESS),
        ],
        status=SyncStatus.PARTIAL,
        message="Synced 1 tracks with 1 conflicts and 0 errors",
    )
    store.record_result("spotify", result)

    record = store.get("pl-1", "spotify")
    assert record.status == SyncStatus.PARTIAL
    assert record.remote_playlist_id == "remote-1"
    assert record.last_sync_at is not None
    assert record.error_message == result.message

    payload = record.to_dict()
    assert [log["action"] for log in payload["recent_logs"]] == ["skip", "add"]


def test_recent_logs_are_capped(tmp_path: Path) -> None:
    store = SyncRecordStore(str(tmp_path / "records.json"))
    outcomes = [
        OperationOutcome(SyncOperation.add(f"R{i}", i, f"s{i}"), OutcomeStatus.SUCCESS)
        for i in range(15)
    ]
    store.record_result("spotify", SyncResult(playlist_id="pl-1", outcomes=outcomes))

    payload = store.get("pl-1", "spotify").to_dict()

    assert len(payload["recent_logs"]) == 10
    assert payload["recent_logs"][0]["song_id"] == "s14"
