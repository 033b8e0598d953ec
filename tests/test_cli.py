import json

from playsync.__main__ import main

from conftest import FakeProvider, make_playlist, make_song


def _setup(tmp_path, monkeypatch) -> FakeProvider:
    provider = FakeProvider()
    provider.add_catalog_track("R1", "Alpha", "Xavier")
    monkeypatch.setattr("playsync.data.playlists.PLAYLISTS_FILE", str(tmp_path / "playlists.json"))
    monkeypatch.setattr(
        "playsync.data.sync_records.SYNC_RECORDS_FILE", str(tmp_path / "records.json")
    )
    monkeypatch.setattr("playsync.__main__.SpotifyPlaylistProvider", lambda: provider)
    monkeypatch.setattr("playsync.__main__.load_spotify_token", lambda user_id: {"access_token": "t"})

    from playsync.data import JsonPlaylistStore

    JsonPlaylistStore().save_playlist(make_playlist([make_song("a", "Alpha", "Xavier")]))
    return provider


def test_cli_sync_prints_result(tmp_path, monkeypatch, capsys) -> None:
    provider = _setup(tmp_path, monkeypatch)

    exit_code = main(["sync", "pl-1", "--user", "user-1"])

    assert exit_code == 0
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{\n") :])
    assert payload["created"] is True
    assert provider.playlists[payload["remote_playlist_id"]] == ["R1"]


def test_cli_no_create_aborts(tmp_path, monkeypatch, capsys) -> None:
    provider = _setup(tmp_path, monkeypatch)

    exit_code = main(["sync", "pl-1", "--user", "user-1", "--no-create"])

    assert exit_code == 1
    assert provider.mutation_calls == 0
    assert '"error": "RemotePlaylistMissing"' in capsys.readouterr().out
