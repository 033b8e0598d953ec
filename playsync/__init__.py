"""Playlist synchronization engine.

Pushes locally curated playlists to remote music platforms (Spotify),
keeping the remote order identical to the local one with a minimal number
of remote mutations.
"""

__version__ = "0.1.0"
