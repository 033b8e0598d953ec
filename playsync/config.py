from dotenv import load_dotenv
import os

load_dotenv()

# Base & cache directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CACHE_DIR = os.getenv("PLAYSYNC_CACHE_DIR", os.path.join(BASE_DIR, "cache"))

# Local store + sync bookkeeping files
PLAYLISTS_FILE = os.path.join(CACHE_DIR, "playlists.json")
SYNC_RECORDS_FILE = os.path.join(CACHE_DIR, "sync_records.json")

# Per-user provider credentials, written by the upstream auth collaborator
TOKENS_FILE = os.path.join(CACHE_DIR, "provider_tokens.json")

# Spotify API constants
SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")
SPOTIFY_PLATFORM = "spotify"
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
READ_PAGE_SIZE = 100

# Mutation applier
SYNC_MAX_BATCH_SIZE = int(os.getenv("SYNC_MAX_BATCH_SIZE", "100"))
SYNC_MAX_ATTEMPTS = int(os.getenv("SYNC_MAX_ATTEMPTS", "3"))
SYNC_BACKOFF_SECONDS = float(os.getenv("SYNC_BACKOFF_SECONDS", "1.0"))
SYNC_PASS_DEADLINE_SECONDS = float(os.getenv("SYNC_PASS_DEADLINE_SECONDS", "60"))

# Token bucket sized to the provider quota (per account)
RATE_LIMIT_CAPACITY = int(os.getenv("RATE_LIMIT_CAPACITY", "10"))
RATE_LIMIT_REFILL_PER_SECOND = float(os.getenv("RATE_LIMIT_REFILL_PER_SECOND", "5"))

# Matching
FUZZY_MATCH_THRESHOLD = float(os.getenv("FUZZY_MATCH_THRESHOLD", "0.85"))
SEARCH_RESULT_LIMIT = int(os.getenv("SEARCH_RESULT_LIMIT", "5"))

# HTTP layer
BATCH_SYNC_MAX_PLAYLISTS = 10
BATCH_SYNC_WORKERS = int(os.getenv("BATCH_SYNC_WORKERS", "4"))
SYNC_RECENT_LOGS_LIMIT = 10
