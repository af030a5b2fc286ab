import os
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent / "data"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    DEFAULT_LIVES = int(os.environ.get("DEFAULT_LIVES", "3"))
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "15"))
    WORDMASTER_TURN_DURATION_SEC = int(os.environ.get("WORDMASTER_TURN_DURATION_SEC", "30"))
    MIN_TURN_DURATION_SEC = int(os.environ.get("MIN_TURN_DURATION_SEC", "5"))
    # Seconds shaved off the turn budget for every completed rotation. 0 disables.
    ROUND_TIME_DECAY_SEC = int(os.environ.get("ROUND_TIME_DECAY_SEC", "1"))
    POWER_UP_CHANCE = float(os.environ.get("POWER_UP_CHANCE", "0.25"))
    POWER_UP_MIN_WORD_LENGTH = int(os.environ.get("POWER_UP_MIN_WORD_LENGTH", "8"))
    COUNTDOWN_SEC = int(os.environ.get("COUNTDOWN_SEC", "3"))

    # Rooms whose players are all gone/disconnected are reaped after this long.
    EMPTY_ROOM_TTL_SEC = int(os.environ.get("EMPTY_ROOM_TTL_SEC", "300"))
    REAPER_INTERVAL_SEC = int(os.environ.get("REAPER_INTERVAL_SEC", "30"))

    # Broadcast game:timer once per second while a turn clock runs.
    TIMER_TICKS = os.environ.get("TIMER_TICKS", "1") == "1"

    # Dictionary
    WORDS_PATH = os.environ.get("WORDS_PATH", str(_DATA_DIR / "english-words.txt"))
    BLOCKED_WORDS_PATH = os.environ.get("BLOCKED_WORDS_PATH", str(_DATA_DIR / "blocked-words.txt"))
    DATAMUSE_URL = os.environ.get("DATAMUSE_URL", "https://api.datamuse.com")
    DEFINITION_TIMEOUT_SEC = float(os.environ.get("DEFINITION_TIMEOUT_SEC", "5"))
    DEFINITION_CACHE_SIZE = int(os.environ.get("DEFINITION_CACHE_SIZE", "1000"))
    DEFINITION_CACHE_TTL_SEC = int(os.environ.get("DEFINITION_CACHE_TTL_SEC", str(60 * 60 * 24)))
    # Ask Datamuse about words missing from the static list.
    REMOTE_WORD_CHECK = os.environ.get("REMOTE_WORD_CHECK", "0") == "1"
