"""Dictionary membership and definitions.

Membership comes from static word lists loaded at startup; definitions come
from the Datamuse API and are cached in-process. The remote service is
best-effort: when it is slow or down, definitions are simply missing and
membership falls back to the static list.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import requests

from ..errors import ExternalLookupFailure
from ..game.models import Definition, WordVerdict

logger = logging.getLogger(__name__)

FALLBACK_WORDS = ("test", "word", "game", "play", "hello", "world")


def normalize(word: str) -> str:
    return (word or "").strip().lower()


def load_word_list(path: str | Path) -> set[str]:
    words = set()
    with open(path, encoding="utf-8") as fh:
        for line in fh:
            w = line.strip().lower()
            if w and not w.startswith("#"):
                words.add(w)
    return words


class DefinitionCache:
    """Small LRU with per-entry expiry, safe to share between rooms."""

    def __init__(self, max_size: int = 1000, ttl_sec: float = 86400, clock: Callable[[], float] = time.monotonic):
        self._max_size = max_size
        self._ttl = ttl_sec
        self._clock = clock
        self._lock = Lock()
        self._entries: OrderedDict[str, tuple[float, Definition]] = OrderedDict()

    def get(self, key: str) -> Definition | None:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: Definition) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class WordOracle:
    def __init__(
        self,
        words: Iterable[str] = (),
        blocked: Iterable[str] = (),
        datamuse_url: str | None = None,
        timeout_sec: float = 5.0,
        cache: DefinitionCache | None = None,
        remote_word_check: bool = False,
        session: requests.Session | None = None,
    ):
        self.words = {normalize(w) for w in words if normalize(w)}
        self.blocked = {normalize(w) for w in blocked if normalize(w)}
        self.datamuse_url = (datamuse_url or "").rstrip("/")
        self.timeout_sec = timeout_sec
        self.cache = cache or DefinitionCache()
        self.remote_word_check = remote_word_check
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Any) -> "WordOracle":
        try:
            words = load_word_list(config.WORDS_PATH)
        except OSError:
            logger.exception("Error loading word list %s, using fallback words", config.WORDS_PATH)
            words = set(FALLBACK_WORDS)

        try:
            blocked = load_word_list(config.BLOCKED_WORDS_PATH)
        except OSError:
            logger.warning("No blocked word list at %s", config.BLOCKED_WORDS_PATH)
            blocked = set()

        logger.info("Loaded %s words and %s blocked words", len(words), len(blocked))
        return cls(
            words=words,
            blocked=blocked,
            datamuse_url=config.DATAMUSE_URL,
            timeout_sec=config.DEFINITION_TIMEOUT_SEC,
            cache=DefinitionCache(
                max_size=config.DEFINITION_CACHE_SIZE,
                ttl_sec=config.DEFINITION_CACHE_TTL_SEC,
            ),
            remote_word_check=config.REMOTE_WORD_CHECK,
        )

    # ---- remote ----

    def _fetch(self, word: str) -> list[dict]:
        if not self.datamuse_url:
            raise ExternalLookupFailure("no dictionary service configured")
        try:
            resp = self.session.get(
                f"{self.datamuse_url}/words",
                params={"sp": word, "md": "d", "max": 1},
                timeout=self.timeout_sec,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ExternalLookupFailure(str(exc)) from exc

        if not isinstance(data, list):
            raise ExternalLookupFailure(f"unexpected payload for {word!r}")
        return data

    @staticmethod
    def _parse(word: str, entries: list[dict]) -> Definition | None:
        for entry in entries:
            if normalize(entry.get("word", "")) != word:
                continue
            defs = entry.get("defs") or []
            if not defs:
                continue
            meanings: dict[str, list[str]] = {}
            for raw in defs:
                # Datamuse format is "pos\tmeaning"
                pos, _, meaning = raw.partition("\t")
                if not meaning:
                    pos, meaning = "", pos
                meanings.setdefault(pos, []).append(meaning)
            return Definition(word=word, meanings=meanings)
        return None

    # ---- public contract ----

    def is_real_word(self, word: str) -> bool:
        w = normalize(word)
        if not w or w in self.blocked:
            return False
        if w in self.words:
            return True
        if not self.remote_word_check:
            return False

        try:
            definition = self._parse(w, self._fetch(w))
        except ExternalLookupFailure as exc:
            logger.warning("Dictionary check for %r failed: %s", w, exc)
            return False

        if definition is not None:
            self.cache.set(w, definition)
        return definition is not None

    def lookup_definition(self, word: str) -> Definition | None:
        w = normalize(word)
        if not w:
            return None

        cached = self.cache.get(w)
        if cached is not None:
            return cached

        try:
            definition = self._parse(w, self._fetch(w))
        except ExternalLookupFailure as exc:
            logger.warning("Error fetching definition for %r: %s", w, exc)
            return None

        if definition is not None:
            self.cache.set(w, definition)
        return definition

    def check(self, word: str) -> WordVerdict:
        if not self.is_real_word(word):
            return WordVerdict(is_word=False)
        return WordVerdict(is_word=True, definition=self.lookup_definition(word))

    def validate(self, word: str, wordpiece: str) -> dict:
        """Stand-alone check used by the HTTP validate route."""
        w = normalize(word)
        piece = normalize(wordpiece)
        if piece not in w:
            return {"valid": False, "message": f'Word must contain "{wordpiece}"'}
        if w in self.blocked:
            return {"valid": False, "message": "Word not allowed"}

        verdict = self.check(w)
        if not verdict.is_word:
            return {"valid": False, "message": "Not a valid English word"}
        return {
            "valid": True,
            "definition": verdict.definition.to_dict() if verdict.definition else None,
        }
