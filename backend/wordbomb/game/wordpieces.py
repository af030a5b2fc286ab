from __future__ import annotations

import random


COMMON_WORDPIECES: tuple[str, ...] = (
    "ing", "er", "tion", "ed", "es", "ly", "ment",
    "al", "ity", "ive", "ize", "ous", "ful", "less",
    "able", "ible", "ance", "ence", "ism", "ist", "ness",
    "re", "un", "in", "im", "dis", "en", "em", "non",
    "de", "ex", "pre", "pro", "com", "con", "per",
    "sub", "sup", "inter", "trans", "over", "under",
    "an", "at", "on", "or", "th", "ch",
    "sh", "ph", "wh", "qu", "sc", "sp", "st", "tr",
)

HARD_WORDPIECES: tuple[str, ...] = (
    "qu", "z", "x", "j", "v", "ph", "gh", "rh",
    "kn", "gn", "ps", "mn", "pt", "wr", "mb", "bt",
    "zz", "ff", "gg", "pp", "cc", "dd", "bb", "mm",
    "nn", "ll", "rr", "tt", "ss", "ck", "dg", "ng",
    "ght", "tch", "dge", "sch", "scr", "spl", "spr", "str",
    "thm", "chm", "chr", "thr", "shr", "squ", "scl",
)


def pick_wordpiece(rng: random.Random | None = None, hard: bool = False) -> str:
    pool = HARD_WORDPIECES if hard else COMMON_WORDPIECES
    return (rng or random).choice(pool)
