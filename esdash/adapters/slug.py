from __future__ import annotations

import re
from typing import Protocol

_NON_WORD = re.compile(r"[^\w ]+", re.ASCII)
_SPACES = re.compile(r" +")


class Slugifier(Protocol):
    def __call__(self, value: str) -> str: ...


def slugify_for_url(value: str) -> str:
    """Lower-case, drop punctuation, and join words with dashes.

    "My Dash!" -> "my-dash". Non-ASCII letters are dropped.
    """
    return _SPACES.sub("-", _NON_WORD.sub("", value.lower()))
