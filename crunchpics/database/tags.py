"""
Tag set <-> text conversion used at the storage boundary.
"""
from typing import FrozenSet, Iterable

from .. import config

_DELIM = config.TAG_DELIMITER
_ESC = config.TAG_ESCAPE


def escape_tag(tag: str) -> str:
    return tag.replace(_ESC, _ESC + _ESC).replace(_DELIM, _ESC + _DELIM)


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Deduplicated, sorted, empty tokens removed."""
    return sorted({t for t in tags if t})


def serialize_tags(tags: Iterable[str]) -> str:
    r"""
    Joins tags into the stored form, e.g. {"2020", "a;b"} -> "2020;a\;b".
    """
    return _DELIM.join(escape_tag(t) for t in normalize_tags(tags))


def parse_tags(text: str) -> FrozenSet[str]:
    """
    Inverse of serialize_tags.

    Empty tokens are dropped, which also accepts the trailing delimiter
    ("a;b;") found in catalogs written by the shell version of the tool.
    """
    tags = set()
    current = []
    chars = iter(text or "")
    for ch in chars:
        if ch == _ESC:
            # A dangling escape at the very end is kept as a literal
            current.append(next(chars, _ESC))
        elif ch == _DELIM:
            tags.add("".join(current))
            current = []
        else:
            current.append(ch)
    tags.add("".join(current))
    tags.discard("")
    return frozenset(tags)
