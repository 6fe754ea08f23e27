import os
from pathlib import PurePath
from typing import Optional, Union

from ..exceptions import InvalidPathError
from ..models import PathTokens


def storable_text(value: Union[str, PurePath]) -> str:
    """
    Text safe to store in the catalog.

    Names that are not valid UTF-8 on disk come back from the OS with lone
    surrogates; their raw bytes are kept as backslash escapes instead
    ("bad\\xff.jpg").
    """
    return os.fsencode(value).decode("utf-8", "backslashreplace")


def tokenize_path(path: Union[str, PurePath], root: Optional[Union[str, PurePath]] = None) -> PathTokens:
    """
    Splits a file path into a display name and folder tags.

    Tags are the folders between the parent of `root` and the file, so the
    root folder's own name is a tag too:

        tokenize_path("/data/pics/2020/trip/a.jpg", root="/data/pics")
        -> PathTokens("a.jpg", ("pics", "2020", "trip"))

    Without a root every folder below the filesystem anchor is a tag.
    Nothing is deduplicated here. No filesystem access.
    """
    if path is None or str(path) == "":
        raise InvalidPathError("Empty path")

    p = PurePath(path)
    if not p.name or p.name in (".", ".."):
        raise InvalidPathError(f"No file name in path: {path}")

    if root is None:
        folders = [part for part in p.parent.parts if part != p.anchor]
    else:
        r = PurePath(root)
        try:
            below_root = p.parent.relative_to(r)
        except ValueError:
            raise InvalidPathError(f"{path} is not under root {root}") from None
        folders = list(below_root.parts)
        if r.name:
            folders.insert(0, r.name)

    return PathTokens(
        display_name=storable_text(p.name),
        tags=tuple(storable_text(f) for f in folders if f not in ("", ".")),
    )
