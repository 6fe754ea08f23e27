from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class FileInfo:
    """
    What hashing & classification learned about a file.
    """
    size: int
    content_hash: str
    type_label: str


@dataclass(frozen=True)
class PathTokens:
    display_name: str
    tags: Tuple[str, ...]   # directory segments, in path order, may repeat


@dataclass
class ScannedFile:
    """
    Represents a file found during a scan, ready to be cataloged.
    """
    path: Path
    root: Optional[Path]
    info: FileInfo
    tokens: PathTokens

    @property
    def extension(self) -> str:
        return self.path.suffix


@dataclass
class PictureRecord:
    """
    One catalog row per distinct (content_hash, size).
    """
    id: int
    filename: str
    path: str               # where the content was first seen
    type_id: int
    size: int
    content_hash: str
    tags: FrozenSet[str] = frozenset()
    dupe_count: int = 0


@dataclass(frozen=True)
class TypeDescriptor:
    id: int
    label: str


@dataclass
class IngestSummary:
    processed: int = 0
    inserted: int = 0
    failed: int = 0
    relocation_failures: List[Path] = field(default_factory=list)

    @property
    def duplicates(self) -> int:
        return self.processed - self.inserted

    def merge(self, other: "IngestSummary") -> None:
        self.processed += other.processed
        self.inserted += other.inserted
        self.failed += other.failed
        self.relocation_failures.extend(other.relocation_failures)


@dataclass(frozen=True)
class CatalogStats:
    pictures: int
    types: int
    total_dupes: int
