"""Data models for normalized scan results."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DuplicateFile:
    """A single file in an exact-duplicate group."""

    path: str
    size: int
    modified: Optional[str] = None  # YYYY-MM-DD, or the raw timestamp


@dataclass
class DuplicateGroup:
    """Files with identical content; every file shares ``size_bytes``."""

    files: List[DuplicateFile]
    size_bytes: int

    @property
    def file_count(self) -> int:
        """Number of files in this group."""
        return len(self.files)


@dataclass(frozen=True)
class SimilarFile:
    """A single image in a similar-image group."""

    path: str
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    similarity: int = 0  # distance: 0 = identical, larger = more different


@dataclass
class SimilarGroup:
    """Visually similar images and their similarity percentage (0-100)."""

    files: List[SimilarFile]
    similarity: float

    @property
    def file_count(self) -> int:
        """Number of files in this group."""
        return len(self.files)


@dataclass
class DedupResult:
    """Result of an exact-duplicate scan."""

    duplicates: List[DuplicateGroup] = field(default_factory=list)
    total_groups: int = 0
    total_wasted_space: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)


@dataclass
class SimilarResult:
    """Result of a similar-image scan."""

    similar_groups: List[SimilarGroup] = field(default_factory=list)
    total_groups: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)
