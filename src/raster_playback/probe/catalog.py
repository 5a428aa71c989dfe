"""
Frame Catalog
=============

Sparse, index-ordered set of frames confirmed to exist remotely.

The catalog is the ONLY source of frames that are safe to display. It is
built once at the end of a probe run and replaced wholesale by the next
run; readers never see a partially populated catalog.

Design Rules:
    - Immutable after construction
    - Indices absent from the catalog are missing until the next run
    - Remembers the full candidate range (total_frames) separately from its size
"""

from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

from raster_playback.models.frame import FrameAddress


class FrameCatalog:
    """
    Read-only mapping from frame index to FrameAddress.

    Attributes:
        total_frames: Size of the candidate range the catalog was probed from

    Example:
        catalog = FrameCatalog(frames, total_frames=72)

        if 5 in catalog:
            frame = catalog.get(5)
        for index in catalog.indices_in_order():
            ...
    """

    __slots__ = ("_frames", "_indices", "_total_frames")

    def __init__(self, frames: Iterable[FrameAddress], total_frames: int) -> None:
        """
        Build a catalog.

        Args:
            frames: Frames confirmed to exist (any order)
            total_frames: Candidate range size. Must be >= 1.
        """
        if total_frames < 1:
            raise ValueError("total_frames must be >= 1")

        by_index = {}
        for frame in frames:
            if not 0 <= frame.index < total_frames:
                raise ValueError(
                    f"Frame index {frame.index} outside range 0..{total_frames - 1}"
                )
            by_index[frame.index] = frame

        self._indices: Tuple[int, ...] = tuple(sorted(by_index))
        self._frames: Mapping[int, FrameAddress] = MappingProxyType(
            {index: by_index[index] for index in self._indices}
        )
        self._total_frames = total_frames

    @classmethod
    def empty(cls, total_frames: int = 1) -> "FrameCatalog":
        """Catalog with no occupied indices."""
        return cls((), total_frames)

    @property
    def total_frames(self) -> int:
        """Number of candidate frames in the probed range."""
        return self._total_frames

    def get(self, index: int) -> Optional[FrameAddress]:
        """Frame at ``index``, or None if missing."""
        return self._frames.get(index)

    def size(self) -> int:
        """Number of occupied indices."""
        return len(self._indices)

    def indices_in_order(self) -> Tuple[int, ...]:
        """Occupied indices in ascending order."""
        return self._indices

    def frames(self) -> List[FrameAddress]:
        """Occupied frames in index order."""
        return [self._frames[index] for index in self._indices]

    def recommended_start(self) -> Optional[int]:
        """Index 0 when present, otherwise the smallest occupied index."""
        if not self._indices:
            return None
        if 0 in self._frames:
            return 0
        return self._indices[0]

    def missing_indices(self) -> List[int]:
        """Candidate indices absent from the catalog."""
        return [i for i in range(self._total_frames) if i not in self._frames]

    def __contains__(self, index: object) -> bool:
        return index in self._frames

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[FrameAddress]:
        return iter(self.frames())

    def __bool__(self) -> bool:
        return bool(self._indices)

    def __repr__(self) -> str:
        return f"FrameCatalog(size={self.size()}, total_frames={self._total_frames})"

    def metrics(self) -> dict:
        """
        Get catalog metrics for observability.

        Returns:
            Dict with size, total_frames and missing count
        """
        return {
            "size": self.size(),
            "total_frames": self._total_frames,
            "missing": self._total_frames - self.size(),
        }
