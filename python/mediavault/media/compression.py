"""Size-based compression policy for video uploads.

The provider applies the transformation synchronously on upload and builds
eager derivatives (optionally in the background). Larger files get more
aggressive quality settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MIB = 1024 * 1024

# Tier boundaries
GOOD_TIER_MIN_BYTES = 2 * MIB
LOW_TIER_MIN_BYTES = 10 * MIB

# Records are flagged compression_applied from this size.
# Independent of the tier boundaries above.
COMPRESSION_FLAG_THRESHOLD_BYTES = 2 * MIB


class CompressionTier(str, Enum):
    """Compression aggressiveness, ordered none < good < low."""

    NONE = "none"
    GOOD = "good"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CompressionTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, CompressionTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, CompressionTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, CompressionTier):
            return NotImplemented
        return self.rank >= other.rank


_TIER_RANK = {CompressionTier.NONE: 0, CompressionTier.GOOD: 1, CompressionTier.LOW: 2}


@dataclass(frozen=True)
class CompressionPolicy:
    """Provider upload parameters for one compression tier.

    transformation and eager are lists of provider transformation components,
    e.g. ``{"quality": "auto:good"}``.
    """

    tier: CompressionTier
    transformation: list[dict[str, Any]] = field(default_factory=list)
    eager: list[dict[str, Any]] = field(default_factory=list)
    eager_async: bool = False


def select_compression_policy(size_bytes: int) -> CompressionPolicy:
    """Choose the compression policy for a video of the given size.

    Pure function of size:
        size < 2 MiB          -> none (format auto only)
        2 MiB <= size < 10 MiB -> good (+ mp4 eager at auto:good)
        size >= 10 MiB         -> low  (+ mp4 at 1000k and webm eager)

    Raises:
        ValueError: If size_bytes is negative.
    """
    if size_bytes < 0:
        raise ValueError(f"size_bytes must be non-negative, got {size_bytes}")

    if size_bytes >= LOW_TIER_MIN_BYTES:
        return CompressionPolicy(
            tier=CompressionTier.LOW,
            transformation=[{"quality": "auto:low"}, {"fetch_format": "auto"}],
            eager=[
                {"format": "mp4", "quality": "auto:low", "bit_rate": "1000k"},
                {"format": "webm", "quality": "auto:low"},
            ],
            eager_async=True,
        )

    if size_bytes >= GOOD_TIER_MIN_BYTES:
        return CompressionPolicy(
            tier=CompressionTier.GOOD,
            transformation=[{"quality": "auto:good"}, {"fetch_format": "auto"}],
            eager=[{"format": "mp4", "quality": "auto:good"}],
            eager_async=True,
        )

    return CompressionPolicy(
        tier=CompressionTier.NONE,
        transformation=[{"fetch_format": "auto"}],
    )


def compression_flag(size_bytes: int) -> bool:
    """Whether a record of this original file size is marked compression_applied."""
    return size_bytes >= COMPRESSION_FLAG_THRESHOLD_BYTES


def size_reduction_percent(original_size: int, compressed_size: int) -> str:
    """Percentage saved, one decimal place, as a string (e.g. ``"40.0"``).

    A zero original size reports ``"0.0"``. Growth is reported as a negative
    percentage.
    """
    if original_size <= 0:
        return "0.0"
    return f"{(original_size - compressed_size) / original_size * 100:.1f}"
