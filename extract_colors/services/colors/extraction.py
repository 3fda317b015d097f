"""
Median-cut color extraction.

Partitions the sampled pixels into at most 2**split_power clusters. The
cluster with the widest channel span is always split next, at the
count-weighted median of that channel, so dense color regions are
subdivided before sparse ones.
"""

import heapq
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from extract_colors.config import config
from extract_colors.errors import InvalidOptionError
from extract_colors.schemas import ExtractorOptions
from extract_colors.services.colors.sampling import RawColor, aggregate_raw_colors, sample_pixels
from extract_colors.services.colors.utils import weighted_channel


@dataclass(frozen=True)
class Representative:
    """Aggregated color carrying the number of pixels it stands for."""
    r: int
    g: int
    b: int
    count: int
    
    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


class Cluster:
    """A box of color space holding distinct colors and their counts."""
    
    __slots__ = ('colors', 'counts')
    
    def __init__(self, colors: np.ndarray, counts: np.ndarray):
        self.colors = colors
        self.counts = counts
    
    @classmethod
    def from_raw_colors(cls, raw_colors: Sequence[RawColor]) -> "Cluster":
        colors = np.array([(c.r, c.g, c.b) for c in raw_colors], dtype=np.int64).reshape(-1, 3)
        counts = np.array([c.count for c in raw_colors], dtype=np.int64)
        return cls(colors, counts)
    
    @property
    def total_count(self) -> int:
        return int(self.counts.sum())
    
    @property
    def extent(self) -> Tuple[np.ndarray, np.ndarray]:
        """Per-channel (min, max) bounds."""
        return self.colors.min(axis=0), self.colors.max(axis=0)
    
    @property
    def axis(self) -> int:
        """Channel with the widest span; ties resolve R, then G, then B."""
        lo, hi = self.extent
        return int(np.argmax(hi - lo))
    
    @property
    def span(self) -> int:
        lo, hi = self.extent
        return int((hi - lo).max())
    
    def can_split(self) -> bool:
        # a positive span leaves colors on both sides of the median cut
        return self.span > 0
    
    def split(self) -> Tuple["Cluster", "Cluster"]:
        """
        Split at the weighted median of the widest channel.
        
        Colors at or below the median go left. When the median sits on the
        channel maximum the cut moves just below it so neither side is empty.
        """
        axis = self.axis
        values = self.colors[:, axis]
        order = np.argsort(values, kind="stable")
        cumulative = np.cumsum(self.counts[order])
        half = (int(cumulative[-1]) + 1) // 2
        median = values[order][np.searchsorted(cumulative, half)]
        
        lower = values <= median
        if lower.all():
            lower = values < median
        
        return (
            Cluster(self.colors[lower], self.counts[lower]),
            Cluster(self.colors[~lower], self.counts[~lower]),
        )
    
    def representative(self) -> Representative:
        """Count-weighted mean color, rounded half-up."""
        total = self.total_count
        sums = (self.colors * self.counts[:, None]).sum(axis=0).tolist()
        r, g, b = (weighted_channel(s, total) for s in sums)
        return Representative(r, g, b, total)


def _split_key(cluster: Cluster, index: int) -> Tuple[int, int, int]:
    # widest span first, then heavier cluster, then oldest slot
    return (-cluster.span, -cluster.total_count, index)


def split_clusters(raw_colors: Sequence[RawColor], split_power: int) -> List[Cluster]:
    """
    Partition observed colors with median cut.
    
    Args:
        raw_colors: RawColors from the sampler, typically aggregated
        split_power: Cluster budget exponent, 2..16
        
    Returns:
        Non-empty clusters in slot order
        
    Raises:
        InvalidOptionError: If split_power is out of range
    """
    if isinstance(split_power, bool) or not isinstance(split_power, (int, np.integer)):
        raise InvalidOptionError(f"split_power must be an integer, got {split_power!r}")
    if not config.validate_split_power(split_power):
        raise InvalidOptionError(
            f"split_power must be within [{config.MIN_SPLIT_POWER}, {config.MAX_SPLIT_POWER}], "
            f"got {split_power}"
        )
    
    if not raw_colors:
        return []
    
    budget = 1 << int(split_power)
    clusters = [Cluster.from_raw_colors(raw_colors)]
    worklist = []
    if clusters[0].can_split():
        heapq.heappush(worklist, _split_key(clusters[0], 0))
    
    while worklist and len(clusters) < budget:
        _, _, index = heapq.heappop(worklist)
        left, right = clusters[index].split()
        clusters[index] = left
        clusters.append(right)
        
        for slot in (index, len(clusters) - 1):
            if clusters[slot].can_split():
                heapq.heappush(worklist, _split_key(clusters[slot], slot))
    
    logger.debug(f"Median cut: {len(raw_colors)} colors -> {len(clusters)} clusters "
                 f"(budget {budget})")
    
    return [cluster for cluster in clusters if cluster.total_count > 0]


def extract_representatives(raw_colors: Sequence[RawColor], split_power: int) -> List[Representative]:
    """One Representative per median-cut cluster."""
    return [cluster.representative() for cluster in split_clusters(raw_colors, split_power)]


def extract(buffer, options: Optional[ExtractorOptions] = None) -> List[Representative]:
    """
    Sample an RGBA buffer and extract its initial representatives.
    
    Deterministic for identical buffer and options. The sum of the returned
    counts equals the number of visible pixels in the buffer.
    """
    options = ExtractorOptions.build(options)
    raw_colors = aggregate_raw_colors(sample_pixels(buffer, options.min_alpha))
    return extract_representatives(raw_colors, options.split_power)
