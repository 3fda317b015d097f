"""
Distance merging of representative colors.

Greedily merges the closest pair of representatives while their
normalized RGB distance stays within the threshold. Every live color keeps
a single heap entry for its nearest neighbour within the threshold, so
memory stays linear in the number of colors. Neighbour lookups go through
a uniform grid over the RGB cube while many colors are alive and fall back
to a vectorized scan once few remain.
"""

import heapq
from itertools import product
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
from loguru import logger

from extract_colors.config import config
from extract_colors.errors import InvalidOptionError
from extract_colors.services.colors.extraction import Representative
from extract_colors.services.colors.utils import MAX_SQUARED_DISTANCE, weighted_channel

# Grid cells are 4 RGB units wide. A lookup of radius r cells sees every
# color within 4 * r units of the query.
_CELL_SHIFT = 2
_CELL_WIDTH = 1 << _CELL_SHIFT
_GRID_SIDE = 256 >> _CELL_SHIFT
_MAX_RADIUS = 3
_SEED_RADIUS = 2
_OFFER_RADIUS = 1

# Below this many live colors a full scan is cheaper than grid lookups
_SCAN_ALL = 2048

# Upper bound on pairwise cells materialized per block while seeding
_BLOCK_CELLS = 1 << 18

_NO_PAIR = int(np.iinfo(np.int64).max)

Cell = Tuple[int, int, int]
Neighbour = Optional[Tuple[int, int]]


def _combine(representatives: Sequence[Representative]) -> Representative:
    """Count-weighted average of several representatives."""
    count = sum(rep.count for rep in representatives)
    sums = [sum(getattr(rep, ch) * rep.count for rep in representatives) for ch in ("r", "g", "b")]
    r, g, b = (weighted_channel(s, count) for s in sums)
    return Representative(r, g, b, count)


def _reach(radius: int) -> int:
    """Largest squared distance a lookup of this radius is guaranteed to cover."""
    return (radius * _CELL_WIDTH) ** 2


def _cell_of(color: Tuple[int, int, int]) -> Cell:
    return (color[0] >> _CELL_SHIFT, color[1] >> _CELL_SHIFT, color[2] >> _CELL_SHIFT)


def _cells_around(cell: Cell, radius: int):
    axes = [range(max(0, c - radius), min(_GRID_SIDE, c + radius + 1)) for c in cell]
    return product(*axes)


class _ClosestPairMerger:
    """
    Greedy closest-pair merging over a shrinking set of live colors.

    Colors are identified by slot: originals take 0..n-1 and every merge
    appends a new slot. Live colors are also packed into rows of numpy
    arrays for vectorized distance scans; ``row[slot]`` is -1 once a slot
    has been merged away.

    Heap entries are ``(d_sq, -combined_count, lo, hi, owner, version)``.
    An entry is current while its owner is alive and the owner's version
    is unchanged, and the current entries always name live partners.
    """

    def __init__(self, representatives: Sequence[Representative], limit: float):
        self.limit = limit

        self.colors: List[Tuple[int, int, int]] = [rep.rgb for rep in representatives]
        self.counts: List[int] = [rep.count for rep in representatives]
        self.sums: List[Tuple[int, int, int]] = [
            (rep.r * rep.count, rep.g * rep.count, rep.b * rep.count) for rep in representatives
        ]
        n = len(self.colors)
        self.partner: List[int] = [-1] * n
        self.version: List[int] = [0] * n
        self.pointed_by: List[Set[int]] = [set() for _ in range(n)]
        self.row: List[int] = list(range(n))

        # packed live colors; a merge frees two rows and takes one
        self.size = n
        self.live_slots = np.arange(n, dtype=np.int64)
        self.live_rgb = np.array(self.colors, dtype=np.int64).reshape(n, 3)
        self.live_best = np.full(n, _NO_PAIR, dtype=np.int64)

        self.grid: Dict[Cell, Set[int]] = {}
        for slot, color in enumerate(self.colors):
            self.grid.setdefault(_cell_of(color), set()).add(slot)

        self.heap: List[Tuple[int, int, int, int, int, int]] = []

    # -- distances ---------------------------------------------------------

    def _rows_near(self, cell: Cell, radius: int) -> np.ndarray:
        slots = [s for c in _cells_around(cell, radius) for s in self.grid.get(c, ())]
        return np.fromiter((self.row[s] for s in slots), dtype=np.int64, count=len(slots))

    def _distances_from(self, row: int, cols: np.ndarray) -> np.ndarray:
        diff = self.live_rgb[cols] - self.live_rgb[row]
        d_sq = (diff * diff).sum(axis=1)
        d_sq[cols == row] = _NO_PAIR
        return d_sq

    def _pick(self, slot: int, cols: np.ndarray, d_sq: np.ndarray) -> Neighbour:
        """Best partner among candidate rows: closest, then heavier pair, then lowest slots."""
        d_min = int(d_sq.min()) if d_sq.size else _NO_PAIR
        if d_min > self.limit:
            return None

        tied = self.live_slots[cols[d_sq == d_min]].tolist()
        if len(tied) == 1:
            return d_min, tied[0]

        count = self.counts[slot]
        partner = min(tied, key=lambda other: (-(count + self.counts[other]),
                                               min(slot, other), max(slot, other)))
        return d_min, partner

    def _nearest(self, slot: int) -> Neighbour:
        """Nearest live neighbour of slot within the merge limit, if any."""
        row = self.row[slot]

        if self.size > _SCAN_ALL:
            cell = _cell_of(self.colors[slot])
            for radius in range(1, _MAX_RADIUS + 1):
                cols = self._rows_near(cell, radius)
                d_sq = self._distances_from(row, cols)
                reach = _reach(radius)
                # anything at least as close lies inside the searched cells
                if d_sq.size and d_sq.min() <= reach:
                    return self._pick(slot, cols, d_sq)
                if self.limit <= reach:
                    return None

        cols = np.arange(self.size, dtype=np.int64)
        return self._pick(slot, cols, self._distances_from(row, cols))

    # -- bookkeeping -------------------------------------------------------

    def _assign(self, slot: int, found: Neighbour):
        previous = self.partner[slot]
        if previous >= 0:
            self.pointed_by[previous].discard(slot)
        self.version[slot] += 1

        if found is None:
            self.partner[slot] = -1
            self.live_best[self.row[slot]] = _NO_PAIR
            return

        d_sq, other = found
        self.partner[slot] = other
        self.pointed_by[other].add(slot)
        self.live_best[self.row[slot]] = d_sq
        heapq.heappush(self.heap, (
            d_sq,
            -(self.counts[slot] + self.counts[other]),
            min(slot, other),
            max(slot, other),
            slot,
            self.version[slot],
        ))

    def _remove(self, slot: int) -> Set[int]:
        """Drop a merged slot; returns the slots whose neighbour it was."""
        cell = _cell_of(self.colors[slot])
        members = self.grid[cell]
        members.discard(slot)
        if not members:
            del self.grid[cell]

        row = self.row[slot]
        last = self.size - 1
        if row != last:
            moved = int(self.live_slots[last])
            self.live_slots[row] = moved
            self.live_rgb[row] = self.live_rgb[last]
            self.live_best[row] = self.live_best[last]
            self.row[moved] = row
        self.size = last
        self.row[slot] = -1

        partner = self.partner[slot]
        if partner >= 0:
            self.pointed_by[partner].discard(slot)
        orphans = self.pointed_by[slot]
        self.pointed_by[slot] = set()
        return orphans

    def _add(self, color: Tuple[int, int, int], count: int, sums: Tuple[int, int, int]) -> int:
        slot = len(self.colors)
        self.colors.append(color)
        self.counts.append(count)
        self.sums.append(sums)
        self.partner.append(-1)
        self.version.append(0)
        self.pointed_by.append(set())
        self.row.append(self.size)

        self.live_slots[self.size] = slot
        self.live_rgb[self.size] = color
        self.live_best[self.size] = _NO_PAIR
        self.size += 1

        self.grid.setdefault(_cell_of(color), set()).add(slot)
        return slot

    def _offer(self, slot: int, skip: Set[int]):
        """Make the new slot the neighbour of every live color it now beats."""
        row = self.row[slot]
        if self.size > _SCAN_ALL:
            reach = _reach(_OFFER_RADIUS)
            cols = self._rows_near(_cell_of(self.colors[slot]), _OFFER_RADIUS)
            # colors whose neighbour is beyond reach may prefer a slot outside the cells
            if self.limit > reach:
                far = np.flatnonzero(self.live_best[:self.size] > reach)
                cols = np.concatenate([cols, far])
        else:
            cols = np.arange(self.size, dtype=np.int64)

        d_sq = self._distances_from(row, cols)
        hits = np.flatnonzero((d_sq <= self.limit) & (d_sq <= self.live_best[cols]))
        count = self.counts[slot]

        for i in hits.tolist():
            other = int(self.live_slots[cols[i]])
            if other in skip:
                continue
            distance = int(d_sq[i])
            best = int(self.live_best[cols[i]])
            if distance > best:
                continue
            partner = self.partner[other]
            # on equal distance the heavier pair wins; full ties keep the older partner
            if distance == best and partner >= 0 and count <= self.counts[partner]:
                continue
            self._assign(other, (distance, slot))

    # -- driver ------------------------------------------------------------

    def _seed(self):
        if self.size <= _SCAN_ALL:
            for slot in range(self.size):
                self._assign(slot, self._nearest(slot))
            return

        reach = _reach(_SEED_RADIUS)
        for cell, members in list(self.grid.items()):
            cols = self._rows_near(cell, _SEED_RADIUS)
            slots = sorted(members)
            rows_per_block = max(1, _BLOCK_CELLS // len(cols))

            for start in range(0, len(slots), rows_per_block):
                block = slots[start:start + rows_per_block]
                rows = np.array([self.row[s] for s in block], dtype=np.int64)
                diff = self.live_rgb[rows][:, None, :] - self.live_rgb[cols][None, :, :]
                d_sq = (diff * diff).sum(axis=2)
                d_sq[rows[:, None] == cols[None, :]] = _NO_PAIR

                d_min = d_sq.min(axis=1)
                first = d_sq.argmin(axis=1)
                ties = (d_sq == d_min[:, None]).sum(axis=1)

                for i, slot in enumerate(block):
                    if d_min[i] > reach:
                        found = None if self.limit <= reach else self._nearest(slot)
                    elif d_min[i] > self.limit:
                        found = None
                    elif ties[i] == 1:
                        found = (int(d_min[i]), int(self.live_slots[cols[first[i]]]))
                    else:
                        found = self._pick(slot, cols, d_sq[i])
                    self._assign(slot, found)

    def run(self) -> Tuple[List[Representative], int]:
        self._seed()
        merges = 0

        while self.heap:
            _, _, lo, hi, owner, version = heapq.heappop(self.heap)
            if self.row[owner] < 0 or self.version[owner] != version:
                continue

            orphans = self._remove(lo) | self._remove(hi)
            orphans.discard(lo)
            orphans.discard(hi)

            count = self.counts[lo] + self.counts[hi]
            sums = tuple(a + b for a, b in zip(self.sums[lo], self.sums[hi]))
            merged = tuple(weighted_channel(s, count) for s in sums)
            slot = self._add(merged, count, sums)
            merges += 1

            self._assign(slot, self._nearest(slot))
            self._offer(slot, orphans)
            for orphan in sorted(orphans):
                self._assign(orphan, self._nearest(orphan))

        survivors = [
            Representative(*self.colors[slot], self.counts[slot])
            for slot in range(len(self.colors))
            if self.row[slot] >= 0
        ]
        return survivors, merges


def merge_representatives(representatives: Sequence[Representative],
                          distance_threshold: float) -> List[Representative]:
    """
    Merge representatives closer than the distance threshold.

    Args:
        representatives: Colors to merge, in a deterministic order
        distance_threshold: Normalized distance in [0, 1]; 1 is black to white

    Returns:
        Surviving representatives. Originals keep their relative order and
        merged colors follow in creation order. Every pair of survivors is
        strictly farther apart than the threshold and counts are conserved.

    Raises:
        InvalidOptionError: If distance_threshold is outside [0, 1]
    """
    if not config.validate_distance(distance_threshold):
        raise InvalidOptionError(f"distance must be within [0, 1], got {distance_threshold}")

    reps = list(representatives)
    if len(reps) < 2:
        return reps

    # every pair is within the maximal distance
    if distance_threshold >= 1.0:
        logger.debug(f"Merging all {len(reps)} representatives (distance=1.0)")
        return [_combine(reps)]

    limit = distance_threshold * distance_threshold * MAX_SQUARED_DISTANCE
    survivors, merges = _ClosestPairMerger(reps, limit).run()

    logger.debug(f"Distance merge at {distance_threshold}: {len(reps)} -> {len(reps) - merges} "
                 f"representatives")
    return survivors
