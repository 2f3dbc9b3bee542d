"""
Seam computation and seam surgery on a linked pixel grid.

A seam is found with dynamic programming over the grid's energy map and
stored as a persistent chain of SeamInfo records, deepest node first.
Removing a seam splices its nodes out of the grid and restitches their
neighbors; inserting it splices the same nodes back in. Horizontal seams run
the vertical procedures on the transposed grid.
"""

import logging
from collections import namedtuple
from typing import Iterator, List, Optional

import torch

from .energy import energy_map
from .errors import StructuralInconsistency
from .grid import Grid
from .pixels import BORDER, DOWN, LEFT, RIGHT, UP

logger = logging.getLogger(__name__)

# Link roles for one orientation. ``before``/``after`` run across the seam,
# ``prev``/``next`` run along it toward the shallow/deep end.
Axis = namedtuple('Axis', ['before', 'after', 'prev', 'next'])

AXES = {
    'vertical': Axis(before=LEFT, after=RIGHT, prev=UP, next=DOWN),
    'horizontal': Axis(before=UP, after=DOWN, prev=LEFT, next=RIGHT),
}


def _axis(direction: str) -> Axis:
    try:
        return AXES[direction]
    except KeyError:
        raise ValueError(f"Invalid direction: {direction}") from None


class SeamInfo:
    """
    One record of a seam chain.

    The record returned by dp_seam is the deepest node of the seam (bottom
    row for vertical seams, rightmost column for horizontal ones). Following
    ``came_from`` walks toward the shallow end. Chains are never mutated, so
    records may share tails.
    """

    __slots__ = ('node', 'total_weight', 'came_from', 'index', 'direction')

    def __init__(self, node: int, total_weight: float,
                 came_from: Optional['SeamInfo'] = None,
                 index: Optional[int] = None,
                 direction: str = 'vertical'):
        """
        Args:
            node: Node id
            total_weight: Energy summed from the shallow end through this node
            came_from: Record for the adjacent shallower row, or None
            index: Column of the node when the seam was found, or None
            direction: 'vertical' or 'horizontal'
        """
        _axis(direction)
        self.node = node
        self.total_weight = total_weight
        self.came_from = came_from
        self.index = index
        self.direction = direction

    def make_next_seam(self, node: int, weight: float,
                       index: Optional[int] = None) -> 'SeamInfo':
        """Extend the chain by one deeper node."""
        return SeamInfo(node, weight, self, index, self.direction)

    def __iter__(self) -> Iterator['SeamInfo']:
        record = self
        while record is not None:
            yield record
            record = record.came_from

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self):
        return (f"SeamInfo(direction={self.direction!r}, length={len(self)}, "
                f"total_weight={self.total_weight:.4f})")


def seam_nodes(seam: SeamInfo) -> List[int]:
    """Node ids from the shallow end to the deep end."""
    return [record.node for record in seam][::-1]


def seam_columns(seam: SeamInfo) -> List[Optional[int]]:
    """Recorded indices from the shallow end to the deep end."""
    return [record.index for record in seam][::-1]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def dp_seam(grid: Grid, direction: str = 'vertical') -> Optional[SeamInfo]:
    """
    Find the globally minimal seam with dynamic programming.

    For each cell the predecessor is straight above unless the upper-left
    cost is strictly lower; then the upper-right replaces the current best
    only when strictly lower still. Ties therefore prefer center, then left,
    then right. The seam ends at the first minimum of the last row.

    Args:
        grid: Rectangular pixel grid
        direction: 'vertical' or 'horizontal'

    Returns:
        Deepest record of the seam, or None if the grid has no pixels
    """
    _axis(direction)
    work = grid.transpose() if direction == 'horizontal' else grid
    H, W = work.shape
    if H == 0 or W == 0:
        return None

    energy = energy_map(work)
    cols = torch.arange(W)
    inf = float('inf')

    cost = energy[0].clone()
    parents = torch.empty((H, W), dtype=torch.long)
    parents[0] = -1

    for y in range(1, H):
        best = cost.clone()
        best_col = cols.clone()

        upper_left = torch.full_like(cost, inf)
        upper_left[1:] = cost[:-1]
        take = upper_left < best
        best = torch.where(take, upper_left, best)
        best_col = torch.where(take, cols - 1, best_col)

        upper_right = torch.full_like(cost, inf)
        upper_right[:-1] = cost[1:]
        take = upper_right < best
        best = torch.where(take, upper_right, best)
        best_col = torch.where(take, cols + 1, best_col)

        cost = best + energy[y]
        parents[y] = best_col

    # Backtrack bottom to top
    path = [0] * H
    col = int(torch.argmin(cost).item())
    for y in range(H - 1, -1, -1):
        path[y] = col
        col = int(parents[y, col].item())

    # Rebuild the chain top to bottom with running totals
    seam = None
    total = 0.0
    for y in range(H):
        x = path[y]
        total += float(energy[y, x].item())
        node = work.node_at(y, x)
        if seam is None:
            seam = SeamInfo(node, total, None, x, direction)
        else:
            seam = seam.make_next_seam(node, total, x)

    logger.debug("Found %s seam of length %d, total energy %.4f",
                 direction, H, seam.total_weight)
    return seam


# ---------------------------------------------------------------------------
# Surgery
# ---------------------------------------------------------------------------

def _restitch(grid: Grid, record: SeamInfo, axis: Axis):
    """Close the gap left by ``record.node`` and thread around it."""
    arena = grid.arena
    node = record.node
    before = arena.neighbor(node, axis.before)
    after = arena.neighbor(node, axis.after)

    def connect_across(first, second):
        arena.set_neighbor(first, axis.after, second)
        arena.set_neighbor(second, axis.before, first)

    def connect_along(deeper, shallower):
        arena.set_neighbor(deeper, axis.prev, shallower)
        arena.set_neighbor(shallower, axis.next, deeper)

    if record.came_from is None:
        connect_across(before, after)
        return

    prev = arena.neighbor(node, axis.prev)
    came_from = record.came_from.node
    if came_from == prev:
        connect_across(before, after)
    elif came_from == arena.neighbor(prev, axis.after):
        connect_across(before, after)
        connect_along(after, prev)
    elif came_from == arena.neighbor(prev, axis.before):
        connect_across(before, after)
        connect_along(before, prev)
    else:
        logger.error("Seam node %d is not adjacent to its predecessor %d", node, came_from)
        raise StructuralInconsistency("Pixel graph is ill-formed")


def _remove_vertical(grid: Grid, seam: SeamInfo, axis: Axis):
    chain = list(seam)
    if len(chain) != grid.height:
        raise StructuralInconsistency(
            f"Seam of length {len(chain)} does not fit grid of height {grid.height}")

    # Restitch deepest first, while every shallower link is still intact
    for record in chain:
        _restitch(grid, record, axis)

    for depth, record in enumerate(chain):
        row = grid.rows[grid.height - 1 - depth]
        if record.index is None:
            row.remove(record.node)
        elif record.index < len(row) and row[record.index] == record.node:
            del row[record.index]
        else:
            raise StructuralInconsistency(
                f"Seam node {record.node} is not at column {record.index}")


def remove_seam(grid: Grid, seam: SeamInfo) -> Grid:
    """
    Splice a seam out of the grid.

    The nodes stay in the arena with their own links untouched, which is
    what insert_seam relies on to put them back.

    Args:
        grid: Grid the seam was found on
        seam: Deepest record of the seam

    Returns:
        Grid without the seam (the same object for vertical seams)

    Raises:
        StructuralInconsistency: if a seam node is not adjacent to its
            predecessor or not where its index says
    """
    axis = _axis(seam.direction)
    if seam.direction == 'horizontal':
        work = grid.transpose()
        _remove_vertical(work, seam, axis)
        result = work.transpose()
    else:
        _remove_vertical(grid, seam, axis)
        result = grid
    logger.debug("Removed %s seam, grid is now %dx%d",
                 seam.direction, result.height, result.width)
    return result


def _revalidate(grid: Grid, node: int):
    """Point each of the node's remembered neighbors back at it."""
    arena = grid.arena
    arena.connect_down_to_up(node, arena.up(node))
    arena.connect_down_to_up(arena.down(node), node)
    arena.connect_left_to_right(node, arena.right(node))
    arena.connect_left_to_right(arena.left(node), node)


def _insert_vertical(grid: Grid, seam: SeamInfo, axis: Axis):
    chain = list(seam)[::-1]
    while grid.height < len(chain):
        grid.rows.append([])
    if grid.height != len(chain):
        raise StructuralInconsistency(
            f"Seam of length {len(chain)} does not fit grid of height {grid.height}")

    for y, record in enumerate(chain):
        node = record.node
        _revalidate(grid, node)
        row = grid.rows[y]
        after = grid.arena.neighbor(node, axis.after)
        if after == BORDER:
            row.append(node)
            continue
        try:
            row.insert(row.index(after), node)
        except ValueError:
            row.append(node)


def insert_seam(grid: Grid, seam: SeamInfo) -> Grid:
    """
    Splice a previously removed seam back into the grid.

    Must be called in reverse order of removal: the grid has to look exactly
    as it did right after this seam was removed.

    Args:
        grid: Grid the seam was removed from
        seam: Deepest record of the seam

    Returns:
        Grid with the seam restored (the same object for vertical seams)
    """
    axis = _axis(seam.direction)
    if seam.direction == 'horizontal':
        work = grid.transpose()
        _insert_vertical(work, seam, axis)
        result = work.transpose()
    else:
        _insert_vertical(grid, seam, axis)
        result = grid
    logger.debug("Inserted %s seam, grid is now %dx%d",
                 seam.direction, result.height, result.width)
    return result
