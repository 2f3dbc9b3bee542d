"""
Row-major index over a linked pixel graph.

The grid keeps two views of the same image: ``rows`` (lists of node ids) and
the neighbor links stored in the arena. Seam surgery edits both together.
"""

import torch
from typing import Dict, Iterator, List, Tuple

from .errors import StructuralInconsistency
from .pixels import BORDER, DOWN, LEFT, OPPOSITE, PixelArena, RIGHT, UP


class Grid:
    """
    A rectangular index of pixel nodes.

    Several Grid objects can share one arena: ``transpose`` returns a new
    index over the same nodes so horizontal seams can reuse the vertical
    algorithms.
    """

    def __init__(self, arena: PixelArena, rows: List[List[int]],
                 empty_width: int = 0):
        """
        Args:
            arena: Node storage the ids in ``rows`` refer to
            rows: Node ids, top to bottom, left to right
            empty_width: Width to report when ``rows`` is empty
        """
        self.arena = arena
        self.rows = rows
        self._empty_width = empty_width

    @classmethod
    def build(cls, colors: torch.Tensor) -> 'Grid':
        """
        Create nodes for an (H, W, 3) uint8 color tensor and link them.

        Each new node is linked to its left predecessor, and to the node above
        it found through existing links: the right neighbor of the node above
        the previous node, or the first node of the previous row.

        Args:
            colors: (H, W, 3) uint8 tensor

        Returns:
            Grid with every node linked to its four neighbors
        """
        H, W = colors.shape[0], colors.shape[1]
        arena = PixelArena(colors.reshape(H * W, 3))

        rows = []
        front_of_row = BORDER
        node_id = 1
        for y in range(H):
            row = []
            prev = BORDER
            for x in range(W):
                node = node_id
                node_id += 1
                if x == 0:
                    above = front_of_row
                    front_of_row = node
                else:
                    arena.connect_left_to_right(prev, node)
                    above = arena.right(arena.up(prev))
                arena.connect_down_to_up(node, above)
                row.append(node)
                prev = node
            rows.append(row)

        return cls(arena, rows, empty_width=W)

    # -- shape ----------------------------------------------------------------

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        if self.rows:
            return len(self.rows[0])
        return self._empty_width

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def is_rectangular(self) -> bool:
        return all(len(row) == self.width for row in self.rows)

    def node_at(self, y: int, x: int) -> int:
        return self.rows[y][x]

    def nodes(self) -> Iterator[int]:
        for row in self.rows:
            yield from row

    def ids(self) -> torch.Tensor:
        """Node ids as a (H, W) long tensor."""
        return torch.tensor(self.rows, dtype=torch.long).reshape(self.height, self.width)

    # -- structure -------------------------------------------------------------

    def transpose(self) -> 'Grid':
        """
        Swap rows and columns. The new grid shares this grid's nodes.

        Raises:
            StructuralInconsistency: if the rows have unequal lengths
        """
        if not self.is_rectangular():
            lengths = sorted({len(row) for row in self.rows})
            raise StructuralInconsistency(f"Cannot transpose jagged grid, row lengths {lengths}")

        if self.height == 0:
            columns = [[] for _ in range(self._empty_width)]
        else:
            columns = [list(col) for col in zip(*self.rows)]
        return Grid(self.arena, columns, empty_width=self.height)

    def verify(self) -> bool:
        """Check that every indexed node's neighbors link back to it."""
        links = self.arena._links
        for node in self.nodes():
            for direction in (UP, DOWN, LEFT, RIGHT):
                other = links[direction][node]
                if other != BORDER and links[OPPOSITE[direction]][other] != node:
                    return False
        return True

    def check(self):
        if not self.verify():
            raise StructuralInconsistency("Pixel graph is ill-formed")

    def mark(self, nodes, flag: bool = True):
        self.arena.mark_all(nodes, flag)

    def colors(self) -> torch.Tensor:
        """Original colors as a (H, W, 3) uint8 tensor."""
        return self.arena.colors[self.ids()]

    def snapshot(self) -> Dict[str, object]:
        """Copy of the index, links, and colors, for comparing grid states."""
        return {
            'rows': [list(row) for row in self.rows],
            'links': self.arena.link_table(),
            'colors': self.colors().clone(),
        }

    def __repr__(self):
        return f"Grid(height={self.height}, width={self.width})"
