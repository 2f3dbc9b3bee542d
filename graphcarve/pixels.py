"""
Pixel nodes and the border sentinel.

Nodes live in an arena and are addressed by integer ids. Id 0 is the border:
an absorbing node that is its own neighbor in every direction, has zero
brightness, and ignores link updates. Interior nodes are 1..N.

All link changes go through PixelArena.set_neighbor, which also clears the
energy caches that depend on the changed link.
"""

import torch
from typing import Iterable, List, Optional, Tuple

from .config import BORDER_COLOR

BORDER = 0

UP, DOWN, LEFT, RIGHT = 0, 1, 2, 3
OPPOSITE = (DOWN, UP, RIGHT, LEFT)


class PixelArena:
    """
    Storage for every pixel node of one image.

    Links are kept in four parallel lists indexed by node id, so a node's
    right neighbor is ``self._links[RIGHT][node]``. Brightness is computed
    once from the colors; energy is cached per node and cleared by
    set_neighbor.
    """

    def __init__(self, colors: torch.Tensor):
        """
        Args:
            colors: (N, 3) uint8 tensor, one RGB triple per interior node
        """
        if colors.dim() != 2 or colors.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) colors, got {tuple(colors.shape)}")
        n_nodes = colors.shape[0]

        border = torch.tensor([BORDER_COLOR], dtype=torch.uint8)
        self.colors = torch.cat([border, colors.to(torch.uint8)], dim=0)

        brightness = self.colors.to(torch.float64).sum(dim=1) / 3.0 / 255.0
        brightness[BORDER] = 0.0
        self.brightness_table = brightness
        self._brightness: List[float] = brightness.tolist()

        self._links = [[BORDER] * (n_nodes + 1) for _ in range(4)]
        self._energy: List[Optional[float]] = [None] * (n_nodes + 1)
        self._marked = [False] * (n_nodes + 1)

    def __len__(self) -> int:
        return len(self._energy) - 1

    def node_ids(self) -> range:
        return range(1, len(self._energy))

    # -- links --------------------------------------------------------------

    def neighbor(self, node: int, direction: int) -> int:
        return self._links[direction][node]

    def up(self, node: int) -> int:
        return self._links[UP][node]

    def down(self, node: int) -> int:
        return self._links[DOWN][node]

    def left(self, node: int) -> int:
        return self._links[LEFT][node]

    def right(self, node: int) -> int:
        return self._links[RIGHT][node]

    def set_neighbor(self, node: int, direction: int, other: int):
        """Point ``node``'s link in ``direction`` at ``other``.

        The 3-tap kernel reads the perpendicular neighbors' links, so a
        left/right change also stales the up and down neighbors, and an
        up/down change stales the left and right neighbors.
        """
        if node == BORDER:
            return
        self._links[direction][node] = other
        self._energy[node] = None
        if direction == LEFT or direction == RIGHT:
            self.invalidate(self._links[UP][node])
            self.invalidate(self._links[DOWN][node])
        else:
            self.invalidate(self._links[LEFT][node])
            self.invalidate(self._links[RIGHT][node])

    def connect_left_to_right(self, on_left: int, on_right: int):
        self.set_neighbor(on_left, RIGHT, on_right)
        self.set_neighbor(on_right, LEFT, on_left)

    def connect_down_to_up(self, on_bottom: int, on_top: int):
        self.set_neighbor(on_bottom, UP, on_top)
        self.set_neighbor(on_top, DOWN, on_bottom)

    def link_table(self) -> torch.Tensor:
        """All links as a (N+1, 4) long tensor, columns ordered UP, DOWN, LEFT, RIGHT."""
        return torch.tensor(self._links, dtype=torch.long).t().contiguous()

    # -- per-node data ------------------------------------------------------

    def color(self, node: int) -> Tuple[int, int, int]:
        r, g, b = self.colors[node].tolist()
        return r, g, b

    def brightness(self, node: int) -> float:
        return self._brightness[node]

    def cached_energy(self, node: int) -> Optional[float]:
        if node == BORDER:
            return None
        return self._energy[node]

    def store_energy(self, node: int, value: float):
        if node != BORDER:
            self._energy[node] = value

    def invalidate(self, node: int):
        if node != BORDER:
            self._energy[node] = None

    def mark(self, node: int, flag: bool = True):
        if node != BORDER:
            self._marked[node] = flag

    def mark_all(self, nodes: Iterable[int], flag: bool = True):
        for node in nodes:
            self.mark(node, flag)

    def is_marked(self, node: int) -> bool:
        return self._marked[node]
