"""
Energy functions for seam carving on a pixel graph.

The energy of a node is the Euclidean norm of two 3-tap brightness gradients
read through its neighbor links. Border neighbors contribute brightness 0.
Low-energy seams are preferred for removal.
"""

from typing import List

import torch

from .config import HEATMAP_SCALE
from .grid import Grid
from .pixels import BORDER, DOWN, LEFT, PixelArena, RIGHT, UP


def brightness(arena: PixelArena, node: int) -> float:
    """Mean of the RGB channels, scaled to [0, 1]."""
    return arena.brightness(node)


def horizontal_energy(arena: PixelArena, node: int) -> float:
    """(left.up + 2*left + left.down) - (right.up + 2*right + right.down)"""
    b = arena.brightness
    left = arena.left(node)
    right = arena.right(node)
    return ((b(arena.up(left)) + 2 * b(left) + b(arena.down(left)))
            - (b(arena.up(right)) + 2 * b(right) + b(arena.down(right))))


def vertical_energy(arena: PixelArena, node: int) -> float:
    """(up.left + 2*up + up.right) - (down.left + 2*down + down.right)"""
    b = arena.brightness
    up = arena.up(node)
    down = arena.down(node)
    return ((b(arena.left(up)) + 2 * b(up) + b(arena.right(up)))
            - (b(arena.left(down)) + 2 * b(down) + b(arena.right(down))))


def _neighborhood(arena: PixelArena, node: int) -> List[int]:
    """The twelve node ids the 3-tap kernels read, in ``_magnitude`` order."""
    left, right = arena.left(node), arena.right(node)
    up, down = arena.up(node), arena.down(node)
    return [arena.up(left), left, arena.down(left),
            arena.up(right), right, arena.down(right),
            arena.left(up), up, arena.right(up),
            arena.left(down), down, arena.right(down)]


def _magnitude(b: torch.Tensor, hood: torch.Tensor) -> torch.Tensor:
    """Gradient magnitude for each row of a (K, 12) neighborhood tensor."""
    t = b[hood]
    h = (t[:, 0] + 2 * t[:, 1] + t[:, 2]) - (t[:, 3] + 2 * t[:, 4] + t[:, 5])
    v = (t[:, 6] + 2 * t[:, 7] + t[:, 8]) - (t[:, 9] + 2 * t[:, 10] + t[:, 11])
    return torch.sqrt(h * h + v * v)


def energy(arena: PixelArena, node: int) -> float:
    """
    Gradient magnitude of a node, memoized until one of its links changes.

    A cache miss goes through the same kernel as ``energy_map``.

    Args:
        arena: Node storage
        node: Node id

    Returns:
        sqrt(h^2 + v^2); always 0 for the border
    """
    if node == BORDER:
        return 0.0
    cached = arena.cached_energy(node)
    if cached is None:
        hood = torch.tensor([_neighborhood(arena, node)], dtype=torch.long)
        cached = _magnitude(arena.brightness_table, hood).item()
        arena.store_energy(node, cached)
    return cached


def _fill_energy_cache(arena: PixelArena, nodes: torch.Tensor):
    """Compute and store energy for ``nodes`` in one vectorized pass."""
    links = arena.link_table()

    left = links[nodes, LEFT]
    right = links[nodes, RIGHT]
    up = links[nodes, UP]
    down = links[nodes, DOWN]
    hood = torch.stack([
        links[left, UP], left, links[left, DOWN],
        links[right, UP], right, links[right, DOWN],
        links[up, LEFT], up, links[up, RIGHT],
        links[down, LEFT], down, links[down, RIGHT],
    ], dim=1)
    values = _magnitude(arena.brightness_table, hood)

    for node, value in zip(nodes.tolist(), values.tolist()):
        arena.store_energy(node, value)


def energy_map(grid: Grid) -> torch.Tensor:
    """
    Energy of every node in the grid.

    Only nodes without a cached value are recomputed.

    Args:
        grid: Pixel grid (any orientation)

    Returns:
        Energy map (H, W), float64
    """
    arena = grid.arena
    ids = grid.ids()
    flat = ids.flatten().tolist()

    missing = [node for node in flat if arena.cached_energy(node) is None]
    if missing:
        _fill_energy_cache(arena, torch.tensor(missing, dtype=torch.long))

    values = [arena.cached_energy(node) for node in flat]
    return torch.tensor(values, dtype=torch.float64).reshape(ids.shape)


def energy_heatmap(grid: Grid) -> torch.Tensor:
    """Energy as 8-bit gray levels: energy / sqrt(32) * 255, truncated and clamped.

    Returns:
        (H, W) uint8 tensor
    """
    scaled = energy_map(grid) / HEATMAP_SCALE * 255
    return scaled.clamp(0, 255).to(torch.uint8)
