"""
High-level carving engine: load a grid, step through seam removals, undo them.

A driver (animation loop, CLI, UI) owns a SeamCarver and calls, one at a time:
step_remove to preview the next seam, commit_remove to cut it, undo to put
the most recent one back, and render_colors to read the current image.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from .config import DEFAULT_STRICT, DIRECTIONS, HIGHLIGHT_COLOR, RENDER_MODES
from .energy import energy_heatmap
from .errors import InvalidDimensions, StructuralInconsistency
from .grid import Grid
from .seam import SeamInfo, dp_seam, insert_seam, remove_seam, seam_nodes

logger = logging.getLogger(__name__)

ColorInput = Union[torch.Tensor, np.ndarray, Sequence[Sequence[Sequence[float]]]]


def _nested_to_tensor(colors) -> torch.Tensor:
    rows = list(colors)
    if not rows:
        raise InvalidDimensions("Color matrix has no rows")
    try:
        width = len(rows[0])
        for y, row in enumerate(rows):
            if len(row) != width:
                raise InvalidDimensions(
                    f"Row {y} has {len(row)} columns, expected {width}")
            for pixel in row:
                if len(pixel) != 3:
                    raise InvalidDimensions(f"Pixel in row {y} is not an RGB triple")
    except TypeError as exc:
        raise InvalidDimensions("Color matrix must be rows of RGB triples") from exc
    if width == 0:
        raise InvalidDimensions("Color matrix has no columns")
    return torch.tensor(rows)


def as_color_tensor(colors: ColorInput) -> torch.Tensor:
    """
    Normalize a color matrix to an (H, W, 3) uint8 tensor.

    Integer input is taken as 0-255 channel values. Floating input is taken
    as [0, 1] intensities (the usual torch image convention) and scaled.

    Args:
        colors: Nested sequences, numpy array, or torch tensor shaped (H, W, 3)

    Returns:
        (H, W, 3) uint8 tensor

    Raises:
        InvalidDimensions: if the matrix is empty, jagged, or not (H, W, 3)
    """
    if isinstance(colors, torch.Tensor):
        tensor = colors.detach().cpu()
    elif isinstance(colors, np.ndarray):
        if colors.dtype == object:
            raise InvalidDimensions("Color matrix is jagged")
        tensor = torch.from_numpy(np.ascontiguousarray(colors))
    else:
        tensor = _nested_to_tensor(colors)

    if tensor.dim() != 3 or tensor.shape[2] != 3:
        raise InvalidDimensions(f"Expected (H, W, 3) colors, got {tuple(tensor.shape)}")
    if tensor.shape[0] == 0 or tensor.shape[1] == 0:
        raise InvalidDimensions(f"Color matrix is empty: {tuple(tensor.shape)}")

    if tensor.is_floating_point():
        tensor = (tensor.clamp(0.0, 1.0) * 255).round()
    elif tensor.dtype != torch.uint8 and (tensor.min() < 0 or tensor.max() > 255):
        raise ValueError("Integer color channels must be in [0, 255]")
    return tensor.to(torch.uint8)


def load_grid(colors: ColorInput) -> Grid:
    """Build a linked pixel grid from a color matrix.

    Raises:
        InvalidDimensions: if the matrix is empty, jagged, or not (H, W, 3)
    """
    return Grid.build(as_color_tensor(colors))


def _check_direction(direction: str):
    if direction not in DIRECTIONS:
        raise ValueError(f"Invalid direction: {direction}")


class SeamCarver:
    """
    Seam carving with undo over a single linked pixel grid.

    Removed seams go on a LIFO history and keep their original nodes, so
    ``undo`` restores the grid exactly. Commands are not thread-safe; callers
    issue one at a time.
    """

    def __init__(self, colors: ColorInput, strict: bool = DEFAULT_STRICT,
                 highlight: bool = True):
        """
        Args:
            colors: (H, W, 3) color matrix
            strict: Verify the link invariant after every commit and undo
            highlight: Paint the pending seam in render_colors
        """
        self.grid = load_grid(colors)
        self.strict = strict
        self.highlight = highlight
        self._history: List[SeamInfo] = []
        self._pending: Optional[SeamInfo] = None
        self._failure: Optional[StructuralInconsistency] = None

    # -- state ----------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, int]:
        return self.grid.shape

    @property
    def history(self) -> Tuple[SeamInfo, ...]:
        return tuple(self._history)

    @property
    def pending(self) -> Optional[SeamInfo]:
        return self._pending

    def _ensure_usable(self):
        if self._failure is not None:
            raise StructuralInconsistency(
                "Grid is unusable after an earlier structural failure") from self._failure

    def _clear_pending(self):
        if self._pending is not None:
            self.grid.mark(seam_nodes(self._pending), False)
            self._pending = None

    def _apply(self, operation, seam: SeamInfo):
        try:
            grid = operation(self.grid, seam)
            if self.strict:
                grid.check()
        except StructuralInconsistency as exc:
            self._failure = exc
            logger.error("Structural failure during %s: %s", operation.__name__, exc)
            raise
        self.grid = grid

    # -- commands -------------------------------------------------------------

    def step_remove(self, direction: str = 'vertical') -> Optional[SeamInfo]:
        """
        Find the next seam to remove without changing the grid.

        The seam becomes the pending seam and is highlighted by
        render_colors until it is committed or replaced.

        Args:
            direction: 'vertical' or 'horizontal'

        Returns:
            The seam, or None if the grid has no pixels left
        """
        self._ensure_usable()
        _check_direction(direction)
        self._clear_pending()

        seam = dp_seam(self.grid, direction)
        if seam is not None:
            self.grid.mark(seam_nodes(seam), True)
            self._pending = seam
        return seam

    def commit_remove(self, seam: SeamInfo):
        """
        Remove the pending seam from the grid and push it onto the history.

        Raises:
            ValueError: if ``seam`` is not the seam from the latest step_remove
            StructuralInconsistency: if the grid breaks during removal
        """
        self._ensure_usable()
        if seam is None or seam is not self._pending:
            raise ValueError("Only the seam returned by the latest step_remove can be committed")
        self._clear_pending()

        self._apply(remove_seam, seam)
        self._history.append(seam)
        logger.debug("Committed %s seam (%d in history), grid %dx%d",
                     seam.direction, len(self._history), *self.grid.shape)

    def step(self, direction: str = 'vertical') -> Optional[SeamInfo]:
        """Find a seam, or commit the pending one if there is one.

        A pending seam is committed whatever ``direction`` is passed.
        """
        if self._pending is not None:
            seam = self._pending
            self.commit_remove(seam)
            return seam
        return self.step_remove(direction)

    def undo(self) -> bool:
        """
        Reinsert the most recently removed seam.

        Returns:
            False if there was nothing to undo
        """
        self._ensure_usable()
        self._clear_pending()
        if not self._history:
            return False

        seam = self._history.pop()
        self._apply(insert_seam, seam)
        logger.debug("Reinserted %s seam (%d left in history), grid %dx%d",
                     seam.direction, len(self._history), *self.grid.shape)
        return True

    def undo_all(self) -> int:
        """Undo every removal. Returns how many seams were reinserted."""
        count = 0
        while self.undo():
            count += 1
        return count

    def pick_direction(self, generator: Optional[torch.Generator] = None) -> str:
        """Random orientation, vertical with probability W / (W + H) of the current grid."""
        H, W = self.grid.shape
        if H + W == 0:
            return 'vertical'
        draw = torch.rand(1, generator=generator).item()
        return 'vertical' if draw >= H / (W + H) else 'horizontal'

    def carve(self, n_seams: int, direction: str = 'vertical',
              generator: Optional[torch.Generator] = None) -> int:
        """
        Remove up to ``n_seams`` seams.

        Args:
            n_seams: Number of seams to remove
            direction: 'vertical', 'horizontal', or 'auto' to pick per seam
            generator: Random source for 'auto'

        Returns:
            Number of seams actually removed (fewer if the grid runs out)
        """
        if direction != 'auto':
            _check_direction(direction)

        removed = 0
        for _ in range(n_seams):
            step_direction = self.pick_direction(generator) if direction == 'auto' else direction
            seam = self.step_remove(step_direction)
            if seam is None:
                break
            self.commit_remove(seam)
            removed += 1
        return removed

    # -- output ---------------------------------------------------------------

    def render_colors(self, mode: str = 'original') -> torch.Tensor:
        """
        Snapshot of the current image.

        Args:
            mode: 'original' for pixel colors, 'energy' for a grayscale heatmap

        Returns:
            (H, W, 3) uint8 tensor
        """
        if mode not in RENDER_MODES:
            raise ValueError(f"Invalid render mode: {mode}")

        if mode == 'original':
            image = self.grid.colors().clone()
        else:
            gray = energy_heatmap(self.grid)
            image = gray.unsqueeze(-1).expand(-1, -1, 3).clone()

        if self.highlight and self._pending is not None:
            arena = self.grid.arena
            mask = torch.tensor([[arena.is_marked(node) for node in row] for row in self.grid.rows],
                                dtype=torch.bool).reshape(self.grid.shape)
            image[mask] = torch.tensor(HIGHLIGHT_COLOR, dtype=torch.uint8)
        return image


def carve_image(colors: ColorInput, n_seams: int,
                direction: str = 'vertical') -> torch.Tensor:
    """
    Remove ``n_seams`` seams from an image in one call.

    Args:
        colors: (H, W, 3) color matrix
        n_seams: Number of seams to remove
        direction: 'vertical', 'horizontal', or 'auto'

    Returns:
        Carved (H, W', 3) uint8 tensor
    """
    carver = SeamCarver(colors, strict=False, highlight=False)
    carver.carve(n_seams, direction=direction)
    return carver.render_colors()
