"""
Seam carving on a linked pixel graph, with exact undo.

Pixels are nodes with four neighbor links. Seams are found by dynamic
programming over gradient energy, spliced out of the graph, and can be
spliced back in reverse order to restore the original image.
"""

__version__ = "0.1.0"

from .errors import CarvingError, InvalidDimensions, StructuralInconsistency
from .pixels import BORDER, UP, DOWN, LEFT, RIGHT, PixelArena
from .grid import Grid
from .energy import brightness, horizontal_energy, vertical_energy, energy, energy_map, energy_heatmap
from .seam import SeamInfo, dp_seam, remove_seam, insert_seam, seam_nodes, seam_columns
from .carving import SeamCarver, load_grid, as_color_tensor, carve_image

__all__ = [
    'CarvingError',
    'InvalidDimensions',
    'StructuralInconsistency',
    'BORDER',
    'UP',
    'DOWN',
    'LEFT',
    'RIGHT',
    'PixelArena',
    'Grid',
    'brightness',
    'horizontal_energy',
    'vertical_energy',
    'energy',
    'energy_map',
    'energy_heatmap',
    'SeamInfo',
    'dp_seam',
    'remove_seam',
    'insert_seam',
    'seam_nodes',
    'seam_columns',
    'SeamCarver',
    'load_grid',
    'as_color_tensor',
    'carve_image',
]
