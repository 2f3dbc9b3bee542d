"""
Image file conversion for drivers.

The engine itself only sees (H, W, 3) uint8 color tensors; these helpers
move between that layout and image files.
"""

import numpy as np
import torch
from PIL import Image


def load_image(path: str) -> torch.Tensor:
    """Load an image file as an (H, W, 3) uint8 tensor."""
    img = Image.open(path).convert('RGB')
    img_array = np.array(img, dtype=np.uint8)
    return torch.from_numpy(img_array)


def save_image(colors: torch.Tensor, path: str):
    """Save an (H, W, 3) uint8 tensor as an image file."""
    img_array = colors.cpu().numpy().astype(np.uint8)
    Image.fromarray(img_array).save(path)
