"""Shared test fixtures for the graphcarve test suite."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import torch
import pytest
from graphcarve.grid import Grid
from graphcarve.pixels import BORDER


def make_random_colors(H, W, seed=0):
    """(H, W, 3) uint8 noise, reproducible per seed."""
    generator = torch.Generator().manual_seed(seed)
    return torch.randint(0, 256, (H, W, 3), generator=generator).to(torch.uint8)


def make_uniform_colors(H, W, color=(128, 128, 128)):
    return torch.tensor(color, dtype=torch.uint8).expand(H, W, 3).clone()


def make_stripe_colors(H, W, col, stripe=(0, 0, 0), background=(255, 255, 255)):
    """Uniform background with one vertical stripe of a different color."""
    colors = make_uniform_colors(H, W, background)
    colors[:, col] = torch.tensor(stripe, dtype=torch.uint8)
    return colors


def assert_index_matches_links(grid):
    """Every row/column step in the index is the matching pointer link."""
    arena = grid.arena
    for y, row in enumerate(grid.rows):
        for x, node in enumerate(row):
            right = row[x + 1] if x + 1 < len(row) else BORDER
            down = grid.rows[y + 1][x] if y + 1 < grid.height else BORDER
            left = row[x - 1] if x > 0 else BORDER
            up = grid.rows[y - 1][x] if y > 0 else BORDER
            assert arena.right(node) == right, f"right link of ({y}, {x})"
            assert arena.down(node) == down, f"down link of ({y}, {x})"
            assert arena.left(node) == left, f"left link of ({y}, {x})"
            assert arena.up(node) == up, f"up link of ({y}, {x})"


def assert_same_snapshot(before, after):
    assert before['rows'] == after['rows']
    assert torch.equal(before['links'], after['links'])
    assert torch.equal(before['colors'], after['colors'])


@pytest.fixture
def random_grid():
    """6x8 grid of random colors."""
    return Grid.build(make_random_colors(6, 8, seed=42))


@pytest.fixture
def square_grid():
    """3x3 grid of random colors."""
    return Grid.build(make_random_colors(3, 3, seed=7))
