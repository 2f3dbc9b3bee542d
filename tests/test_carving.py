"""Tests for the carving engine: loading, step/commit, undo, rendering."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import torch
import pytest
from graphcarve.carving import SeamCarver, as_color_tensor, load_grid, carve_image
from graphcarve.config import HIGHLIGHT_COLOR
from graphcarve.errors import InvalidDimensions, StructuralInconsistency
from graphcarve.pixels import DOWN
from graphcarve.seam import seam_columns, seam_nodes

from conftest import make_random_colors, make_uniform_colors

RED = list(HIGHLIGHT_COLOR)


class TestLoad:
    def test_nested_lists(self):
        grid = load_grid([[[255, 0, 0], [0, 255, 0]],
                          [[0, 0, 255], [9, 9, 9]]])
        assert grid.shape == (2, 2)
        assert grid.arena.color(grid.node_at(1, 1)) == (9, 9, 9)

    def test_numpy_input(self):
        colors = np.zeros((3, 4, 3), dtype=np.uint8)
        assert load_grid(colors).shape == (3, 4)

    def test_float_input_is_scaled(self):
        colors = as_color_tensor(torch.tensor([[[0.0, 0.5, 1.0]]]))
        assert colors.dtype == torch.uint8
        assert colors[0, 0].tolist() == [0, 128, 255]

    def test_float_input_is_clamped(self):
        colors = as_color_tensor(torch.tensor([[[-0.5, 2.0, 1.0]]]))
        assert colors[0, 0].tolist() == [0, 255, 255]

    @pytest.mark.parametrize('colors', [
        [],
        [[]],
        [[[1, 2, 3]], [[1, 2, 3], [4, 5, 6]]],
        [[[1, 2]]],
        [[1, 2, 3]],
    ])
    def test_rejects_bad_nested_input(self, colors):
        with pytest.raises(InvalidDimensions):
            load_grid(colors)

    def test_rejects_wrong_tensor_shape(self):
        with pytest.raises(InvalidDimensions):
            load_grid(torch.zeros(4, 4, dtype=torch.uint8))
        with pytest.raises(InvalidDimensions):
            load_grid(torch.zeros(4, 4, 4, dtype=torch.uint8))

    def test_rejects_empty_tensor(self):
        with pytest.raises(InvalidDimensions):
            load_grid(torch.zeros(0, 4, 3, dtype=torch.uint8))

    def test_rejects_out_of_range_integers(self):
        with pytest.raises(ValueError):
            load_grid(torch.full((1, 1, 3), 300, dtype=torch.int64))

    def test_invalid_dimensions_is_value_error(self):
        assert issubclass(InvalidDimensions, ValueError)


class TestStep:
    def test_step_remove_does_not_mutate(self):
        carver = SeamCarver(make_random_colors(5, 6))
        before = carver.grid.snapshot()
        seam = carver.step_remove('vertical')
        assert seam is not None
        assert carver.pending is seam
        assert carver.shape == (5, 6)
        assert before['rows'] == carver.grid.snapshot()['rows']
        assert torch.equal(before['links'], carver.grid.arena.link_table())

    def test_commit_removes_pending(self):
        carver = SeamCarver(make_random_colors(5, 6))
        seam = carver.step_remove('vertical')
        carver.commit_remove(seam)
        assert carver.shape == (5, 5)
        assert carver.pending is None
        assert carver.history == (seam,)

    def test_commit_clears_marks(self):
        carver = SeamCarver(make_random_colors(4, 4))
        seam = carver.step_remove('vertical')
        carver.commit_remove(seam)
        arena = carver.grid.arena
        assert not any(arena.is_marked(node) for node in seam_nodes(seam))

    def test_commit_rejects_stale_seam(self):
        carver = SeamCarver(make_random_colors(5, 6))
        first = carver.step_remove('vertical')
        carver.step_remove('horizontal')
        with pytest.raises(ValueError):
            carver.commit_remove(first)
        assert carver.shape == (5, 6)

    def test_commit_without_step_raises(self):
        carver = SeamCarver(make_random_colors(3, 3))
        with pytest.raises(ValueError):
            carver.commit_remove(None)

    def test_step_finds_then_commits(self):
        carver = SeamCarver(make_random_colors(5, 6))
        seam = carver.step('vertical')
        assert carver.shape == (5, 6)
        assert carver.step('horizontal') is seam
        assert carver.shape == (5, 5)
        assert carver.pending is None

    def test_invalid_direction(self):
        carver = SeamCarver(make_random_colors(3, 3))
        with pytest.raises(ValueError):
            carver.step_remove('sideways')
        with pytest.raises(ValueError):
            carver.carve(1, direction='sideways')

    def test_step_remove_on_empty_grid_returns_none(self):
        carver = SeamCarver(make_random_colors(2, 1))
        carver.carve(1)
        assert carver.shape == (2, 0)
        assert carver.step_remove('vertical') is None
        assert carver.step_remove('horizontal') is None
        assert carver.pending is None


class TestUndo:
    def test_nothing_to_undo(self):
        carver = SeamCarver(make_random_colors(3, 3))
        assert carver.undo() is False

    def test_undo_restores_exactly(self):
        carver = SeamCarver(make_random_colors(6, 7, seed=3))
        original = carver.grid.snapshot()
        assert carver.carve(3) == 3
        assert carver.shape == (6, 4)
        for _ in range(3):
            assert carver.undo() is True
        assert carver.undo() is False
        restored = carver.grid.snapshot()
        assert restored['rows'] == original['rows']
        assert torch.equal(restored['links'], original['links'])
        assert torch.equal(restored['colors'], original['colors'])

    def test_undo_mixed_directions(self):
        colors = make_random_colors(7, 9, seed=12)
        carver = SeamCarver(colors)
        original = carver.grid.snapshot()
        for direction in ['vertical', 'horizontal', 'horizontal', 'vertical', 'horizontal']:
            carver.carve(1, direction=direction)
        assert carver.shape == (4, 7)
        assert carver.undo_all() == 5
        assert carver.grid.snapshot()['rows'] == original['rows']
        assert torch.equal(carver.render_colors(), colors)

    def test_undo_discards_pending(self):
        carver = SeamCarver(make_random_colors(4, 5))
        carver.carve(1)
        carver.step_remove('vertical')
        assert carver.undo() is True
        assert carver.pending is None
        assert carver.shape == (4, 5)

    def test_carve_to_empty_and_back(self):
        colors = make_random_colors(2, 3, seed=6)
        carver = SeamCarver(colors)
        assert carver.carve(5) == 3
        assert carver.shape == (2, 0)
        assert carver.undo_all() == 3
        assert torch.equal(carver.render_colors(), colors)

    def test_single_pixel_cycle(self):
        colors = torch.tensor([[[12, 34, 56]]], dtype=torch.uint8)
        carver = SeamCarver(colors)
        seam = carver.step_remove('vertical')
        carver.commit_remove(seam)
        assert carver.shape == (1, 0)
        assert carver.step_remove('vertical') is None
        assert carver.undo() is True
        assert carver.shape == (1, 1)
        assert carver.render_colors()[0, 0].tolist() == [12, 34, 56]

    def test_energy_matches_after_undo(self):
        colors = make_random_colors(5, 5, seed=2)
        carver = SeamCarver(colors)
        fresh = SeamCarver(colors)
        carver.render_colors('energy')
        carver.carve(2, direction='horizontal')
        carver.render_colors('energy')
        carver.undo_all()
        assert torch.equal(carver.render_colors('energy'), fresh.render_colors('energy'))


class TestStructuralFailure:
    def test_failure_poisons_engine(self):
        carver = SeamCarver(make_random_colors(6, 8, seed=42))
        seam = carver.step_remove('vertical')
        top = seam_columns(seam)[0]
        far = 0 if top >= 4 else 7
        grid = carver.grid
        # One-sided link the removal never touches
        grid.arena.set_neighbor(grid.node_at(0, far), DOWN, grid.node_at(3, far))

        with pytest.raises(StructuralInconsistency):
            carver.commit_remove(seam)
        with pytest.raises(StructuralInconsistency):
            carver.step_remove('vertical')
        with pytest.raises(StructuralInconsistency):
            carver.undo()

    def test_non_strict_skips_verification(self):
        carver = SeamCarver(make_random_colors(6, 8, seed=42), strict=False)
        seam = carver.step_remove('vertical')
        far = 0 if seam_columns(seam)[0] >= 4 else 7
        grid = carver.grid
        grid.arena.set_neighbor(grid.node_at(0, far), DOWN, grid.node_at(3, far))
        carver.commit_remove(seam)
        assert carver.shape == (6, 7)


class TestAutoDirection:
    def test_seeded_runs_match(self):
        colors = make_random_colors(8, 12, seed=5)
        results = []
        for _ in range(2):
            carver = SeamCarver(colors)
            carver.carve(6, direction='auto', generator=torch.Generator().manual_seed(3))
            results.append(([s.direction for s in carver.history], carver.render_colors()))
        assert results[0][0] == results[1][0]
        assert torch.equal(results[0][1], results[1][1])

    def test_auto_shrinks_total_size(self):
        carver = SeamCarver(make_random_colors(8, 12, seed=5))
        assert carver.carve(6, direction='auto', generator=torch.Generator().manual_seed(1)) == 6
        H, W = carver.shape
        assert H + W == 14

    def test_pick_direction_values(self):
        carver = SeamCarver(make_random_colors(3, 3))
        generator = torch.Generator().manual_seed(0)
        picks = {carver.pick_direction(generator) for _ in range(50)}
        assert picks == {'vertical', 'horizontal'}

    def test_weights_follow_current_shape(self):
        """Once the width is carved away only horizontal seams are picked."""
        carver = SeamCarver(make_random_colors(2, 1))
        carver.carve(1)
        assert carver.shape == (2, 0)
        generator = torch.Generator().manual_seed(0)
        picks = {carver.pick_direction(generator) for _ in range(50)}
        assert picks == {'horizontal'}

    def test_wide_image_mostly_vertical(self):
        carver = SeamCarver(make_random_colors(1, 99))
        generator = torch.Generator().manual_seed(0)
        picks = [carver.pick_direction(generator) for _ in range(200)]
        assert picks.count('vertical') > 180


class TestRender:
    def test_original_mode_matches_input(self):
        colors = make_random_colors(4, 6, seed=8)
        assert torch.equal(SeamCarver(colors).render_colors('original'), colors)

    def test_pending_seam_is_highlighted(self):
        colors = make_uniform_colors(5, 6, (10, 20, 30))
        carver = SeamCarver(colors)
        seam = carver.step_remove('vertical')
        image = carver.render_colors()
        cols = seam_columns(seam)
        for y, x in enumerate(cols):
            assert image[y, x].tolist() == RED
        red = (image == torch.tensor(RED, dtype=torch.uint8)).all(dim=-1)
        assert red.sum().item() == 5

    def test_horizontal_seam_is_highlighted(self):
        carver = SeamCarver(make_uniform_colors(5, 6, (10, 20, 30)))
        seam = carver.step_remove('horizontal')
        image = carver.render_colors()
        for x, y in enumerate(seam_columns(seam)):
            assert image[y, x].tolist() == RED

    def test_highlight_off(self):
        colors = make_uniform_colors(4, 4, (10, 20, 30))
        carver = SeamCarver(colors, highlight=False)
        carver.step_remove('vertical')
        assert torch.equal(carver.render_colors(), colors)

    def test_no_highlight_after_commit(self):
        carver = SeamCarver(make_uniform_colors(4, 4, (10, 20, 30)))
        carver.step()
        carver.step()
        image = carver.render_colors()
        assert (image == torch.tensor([10, 20, 30], dtype=torch.uint8)).all()

    def test_energy_mode_is_gray(self):
        carver = SeamCarver(make_random_colors(5, 7, seed=4))
        image = carver.render_colors('energy')
        assert image.shape == (5, 7, 3)
        assert image.dtype == torch.uint8
        assert torch.equal(image[..., 0], image[..., 1])
        assert torch.equal(image[..., 1], image[..., 2])

    def test_render_does_not_alias_arena(self):
        carver = SeamCarver(make_random_colors(3, 3))
        image = carver.render_colors()
        image.zero_()
        assert carver.render_colors().sum() > 0

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            SeamCarver(make_random_colors(2, 2)).render_colors('xray')


class TestCarveImage:
    def test_vertical(self):
        out = carve_image(make_random_colors(6, 10), 4)
        assert out.shape == (6, 6, 3)

    def test_horizontal(self):
        out = carve_image(make_random_colors(6, 10), 2, direction='horizontal')
        assert out.shape == (4, 10, 3)

    def test_preserves_high_energy_stripe(self):
        """Flat regions are carved before the stripe."""
        colors = make_uniform_colors(4, 8, (0, 0, 0))
        colors[:, 6] = torch.tensor([255, 255, 255], dtype=torch.uint8)
        out = carve_image(colors, 1)
        assert out.shape == (4, 7, 3)
        assert (out[:, 5] == 255).all()
