"""
Basic seam carving example with undo.

Removes seams one step at a time (preview, then commit), saves a GIF of the
highlighted seams, then undoes every removal and checks the image comes
back unchanged.

Usage:
    python basic_seam_carving.py photo.jpg --seams 60 --output-dir ../output
"""

import argparse
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import torch
import numpy as np
from PIL import Image
import matplotlib.pyplot as plt

from graphcarve import SeamCarver
from graphcarve.imageio import load_image, save_image


def to_frame(colors: torch.Tensor, size) -> Image.Image:
    """Pad a carved image back to the original size so GIF frames line up."""
    canvas = Image.new('RGB', size)
    canvas.paste(Image.fromarray(colors.numpy()), (0, 0))
    return canvas


def main():
    parser = argparse.ArgumentParser(description="Step-by-step seam carving with undo")
    parser.add_argument('image', type=str, help='Input image path')
    parser.add_argument('--seams', type=int, default=60, help='Seams to remove')
    parser.add_argument('--direction', default='vertical',
                        choices=['vertical', 'horizontal', 'auto'])
    parser.add_argument('--output-dir', type=str, default='../output')
    parser.add_argument('--fps', type=int, default=10)
    args = parser.parse_args()

    os.makedirs(args.output_dir, exist_ok=True)

    print("Loading image...")
    colors = load_image(args.image)
    H, W, _ = colors.shape
    print(f"Image shape: {H} x {W}")

    carver = SeamCarver(colors)
    energy_before = carver.render_colors('energy')
    generator = torch.Generator().manual_seed(0)

    print(f"Carving image (removing {args.seams} seams)...")
    frames = [to_frame(carver.render_colors(), (W, H))]
    for i in range(args.seams):
        direction = carver.pick_direction(generator) if args.direction == 'auto' else args.direction
        seam = carver.step_remove(direction)
        if seam is None:
            print("  Nothing left to remove")
            break
        frames.append(to_frame(carver.render_colors(), (W, H)))
        carver.commit_remove(seam)

        if (i + 1) % 20 == 0:
            print(f"  Removed {i + 1}/{args.seams} seams, size: {carver.shape}")

    carved = carver.render_colors()
    save_image(carved, os.path.join(args.output_dir, 'carved.png'))

    gif_path = os.path.join(args.output_dir, 'carving.gif')
    frames[0].save(gif_path, save_all=True, append_images=frames[1:],
                   duration=int(1000 / args.fps), loop=0)
    print(f"Saved: {gif_path}")

    print("\nUndoing every removal...")
    restored_count = carver.undo_all()
    restored = carver.render_colors()
    print(f"  Reinserted {restored_count} seams, exact match: {torch.equal(restored, colors)}")

    fig, axes = plt.subplots(1, 4, figsize=(16, 4))
    panels = [
        (colors, 'Original'),
        (energy_before, 'Energy'),
        (carved, f'Carved ({carved.shape[0]}x{carved.shape[1]})'),
        (restored, 'Restored'),
    ]
    for ax, (img, title) in zip(axes, panels):
        ax.imshow(np.asarray(img))
        ax.set_title(title)
        ax.axis('off')
    plt.tight_layout()
    figure_path = os.path.join(args.output_dir, 'comparison.png')
    plt.savefig(figure_path, dpi=150)
    plt.close(fig)
    print(f"Saved: {figure_path}")

    print("\nDone! Check the output directory for results.")


if __name__ == '__main__':
    main()
