#!/usr/bin/env python3
"""
Simple demo script showing terrain and plant generation.
"""

import numpy as np

from py_terrain.config import settings
from py_terrain.core import CancellationToken, SceneGenerator, SceneRequest
from py_terrain.utils.logging import configure_logging


def main():
    """Demonstrate scene generation."""
    configure_logging(settings)

    print("Py-Terrain Scene Generation Demo")
    print("=" * 40)

    request = SceneRequest(width=128, height=128, max_hill_radius=32, num_hills=3, num_cells=24, seed="demo123")
    print(f"\nGenerating {request.width}x{request.height} scene ({request.num_cells} cells)...")
    scene = SceneGenerator(request).generate()

    heights = scene.heightmap
    print(f"  Height range: {np.min(heights):.3f}-{np.max(heights):.3f}")
    print(f"  Average height: {np.mean(heights):.3f}")
    print(f"  Highest point: ({scene.highest_point.x}, {scene.highest_point.y})")

    bins = [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]
    hist, _ = np.histogram(heights, bins=bins)
    print("  Height distribution:")
    for i in range(len(bins) - 1):
        bar = '#' * int(hist[i] / max(hist) * 20)
        print(f"    {bins[i]:.1f}-{bins[i+1]:.1f}: {bar} ({hist[i]})")

    print("\nPartition cells:")
    print("-" * 30)
    for seed in scene.partition.seeds[:8]:
        cx, cy = seed.center
        print(f"  #{seed.id:<3d} ({cx:6.1f}, {cy:6.1f})  {seed.plant_type.value:<8s} {seed.placement_rule.name}")
    if len(scene.partition) > 8:
        print(f"  ... {len(scene.partition) - 8} more")

    print("\nPlacements:")
    print("-" * 30)
    for plant_type, count in scene.placements.counts().items():
        print(f"  {plant_type.value:<8s} {count}")
    print(f"  Total: {scene.placements.total} of {scene.placements.processed_cells} cells")

    # A request cancelled from its first progress callback never publishes
    print("\nCancelled request:")
    print("-" * 30)
    token = CancellationToken()
    cancelled = SceneGenerator(request).generate(token=token, on_batch=lambda progress: token.cancel())
    print(f"  Result: {cancelled}")


if __name__ == "__main__":
    main()
