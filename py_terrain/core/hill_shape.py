"""Single hill primitive with a lobed outline."""

from typing import Union

import numpy as np

ArrayOrFloat = Union[float, np.ndarray]


def smootherstep(t: ArrayOrFloat) -> ArrayOrFloat:
    """Quintic 6t^5 - 15t^4 + 10t^3, flat first and second derivative at 0 and 1."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def perturbed_radius(angle: ArrayOrFloat, base_radius: float, noise_radius: float) -> ArrayOrFloat:
    """Base radius wobbled by two angular harmonics (8 and 5 lobes)."""
    return base_radius + noise_radius * (0.5 * np.sin(8.0 * angle) + 0.5 * np.cos(5.0 * angle))


def generate_hill(
    width: int,
    height: int,
    center_x: float,
    center_y: float,
    base_radius: float,
    noise_radius: float,
) -> np.ndarray:
    """
    Rasterise one hill into a row-major heightmap.

    Cells outside the perturbed radius are 0; inside, height falls off from
    1 at the centre to 0 at the edge along a smootherstep curve.

    Args:
        width: Grid width in cells
        height: Grid height in cells
        center_x: Hill centre, x in cells
        center_y: Hill centre, y in cells
        base_radius: Mean outline radius
        noise_radius: Amplitude of the outline perturbation

    Returns:
        Flat float32 array of ``width * height`` values in [0, 1]
    """
    xs = np.arange(width, dtype=np.float64) - center_x
    ys = np.arange(height, dtype=np.float64) - center_y
    dx, dy = np.meshgrid(xs, ys)

    dist = np.hypot(dx, dy)
    radius = perturbed_radius(np.arctan2(dy, dx), base_radius, noise_radius)

    heights = np.zeros((height, width), dtype=np.float64)
    inside = (dist <= radius) & (radius > 0)
    t = np.clip(1.0 - dist[inside] / radius[inside], 0.0, 1.0)
    heights[inside] = smootherstep(t)

    return heights.astype(np.float32).ravel()
