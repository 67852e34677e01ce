"""
Fractal Brownian motion over OpenSimplex noise.

Multi-octave coherent noise used as the fine-grained texture layer of the
terrain. Sampling is vectorised: each octave is a single ``noise2array`` call
over the whole grid.
"""

import secrets
from typing import Optional

import numpy as np
import structlog
from opensimplex import OpenSimplex

logger = structlog.get_logger()


def max_amplitude(octaves: int, persistence: float) -> float:
    """Sum of octave amplitudes, i.e. the theoretical noise bound."""
    total = 0.0
    amplitude = 1.0
    for _ in range(octaves):
        total += amplitude
        amplitude *= persistence
    return total


class NoiseField:
    """
    Seeded fBm sampler.

    One instance holds one OpenSimplex permutation, so repeated samples
    with the same parameters are bit-identical.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the noise field.

        Args:
            seed: Permutation seed. A fresh one is drawn when None.
        """
        if seed is None:
            seed = secrets.randbits(31)
        self.seed = seed
        self._simplex = OpenSimplex(seed)

    def sample(
        self,
        width: int,
        height: int,
        scale: float = 50.0,
        octaves: int = 4,
        lacunarity: float = 2.0,
        persistence: float = 0.5,
    ) -> np.ndarray:
        """
        Sample a row-major fBm heightmap.

        Args:
            width: Grid width in cells
            height: Grid height in cells
            scale: Cells per noise unit at the first octave
            octaves: Number of noise layers
            lacunarity: Frequency multiplier per octave
            persistence: Amplitude multiplier per octave

        Returns:
            Flat float32 array of ``width * height`` values in [0, 1]
        """
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        if scale <= 0:
            raise ValueError(f"Noise scale must be positive, got {scale}")

        xs = np.arange(width, dtype=np.float64) / scale
        ys = np.arange(height, dtype=np.float64) / scale

        elevation = np.zeros((height, width), dtype=np.float64)
        amplitude = 1.0
        frequency = 1.0
        for _ in range(octaves):
            # noise2array returns shape (len(ys), len(xs)), i.e. row-major
            elevation += self._simplex.noise2array(xs * frequency, ys * frequency) * amplitude
            amplitude *= persistence
            frequency *= lacunarity

        bound = max_amplitude(octaves, persistence)
        if bound > 0:
            field = elevation / (2.0 * bound) + 0.5
        else:
            field = np.full((height, width), 0.5, dtype=np.float64)

        return field.astype(np.float32).ravel()


def generate_fbm(
    width: int,
    height: int,
    scale: float = 50.0,
    octaves: int = 4,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Sample an fBm heightmap with a one-off NoiseField."""
    field = NoiseField(seed)
    logger.debug(
        "Sampling fBm noise",
        width=width,
        height=height,
        octaves=octaves,
        seed=field.seed,
    )
    return field.sample(width, height, scale, octaves, lacunarity, persistence)
