"""
Heightmap generation module.

Composes a terrain heightmap from a handful of lobed hills scattered around
the plane centre, blended with one fBm noise layer. All randomness comes from
a single Alea PRNG seeded by the caller, so a seed fully determines the
terrain.
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple, Union

import numpy as np
import structlog

from ..utils.alea_prng import AleaPRNG
from .hill_shape import generate_hill
from .noise_field import NoiseField

logger = structlog.get_logger()

# Blend weights of the summed hills and the roughness-scaled noise layer
HILL_WEIGHT = 0.7
NOISE_WEIGHT = 0.3

# Fixed parameters of the texture noise layer
NOISE_SCALE = 50.0
NOISE_OCTAVES = 4
NOISE_LACUNARITY = 2.0
NOISE_PERSISTENCE = 0.5


class HighestPoint(NamedTuple):
    """Grid coordinate and value of the heightmap maximum."""
    x: int
    y: int
    height: float


@dataclass
class HeightmapConfig:
    """Configuration for heightmap generation."""

    width: int
    height: int
    max_hill_radius: float
    roughness: float = 0.5
    num_hills: int = 2
    normalize: bool = True

    def validate(self) -> None:
        """Reject parameter combinations that are programming errors."""
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Heightmap dimensions must be positive, got {self.width}x{self.height}")
        if self.max_hill_radius <= 0:
            raise ValueError(f"max_hill_radius must be positive, got {self.max_hill_radius}")
        if self.num_hills < 0:
            raise ValueError(f"num_hills cannot be negative, got {self.num_hills}")


@dataclass(frozen=True)
class HillSpec:
    """Placement and shape parameters drawn for one hill."""
    center_x: float
    center_y: float
    base_radius: float
    noise_radius: float


class HeightmapGenerator:
    """
    Generates heightmaps from summed hills and fractal noise.
    """

    def __init__(self, config: HeightmapConfig, seed: Union[str, int, float] = 0):
        """
        Initialize the heightmap generator.

        Args:
            config: Heightmap configuration
            seed: Seed for the hill and noise PRNG
        """
        config.validate()
        self.config = config
        self.seed = seed
        self._prng = AleaPRNG(seed)

    def _draw_hill(self) -> HillSpec:
        """Draw one hill offset from the plane centre by at most max_hill_radius."""
        max_radius = self.config.max_hill_radius
        offset_angle = self._prng.uniform(0.0, 2.0 * math.pi)
        offset_magnitude = self._prng.uniform(0.0, max_radius)
        base_radius = (0.5 + self._prng.uniform(0.0, 0.5)) * max_radius
        noise_radius = 0.1 * base_radius * (0.5 + self._prng.uniform(0.0, 1.0))

        return HillSpec(
            center_x=self.config.width / 2 + offset_magnitude * math.cos(offset_angle),
            center_y=self.config.height / 2 + offset_magnitude * math.sin(offset_angle),
            base_radius=base_radius,
            noise_radius=noise_radius,
        )

    def draw_hills(self) -> List[HillSpec]:
        """Draw the parameters of every hill, in generation order."""
        return [self._draw_hill() for _ in range(self.config.num_hills)]

    def hill_sum(self, hills: List[HillSpec]) -> np.ndarray:
        """Sum the rasterised hills. Summing keeps relative hill prominence."""
        width, height = self.config.width, self.config.height
        total = np.zeros(width * height, dtype=np.float32)
        for hill in hills:
            total += generate_hill(
                width, height, hill.center_x, hill.center_y, hill.base_radius, hill.noise_radius
            )
        return total

    def noise_layer(self) -> np.ndarray:
        """Sample the texture noise with a permutation derived from the PRNG."""
        field = NoiseField(self._prng.spawn_seed())
        return field.sample(
            self.config.width,
            self.config.height,
            NOISE_SCALE,
            NOISE_OCTAVES,
            NOISE_LACUNARITY,
            NOISE_PERSISTENCE,
        )

    def generate(self) -> Tuple[np.ndarray, HighestPoint]:
        """
        Generate the heightmap and its highest point.

        Every call restarts the PRNG from the seed, so a reused generator
        reproduces the same terrain.

        Returns:
            Tuple of (read-only flat float32 heightmap, HighestPoint)
        """
        self._prng = AleaPRNG(self.seed)
        hills = self.draw_hills()
        hill_sum = self.hill_sum(hills)
        noise = self.noise_layer()

        heights = (hill_sum * HILL_WEIGHT + noise * (self.config.roughness * NOISE_WEIGHT)).astype(np.float32)
        highest = find_highest_point(heights, self.config.width)

        if self.config.normalize:
            heights, highest = normalize_heightmap(heights, highest)

        heights.flags.writeable = False

        logger.info(
            "Heightmap generated",
            width=self.config.width,
            height=self.config.height,
            hills=len(hills),
            roughness=self.config.roughness,
            highest_x=highest.x,
            highest_y=highest.y,
            highest=highest.height,
        )
        return heights, highest


def find_highest_point(heights: np.ndarray, width: int) -> HighestPoint:
    """Locate the maximum; the first one in row-major order wins ties."""
    index = int(np.argmax(heights))
    return HighestPoint(x=index % width, y=index // width, height=float(heights[index]))


def normalize_heightmap(heights: np.ndarray, highest: HighestPoint) -> Tuple[np.ndarray, HighestPoint]:
    """
    Scale the heightmap so its maximum becomes exactly 1.

    Normalization is skipped when the maximum is not positive, since dividing
    would flip or blow up every sample.
    """
    if highest.height <= 0:
        logger.warning("Skipping heightmap normalization, highest point is not positive", highest=highest.height)
        return heights, highest

    peak = heights.dtype.type(highest.height)
    return heights / peak, highest._replace(height=1.0)


def generate_heightmap(
    width: int,
    height: int,
    max_hill_radius: float,
    roughness: float,
    num_hills: int = 2,
    seed: Union[str, int, float] = 0,
    normalize: bool = True,
) -> Tuple[np.ndarray, HighestPoint]:
    """
    Compose a heightmap from hills and noise.

    Deterministic for a given seed.

    Args:
        width: Grid width in cells
        height: Grid height in cells
        max_hill_radius: Upper bound of hill radius and of hill offset from centre
        roughness: Weight of the noise layer
        num_hills: Number of hills; 0 gives pure-noise terrain
        seed: PRNG seed
        normalize: Rescale so the highest point is exactly 1

    Returns:
        Tuple of (heightmap, HighestPoint)
    """
    config = HeightmapConfig(
        width=width,
        height=height,
        max_hill_radius=max_hill_radius,
        roughness=roughness,
        num_hills=num_hills,
        normalize=normalize,
    )
    return HeightmapGenerator(config, seed=seed).generate()


def sample_height(heights: np.ndarray, width: int, height: int, x: float, y: float) -> float:
    """Heightmap value at the grid cell nearest to (x, y), clamped to the grid."""
    col = min(max(int(math.floor(x + 0.5)), 0), width - 1)
    row = min(max(int(math.floor(y + 0.5)), 0), height - 1)
    return float(heights[row * width + col])


def validate_heightmap(heights: np.ndarray, width: int, height: int, name: Optional[str] = None) -> None:
    """Raise ValueError when a heightmap does not match its declared grid."""
    if heights.ndim != 1 or heights.shape[0] != width * height:
        label = name or "heightmap"
        raise ValueError(
            f"{label} has shape {heights.shape}, expected ({width * height},) for a {width}x{height} grid"
        )
