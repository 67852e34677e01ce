"""
Voronoi-like partition of the terrain plane.

Seeds are scattered with a minimum-spacing heuristic and each one is assigned
a plant type and placement rule. Every point of the plane belongs to its
nearest seed. Instead of computing exact cell boundaries, nearest-seed
queries go through a bucketed spatial index.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial.distance import cdist

from ..utils.alea_prng import AleaPRNG
from ..utils.random import resolve_prng
from .heightmap_generator import sample_height, validate_heightmap
from .placement import ClassifyRule, PlacementRule
from .plants import ClassifyType, PlantType

logger = structlog.get_logger()

# Fraction of the theoretical even spacing that seeds try to keep apart
SPACING_FACTOR = 0.8
# Candidate draws per seed before the best one is accepted anyway
MAX_SCATTER_ATTEMPTS = 100
# Smallest bucket edge, in cells
MIN_BUCKET_SIZE = 50.0
# Reach of a seed into neighbouring buckets, in bucket sizes
INFLUENCE_FACTOR = 1.5

BucketKey = Tuple[int, int]


@dataclass(frozen=True)
class Seed:
    """A partition cell centre and the plant data of its region."""

    id: int
    center: Tuple[float, float]
    plant_type: PlantType
    placement_rule: PlacementRule
    attempts: int = 1

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.center[0] - x, self.center[1] - y)


def theoretical_min_spacing(width: int, height: int, num_cells: int) -> float:
    """Spacing of ``num_cells`` seeds laid out evenly over the plane."""
    if num_cells <= 0:
        return float("inf")
    return min(width, height) / math.sqrt(num_cells)


def scatter_centers(
    width: int,
    height: int,
    num_cells: int,
    min_distance: float,
    rng: AleaPRNG,
    max_attempts: int = MAX_SCATTER_ATTEMPTS,
) -> List[Tuple[Tuple[float, float], int]]:
    """
    Rejection-sample seed centres.

    A candidate is accepted once it lies at least ``min_distance`` from every
    accepted centre. After ``max_attempts`` draws the candidate with the
    largest clearance is taken, so dense layouts may cluster.

    Returns:
        List of (center, attempts) pairs
    """
    accepted = np.empty((0, 2), dtype=np.float64)
    centers: List[Tuple[Tuple[float, float], int]] = []

    for _ in range(num_cells):
        best: Optional[Tuple[float, float]] = None
        best_clearance = -1.0
        attempts = 0

        while attempts < max_attempts:
            candidate = (rng.random() * width, rng.random() * height)
            attempts += 1

            if len(accepted) == 0:
                best = candidate
                break

            clearance = float(cdist(np.array([candidate]), accepted).min())
            if clearance >= min_distance:
                best = candidate
                break
            if clearance > best_clearance:
                best, best_clearance = candidate, clearance

        accepted = np.vstack([accepted, best])
        centers.append((best, attempts))

    return centers


class VoronoiPartition:
    """
    Seeds plus a bucketed index answering nearest-seed queries.

    Each seed is registered in every bucket within ``INFLUENCE_FACTOR``
    bucket sizes of its centre. Any seed within that radius of a query point
    is therefore in the point's own bucket, which bounds when the 3x3 window
    answer is exact.
    """

    def __init__(self, width: int, height: int, seeds: Sequence[Seed], bucket_size: float):
        self.width = width
        self.height = height
        self.seeds: Tuple[Seed, ...] = tuple(sorted(seeds, key=lambda seed: seed.id))
        self.bucket_size = bucket_size
        self.influence_radius = bucket_size * INFLUENCE_FACTOR

        self.buckets: Dict[BucketKey, Tuple[Seed, ...]] = self._build_buckets()
        self._windows: Dict[BucketKey, Tuple[Seed, ...]] = {
            key: self._collect_window(key)
            for key in self._bucket_keys_in_plane()
        }

    def __len__(self) -> int:
        return len(self.seeds)

    def _max_bucket(self) -> BucketKey:
        return (
            int(math.floor(self.width / self.bucket_size)),
            int(math.floor(self.height / self.bucket_size)),
        )

    def _bucket_keys_in_plane(self):
        max_gx, max_gy = self._max_bucket()
        for gx in range(max_gx + 1):
            for gy in range(max_gy + 1):
                yield (gx, gy)

    def _build_buckets(self) -> Dict[BucketKey, Tuple[Seed, ...]]:
        max_gx, max_gy = self._max_bucket()
        size = self.bucket_size
        reach = self.influence_radius
        grid: Dict[BucketKey, List[Seed]] = {}

        for seed in self.seeds:
            cx, cy = seed.center
            min_x = max(0, int(math.floor((cx - reach) / size)))
            max_x = min(max_gx, int(math.floor((cx + reach) / size)))
            min_y = max(0, int(math.floor((cy - reach) / size)))
            max_y = min(max_gy, int(math.floor((cy + reach) / size)))

            for gx in range(min_x, max_x + 1):
                for gy in range(min_y, max_y + 1):
                    grid.setdefault((gx, gy), []).append(seed)

        return {key: tuple(members) for key, members in grid.items()}

    def _collect_window(self, key: BucketKey) -> Tuple[Seed, ...]:
        """Seeds of the 3x3 bucket block around ``key``, unique and ordered by id."""
        gx, gy = key
        unique: Dict[int, Seed] = {}
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for seed in self.buckets.get((gx + dx, gy + dy), ()):
                    unique[seed.id] = seed
        return tuple(unique[seed_id] for seed_id in sorted(unique))

    def bucket_key(self, x: float, y: float) -> BucketKey:
        return (int(math.floor(x / self.bucket_size)), int(math.floor(y / self.bucket_size)))

    @staticmethod
    def _closest(candidates: Sequence[Seed], x: float, y: float) -> Tuple[Optional[Seed], float]:
        best = None
        best_distance = math.inf
        for seed in candidates:
            distance = seed.distance_to(x, y)
            if distance < best_distance:
                best, best_distance = seed, distance
        return best, best_distance

    def nearest(self, x: float, y: float) -> Optional[Seed]:
        """
        Find the seed whose region contains (x, y).

        Args:
            x: Query x in cells
            y: Query y in cells

        Returns:
            Nearest seed (lowest id on ties), or None if there are no seeds
        """
        if not self.seeds:
            return None

        key = self.bucket_key(x, y)
        window = self._windows.get(key)
        if window is None:
            window = self._collect_window(key)

        best, best_distance = self._closest(window, x, y)
        if best is None or best_distance > self.influence_radius:
            best, _ = self._closest(self.seeds, x, y)
        return best

    def nearest_brute_force(self, x: float, y: float) -> Optional[Seed]:
        """Nearest seed by scanning every seed."""
        best, _ = self._closest(self.seeds, x, y)
        return best

    def lookup(self, x: float, y: float) -> Optional[Tuple[PlantType, PlacementRule]]:
        """Plant type and placement rule governing (x, y)."""
        seed = self.nearest(x, y)
        if seed is None:
            return None
        return seed.plant_type, seed.placement_rule

    def type_counts(self) -> Dict[PlantType, int]:
        counts: Dict[PlantType, int] = {}
        for seed in self.seeds:
            counts[seed.plant_type] = counts.get(seed.plant_type, 0) + 1
        return counts


def build_partition(
    width: int,
    height: int,
    num_cells: int,
    classify_type: ClassifyType,
    classify_rule: ClassifyRule,
    heightmap: np.ndarray,
    rng: Optional[AleaPRNG] = None,
) -> VoronoiPartition:
    """
    Scatter and classify seeds, then index them.

    Args:
        width: Plane width in cells, same as the heightmap width
        height: Plane height in cells, same as the heightmap height
        num_cells: Number of seeds; 0 or less yields an empty partition
        classify_type: ``(x, height, z) -> PlantType`` with x, z normalized
        classify_rule: ``(plant_type, x, height, z) -> PlacementRule``
        heightmap: Flat row-major heightmap of the plane
        rng: Random source for scattering; a fresh unseeded one when None

    Returns:
        VoronoiPartition
    """
    if width < 1 or height < 1:
        raise ValueError(f"Partition dimensions must be positive, got {width}x{height}")
    validate_heightmap(heightmap, width, height)
    rng = resolve_prng(rng)

    spacing = theoretical_min_spacing(width, height, num_cells)
    min_distance = SPACING_FACTOR * spacing

    seeds: List[Seed] = []
    if num_cells > 0:
        for seed_id, (center, attempts) in enumerate(
            scatter_centers(width, height, num_cells, min_distance, rng)
        ):
            cx, cy = center
            norm_x = cx / width
            norm_z = cy / height
            ground = sample_height(heightmap, width, height, cx, cy)

            plant_type = classify_type(norm_x, ground, norm_z)
            rule = classify_rule(plant_type, norm_x, ground, norm_z)
            seeds.append(Seed(seed_id, center, plant_type, rule, attempts))

        bucket_size = max(2.0 * min_distance, MIN_BUCKET_SIZE)
    else:
        bucket_size = MIN_BUCKET_SIZE

    partition = VoronoiPartition(width, height, seeds, bucket_size)
    logger.info(
        "Voronoi partition built",
        seeds=len(seeds),
        bucket_size=round(bucket_size, 2),
        buckets=len(partition.buckets),
        crowded_seeds=sum(1 for seed in seeds if seed.attempts >= MAX_SCATTER_ATTEMPTS),
    )
    return partition
