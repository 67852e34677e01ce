"""
Batched plant placement.

Walks every grid cell, asks the partition which plant type and rule govern
it, evaluates the rule and collects world positions grouped by plant type.

The walk is a generator that hands control back to its driver every
``batch_size`` cells, yielding a ``BatchProgress`` token. Cancellation is
cooperative: a stale ``CancellationToken`` is noticed at the next batch
boundary, after which the generator stops without producing a result. A run
either returns a complete ``PlacementResult`` or returns None.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, Generator, List, NamedTuple, Optional

import numpy as np
import structlog

from ..utils.alea_prng import AleaPRNG
from ..utils.logging import log_duration
from ..utils.random import resolve_prng
from .heightmap_generator import validate_heightmap
from .placement import PlacementCache
from .plants import PlantType
from .voronoi_partition import VoronoiPartition

logger = structlog.get_logger()

DEFAULT_BATCH_SIZE = 1000


class Position(NamedTuple):
    """World position, Y up."""
    x: float
    y: float
    z: float


class BatchProgress(NamedTuple):
    """Token yielded at every batch boundary."""
    processed: int
    total: int

    @property
    def fraction(self) -> float:
        return self.processed / self.total if self.total else 1.0


class CancellationToken:
    """Flag a newer request raises to make an older run give up."""

    def __init__(self):
        self._stale = False

    def cancel(self) -> None:
        self._stale = True

    @property
    def is_stale(self) -> bool:
        return self._stale


class PlacementSession:
    """
    Hands out one token per request; submitting a new request makes the
    previous one stale.
    """

    def __init__(self):
        self._current: Optional[CancellationToken] = None

    def submit(self) -> CancellationToken:
        if self._current is not None:
            self._current.cancel()
        self._current = CancellationToken()
        return self._current

    def is_current(self, token: CancellationToken) -> bool:
        return token is self._current


@dataclass
class PlacementResult:
    """World positions grouped by plant type, in scan order."""

    groups: Dict[PlantType, List[Position]] = field(default_factory=dict)
    processed_cells: int = 0

    def __len__(self) -> int:
        return len(self.groups)

    def __getitem__(self, plant_type: PlantType) -> List[Position]:
        return self.groups[plant_type]

    def __contains__(self, plant_type: PlantType) -> bool:
        return plant_type in self.groups

    @property
    def total(self) -> int:
        return sum(len(positions) for positions in self.groups.values())

    def counts(self) -> Dict[PlantType, int]:
        return {plant_type: len(positions) for plant_type, positions in self.groups.items()}

    def to_arrays(self) -> Dict[PlantType, np.ndarray]:
        """(N, 3) float32 position arrays per type, ready for instanced rendering."""
        return {
            plant_type: np.asarray(positions, dtype=np.float32).reshape(-1, 3)
            for plant_type, positions in self.groups.items()
        }


PlacementTask = Generator[BatchProgress, None, Optional[PlacementResult]]


def iter_place_objects(
    heightmap: np.ndarray,
    partition: VoronoiPartition,
    grid_width: int,
    grid_height: int,
    spacing: float,
    height_scale: float,
    plant_size: float,
    *,
    rng: Optional[AleaPRNG] = None,
    token: Optional[CancellationToken] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    edge_margin: int = 0,
    cache: Optional[PlacementCache] = None,
) -> PlacementTask:
    """
    Placement as a suspendable task.

    Args:
        heightmap: Flat row-major heightmap of ``grid_width * grid_height``
        partition: Partition built over the same grid
        grid_width: Grid width in cells
        grid_height: Grid height in cells
        spacing: World distance between neighbouring cells
        height_scale: World height of a heightmap value of 1
        plant_size: Plant size in world units
        rng: Random source for stochastic rules
        token: Cancellation flag checked at batch boundaries
        batch_size: Cells processed between yields
        edge_margin: Rows/columns skipped along every edge
        cache: Request-scoped memo of placement decisions

    Yields:
        BatchProgress after every ``batch_size`` cells

    Returns:
        PlacementResult, or None when cancelled
    """
    if grid_width < 1 or grid_height < 1:
        raise ValueError(f"Grid dimensions must be positive, got {grid_width}x{grid_height}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if edge_margin < 0:
        raise ValueError(f"edge_margin cannot be negative, got {edge_margin}")
    validate_heightmap(heightmap, grid_width, grid_height)
    if (partition.width, partition.height) != (grid_width, grid_height):
        raise ValueError(
            f"Partition covers {partition.width}x{partition.height}, "
            f"expected the {grid_width}x{grid_height} placement grid"
        )
    rng = resolve_prng(rng)

    x_range = range(edge_margin, grid_width - edge_margin)
    y_range = range(edge_margin, grid_height - edge_margin)
    total = len(x_range) * len(y_range)
    half_width = grid_width / 2
    half_height = grid_height / 2

    groups: Dict[PlantType, List[Position]] = {}
    processed = 0

    for y in y_range:
        for x in x_range:
            seed = partition.nearest(x, y)
            if seed is not None:
                rule = seed.placement_rule
                if cache is not None:
                    placed = cache.evaluate(rule, x, y, rng)
                else:
                    placed = rule.evaluate(x, y, rng)

                if placed:
                    plant_type = seed.plant_type
                    ground = float(heightmap[y * grid_width + x]) * height_scale
                    position = Position(
                        (x - half_width) * spacing,
                        ground + plant_type.resting_offset(plant_size),
                        (y - half_height) * spacing,
                    )
                    groups.setdefault(plant_type, []).append(position)

            processed += 1
            if processed % batch_size == 0:
                if token is not None and token.is_stale:
                    logger.info("Placement cancelled", processed=processed, total=total)
                    return None
                yield BatchProgress(processed, total)

    if token is not None and token.is_stale:
        logger.info("Placement cancelled", processed=processed, total=total)
        return None

    result = PlacementResult(groups=groups, processed_cells=processed)
    logger.info(
        "Placement finished",
        processed=processed,
        placed=result.total,
        groups={plant_type.value: count for plant_type, count in result.counts().items()},
    )
    return result


def run_to_completion(
    task: PlacementTask,
    on_batch: Optional[Callable[[BatchProgress], None]] = None,
) -> Optional[PlacementResult]:
    """Drive a placement task synchronously, calling ``on_batch`` at every yield."""
    while True:
        try:
            progress = next(task)
        except StopIteration as stop:
            return stop.value
        if on_batch is not None:
            on_batch(progress)


def place_objects(
    heightmap: np.ndarray,
    partition: VoronoiPartition,
    grid_width: int,
    grid_height: int,
    spacing: float,
    height_scale: float,
    plant_size: float,
    *,
    on_batch: Optional[Callable[[BatchProgress], None]] = None,
    **options,
) -> Optional[PlacementResult]:
    """
    Place plants over the whole grid without suspending.

    Accepts the keyword options of ``iter_place_objects``. ``on_batch`` runs
    at every batch boundary and may cancel the run through its token.
    """
    with log_duration("place_objects", grid_width=grid_width, grid_height=grid_height):
        task = iter_place_objects(
            heightmap, partition, grid_width, grid_height, spacing, height_scale, plant_size, **options
        )
        return run_to_completion(task, on_batch)


async def place_objects_async(
    heightmap: np.ndarray,
    partition: VoronoiPartition,
    grid_width: int,
    grid_height: int,
    spacing: float,
    height_scale: float,
    plant_size: float,
    **options,
) -> Optional[PlacementResult]:
    """
    Place plants on the running event loop, giving up one loop tick per batch.

    Accepts the keyword options of ``iter_place_objects``.
    """
    task = iter_place_objects(
        heightmap, partition, grid_width, grid_height, spacing, height_scale, plant_size, **options
    )
    while True:
        try:
            next(task)
        except StopIteration as stop:
            return stop.value
        await asyncio.sleep(0)
