"""
End-to-end scene generation.

Runs heightmap composition, partitioning and plant placement for one
validated request. One request seed drives every stage: the heightmap gets
the seed itself and the plant stages share a PRNG derived from it.
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional, Union

import numpy as np
import structlog
from pydantic import BaseModel, Field

from ..config import settings
from ..utils.alea_prng import AleaPRNG
from ..utils.logging import log_duration
from .heightmap_generator import HighestPoint, generate_heightmap
from .placement import (
    ClassifyRule,
    PlacementCache,
    PlacementKind,
    PlacementRule,
    fixed_placement_rule,
    random_placement_rule,
)
from .placement_pipeline import (
    BatchProgress,
    CancellationToken,
    PlacementResult,
    iter_place_objects,
    place_objects_async,
    run_to_completion,
)
from .plants import ClassifyType, height_banded_plant_type, weighted_plant_type
from .voronoi_partition import VoronoiPartition, build_partition

logger = structlog.get_logger()


class SceneRequest(BaseModel):
    """Parameters of one scene generation request."""

    width: int = Field(settings.default_grid_size, ge=2, le=4096, description="Grid width in cells")
    height: int = Field(settings.default_grid_size, ge=2, le=4096, description="Grid height in cells")
    seed: Union[int, str] = Field(0, description="Seed for terrain and plants")

    max_hill_radius: float = Field(settings.default_max_hill_radius, gt=0, description="Maximum hill radius in cells")
    roughness: float = Field(settings.default_roughness, ge=0, le=1, description="Noise layer weight")
    num_hills: int = Field(settings.default_num_hills, ge=0, le=64, description="Number of hills")

    num_cells: int = Field(settings.default_num_cells, ge=0, le=10000, description="Number of partition cells")
    plant_classifier: Literal["weighted", "height_banded"] = Field(
        "weighted", description="How partition cells pick their plant type"
    )
    placement_kind: Optional[PlacementKind] = Field(
        None, description="Placement rule for every cell; random per cell when unset"
    )
    placement_density: float = Field(0.5, ge=0, le=1, description="Acceptance probability of random rules")

    cell_spacing: float = Field(settings.default_cell_spacing, gt=0, description="World distance between cells")
    height_scale: float = Field(settings.default_height_scale, ge=0, description="World height of a value of 1")
    plant_size: float = Field(settings.default_plant_size, gt=0, description="Plant size in world units")
    batch_size: int = Field(settings.placement_batch_size, ge=1, description="Cells processed between yields")
    edge_margin: int = Field(0, ge=0, description="Rows/columns skipped along each edge")


@dataclass
class Scene:
    """Everything the renderer needs for one generated scene."""

    request: SceneRequest
    heightmap: np.ndarray
    highest_point: HighestPoint
    partition: VoronoiPartition
    placements: PlacementResult


class SceneGenerator:
    """
    Generates scenes for a request, one stage after the other.

    Each run starts its random streams afresh from the request seed, so
    running the same generator twice gives the same scene. Placement
    decisions are not memoized unless a ``PlacementCache`` is passed in.
    """

    def __init__(self, request: SceneRequest, cache: Optional[PlacementCache] = None):
        self.request = request
        self.cache = cache
        self.plant_prng = self._new_plant_prng()

    def _new_plant_prng(self) -> AleaPRNG:
        return AleaPRNG([self.request.seed, "plants"])

    def _classify_type(self) -> ClassifyType:
        if self.request.plant_classifier == "height_banded":
            return height_banded_plant_type()
        return weighted_plant_type(self.plant_prng)

    def _classify_rule(self) -> ClassifyRule:
        kind = self.request.placement_kind
        if kind is None:
            return random_placement_rule(self.plant_prng)
        density = self.request.placement_density if kind is PlacementKind.RANDOM else 0.0
        return fixed_placement_rule(PlacementRule(kind, density))

    def _prepare(self):
        request = self.request
        self.plant_prng = self._new_plant_prng()
        logger.info("Generating scene", width=request.width, height=request.height, seed=request.seed)

        with log_duration("generate_heightmap"):
            heightmap, highest = generate_heightmap(
                request.width,
                request.height,
                request.max_hill_radius,
                request.roughness,
                request.num_hills,
                request.seed,
            )

        with log_duration("build_partition", cells=request.num_cells):
            partition = build_partition(
                request.width,
                request.height,
                request.num_cells,
                self._classify_type(),
                self._classify_rule(),
                heightmap,
                rng=self.plant_prng,
            )
        return heightmap, highest, partition

    def _placement_args(self, heightmap, partition, token):
        request = self.request
        args = (
            heightmap,
            partition,
            request.width,
            request.height,
            request.cell_spacing,
            request.height_scale,
            request.plant_size,
        )
        options = dict(
            rng=self.plant_prng,
            token=token,
            batch_size=request.batch_size,
            edge_margin=request.edge_margin,
            cache=self.cache,
        )
        return args, options

    def _assemble(self, heightmap, highest, partition, placements) -> Optional[Scene]:
        if placements is None:
            logger.info("Scene generation cancelled", seed=self.request.seed)
            return None
        return Scene(self.request, heightmap, highest, partition, placements)

    def generate(
        self,
        token: Optional[CancellationToken] = None,
        on_batch: Optional[Callable[[BatchProgress], None]] = None,
    ) -> Optional[Scene]:
        """
        Generate the scene synchronously.

        Args:
            token: Cancellation flag for the placement stage
            on_batch: Called at every placement batch boundary

        Returns:
            Scene, or None when ``token`` went stale during placement
        """
        heightmap, highest, partition = self._prepare()
        args, options = self._placement_args(heightmap, partition, token)
        with log_duration("place_objects"):
            placements = run_to_completion(iter_place_objects(*args, **options), on_batch)
        return self._assemble(heightmap, highest, partition, placements)

    async def generate_async(self, token: Optional[CancellationToken] = None) -> Optional[Scene]:
        """Generate the scene, yielding to the event loop between placement batches."""
        heightmap, highest, partition = self._prepare()
        args, options = self._placement_args(heightmap, partition, token)
        placements = await place_objects_async(*args, **options)
        return self._assemble(heightmap, highest, partition, placements)


def generate_scene(request: Optional[SceneRequest] = None, **overrides) -> Optional[Scene]:
    """Generate a scene from a request, or from defaults plus keyword overrides."""
    if request is None:
        request = SceneRequest(**overrides)
    return SceneGenerator(request).generate()
