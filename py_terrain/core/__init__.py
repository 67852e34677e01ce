"""
Core terrain and plant generation functionality.
"""

from .noise_field import NoiseField, generate_fbm
from .hill_shape import generate_hill, smootherstep
from .heightmap_generator import HeightmapConfig, HeightmapGenerator, HighestPoint, generate_heightmap
from .plants import PlantType
from .placement import PlacementCache, PlacementKind, PlacementRule, random_density
from .voronoi_partition import Seed, VoronoiPartition, build_partition
from .placement_pipeline import (
    BatchProgress,
    CancellationToken,
    PlacementResult,
    PlacementSession,
    Position,
    iter_place_objects,
    place_objects,
    place_objects_async,
)
from .scene import Scene, SceneGenerator, SceneRequest, generate_scene

__all__ = ['NoiseField', 'generate_fbm', 'generate_hill', 'smootherstep',
           'HeightmapConfig', 'HeightmapGenerator', 'HighestPoint', 'generate_heightmap',
           'PlantType', 'PlacementCache', 'PlacementKind', 'PlacementRule', 'random_density',
           'Seed', 'VoronoiPartition', 'build_partition',
           'BatchProgress', 'CancellationToken', 'PlacementResult', 'PlacementSession', 'Position',
           'iter_place_objects', 'place_objects', 'place_objects_async',
           'Scene', 'SceneGenerator', 'SceneRequest', 'generate_scene']
