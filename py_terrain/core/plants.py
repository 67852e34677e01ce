"""
Plant catalogue and plant type classifiers.

A classifier maps a partition seed's normalized position and terrain height
to a plant type. Classifiers receive ``(x, height, z)`` where ``x`` and ``z``
are the seed centre divided by the plane size and ``height`` is the heightmap
value under the seed.
"""

from enum import Enum
from typing import Callable, Sequence, Tuple

from ..utils.alea_prng import AleaPRNG

ClassifyType = Callable[[float, float, float], "PlantType"]


class PlantType(str, Enum):
    """Kinds of plant objects scattered over the terrain."""

    BUSH = "bush"
    BALE = "bale"
    CYPRESS = "cypress"

    def resting_offset(self, size: float) -> float:
        """Vertical offset that puts the object's base on the ground.

        Bales lie on their side, so their centre sits a full size above the
        ground. Bushes and cypresses are anchored half a size up.
        """
        if self is PlantType.BALE:
            return size
        return size / 2


# Weights of the default mix: mostly bushes, a few bales and cypresses
DEFAULT_PLANT_WEIGHTS: Tuple[Tuple[PlantType, float], ...] = (
    (PlantType.BUSH, 0.8),
    (PlantType.BALE, 0.1),
    (PlantType.CYPRESS, 0.1),
)


def weighted_plant_type(
    rng: AleaPRNG,
    weights: Sequence[Tuple[PlantType, float]] = DEFAULT_PLANT_WEIGHTS,
) -> ClassifyType:
    """
    Build a classifier that ignores terrain and picks types by weight.

    Args:
        rng: Random source consumed once per classified seed
        weights: (type, weight) pairs; weights need not sum to 1

    Returns:
        Classifier callable
    """
    total = sum(weight for _, weight in weights)
    if total <= 0:
        raise ValueError("Plant weights must sum to a positive value")

    def classify(x: float, height: float, z: float) -> PlantType:
        roll = rng.random() * total
        for plant_type, weight in weights:
            if roll < weight:
                return plant_type
            roll -= weight
        return weights[-1][0]

    return classify


def height_banded_plant_type(low: float = 0.3, high: float = 0.7) -> ClassifyType:
    """Bales in the lowlands, cypresses on the heights, bushes in between."""
    if not 0.0 <= low <= high:
        raise ValueError(f"Height bands must satisfy 0 <= low <= high, got {low}, {high}")

    def classify(x: float, height: float, z: float) -> PlantType:
        if height < low:
            return PlantType.BALE
        if height >= high:
            return PlantType.CYPRESS
        return PlantType.BUSH

    return classify


def fixed_plant_type(plant_type: PlantType) -> ClassifyType:
    """Classifier that always returns ``plant_type``."""
    def classify(x: float, height: float, z: float) -> PlantType:
        return plant_type

    return classify
