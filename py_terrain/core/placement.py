"""
Placement rules.

A placement rule decides, per integer grid cell, whether a plant is emitted.
Rules form a closed set of kinds; only the random kind carries a parameter.
Stochastic rules draw from the random source handed to ``evaluate`` rather
than from any ambient generator, so a seeded run is reproducible.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import structlog

from ..utils.alea_prng import AleaPRNG

logger = structlog.get_logger()


class PlacementKind(str, Enum):
    """Placement rule kinds."""

    EMPTY = "empty"
    FULL = "full"
    ROWS = "rows"
    COLUMNS = "columns"
    CHECKERBOARD = "checkerboard"
    DIAGONAL = "diagonal"
    BACK_DIAGONAL = "back_diagonal"
    GRID = "grid"
    RANDOM = "random"


@dataclass(frozen=True)
class PlacementRule:
    """A placement predicate over grid coordinates.

    ``density`` is the acceptance probability of RANDOM rules and is
    ignored by every other kind.
    """

    kind: PlacementKind
    density: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.density <= 1.0:
            raise ValueError(f"Placement density must be within [0, 1], got {self.density}")

    @property
    def is_stochastic(self) -> bool:
        return self.kind is PlacementKind.RANDOM

    @property
    def name(self) -> str:
        if self.is_stochastic:
            return f"{self.kind.value}({self.density:g})"
        return self.kind.value

    def evaluate(self, x: int, y: int, rng: Optional[AleaPRNG] = None) -> bool:
        """
        Decide whether a plant is emitted at cell (x, y).

        Args:
            x: Grid column
            y: Grid row
            rng: Random source, required for RANDOM rules

        Returns:
            True if the cell gets a plant
        """
        kind = self.kind
        if kind is PlacementKind.EMPTY:
            return False
        if kind is PlacementKind.FULL:
            return True
        if kind is PlacementKind.ROWS:
            return y % 2 == 0
        if kind is PlacementKind.COLUMNS:
            return x % 2 == 0
        if kind is PlacementKind.CHECKERBOARD:
            return (x + y) % 2 == 0
        if kind is PlacementKind.DIAGONAL:
            return (x - y) % 4 == 0
        if kind is PlacementKind.BACK_DIAGONAL:
            return (x + y) % 4 == 0
        if kind is PlacementKind.GRID:
            return x % 2 == 0 and y % 2 == 0

        # RANDOM
        if rng is None:
            raise ValueError(f"Rule {self.name} needs a random source")
        return rng.chance(self.density)


def random_density(density: float) -> PlacementRule:
    """Stochastic thinning rule accepting each cell with probability ``density``."""
    return PlacementRule(PlacementKind.RANDOM, density)


EMPTY = PlacementRule(PlacementKind.EMPTY)
FULL = PlacementRule(PlacementKind.FULL)
ROWS = PlacementRule(PlacementKind.ROWS)
COLUMNS = PlacementRule(PlacementKind.COLUMNS)
CHECKERBOARD = PlacementRule(PlacementKind.CHECKERBOARD)
DIAGONAL = PlacementRule(PlacementKind.DIAGONAL)
BACK_DIAGONAL = PlacementRule(PlacementKind.BACK_DIAGONAL)
GRID = PlacementRule(PlacementKind.GRID)
RANDOM_SPARSE = random_density(0.2)
RANDOM_HALF = random_density(0.5)
RANDOM_DENSE = random_density(0.8)

# Every predefined rule, in a stable order
PLACEMENT_RULES: Tuple[PlacementRule, ...] = (
    EMPTY,
    FULL,
    ROWS,
    COLUMNS,
    DIAGONAL,
    BACK_DIAGONAL,
    GRID,
    CHECKERBOARD,
    RANDOM_HALF,
    RANDOM_SPARSE,
    RANDOM_DENSE,
)

# (plant_type, x, height, z) -> rule
ClassifyRule = Callable[[object, float, float, float], PlacementRule]


def random_placement_rule(rng: AleaPRNG) -> ClassifyRule:
    """Rule classifier picking uniformly among the predefined rules."""
    def classify(plant_type, x: float, height: float, z: float) -> PlacementRule:
        return rng.choice(PLACEMENT_RULES)

    return classify


def fixed_placement_rule(rule: PlacementRule) -> ClassifyRule:
    """Rule classifier that always returns ``rule``."""
    def classify(plant_type, x: float, height: float, z: float) -> PlacementRule:
        return rule

    return classify


class PlacementCache:
    """
    Memo of placement decisions for a single generation request.

    Pins stochastic decisions so a cell evaluated twice within one request
    gets the same answer. Only useful to callers that evaluate cells more
    than once; a plain placement pass visits each cell once and needs none.
    """

    def __init__(self):
        self._decisions: Dict[Tuple[int, int, PlacementRule], bool] = {}
        self.hits = 0
        self.misses = 0

    def evaluate(self, rule: PlacementRule, x: int, y: int, rng: Optional[AleaPRNG] = None) -> bool:
        key = (x, y, rule)
        decision = self._decisions.get(key)
        if decision is None:
            self.misses += 1
            decision = rule.evaluate(x, y, rng)
            self._decisions[key] = decision
        else:
            self.hits += 1
        return decision

    def __len__(self) -> int:
        return len(self._decisions)

    def clear(self) -> None:
        logger.debug("Clearing placement cache", entries=len(self._decisions))
        self._decisions.clear()
        self.hits = 0
        self.misses = 0
