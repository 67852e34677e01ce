"""Tests for the Voronoi-like plane partition."""

import dataclasses
import math

import numpy as np
import pytest

from py_terrain.core.placement import CHECKERBOARD, FULL, ROWS, fixed_placement_rule
from py_terrain.core.plants import PlantType, fixed_plant_type
from py_terrain.core.voronoi_partition import (
    MAX_SCATTER_ATTEMPTS,
    MIN_BUCKET_SIZE,
    SPACING_FACTOR,
    Seed,
    VoronoiPartition,
    build_partition,
    scatter_centers,
    theoretical_min_spacing,
)
from py_terrain.utils.alea_prng import AleaPRNG


def flat_heightmap(width, height, value=0.0):
    return np.full(width * height, value, dtype=np.float32)


def make_partition(width, height, num_cells, seed="partition", heightmap=None):
    if heightmap is None:
        heightmap = flat_heightmap(width, height)
    return build_partition(
        width,
        height,
        num_cells,
        fixed_plant_type(PlantType.BUSH),
        fixed_placement_rule(FULL),
        heightmap,
        rng=AleaPRNG(seed),
    )


def brute_force_distance(partition, x, y):
    return min(seed.distance_to(x, y) for seed in partition.seeds)


class TestScatter:
    """Test seed scattering."""

    def test_seed_count_and_bounds(self):
        partition = make_partition(120, 80, 30)

        assert len(partition) == 30
        for seed in partition.seeds:
            cx, cy = seed.center
            assert 0 <= cx < 120
            assert 0 <= cy < 80

    def test_ids_are_sequential(self):
        partition = make_partition(64, 64, 10)
        assert [seed.id for seed in partition.seeds] == list(range(10))

    def test_min_spacing_or_attempt_cap(self):
        """Test each seed keeps its distance to earlier seeds unless it ran out of attempts."""
        width, height, num_cells = 200, 200, 40
        partition = make_partition(width, height, num_cells, seed="spacing")
        min_distance = SPACING_FACTOR * theoretical_min_spacing(width, height, num_cells)

        for i, seed in enumerate(partition.seeds):
            for earlier in partition.seeds[:i]:
                distance = math.dist(seed.center, earlier.center)
                assert distance >= min_distance or seed.attempts == MAX_SCATTER_ATTEMPTS

    def test_crowded_layout_still_places_every_seed(self):
        """Test that an over-dense request accepts best-effort candidates."""
        centers = scatter_centers(10, 10, 50, min_distance=5.0, rng=AleaPRNG("crowded"))

        assert len(centers) == 50
        assert any(attempts == MAX_SCATTER_ATTEMPTS for _, attempts in centers)

    def test_deterministic_with_seeded_prng(self):
        partition1 = make_partition(100, 100, 12, seed="same")
        partition2 = make_partition(100, 100, 12, seed="same")

        assert [s.center for s in partition1.seeds] == [s.center for s in partition2.seeds]

    def test_theoretical_spacing(self):
        assert theoretical_min_spacing(100, 200, 25) == pytest.approx(20.0)
        assert theoretical_min_spacing(100, 100, 0) == math.inf


class TestClassification:
    """Test plant type and rule assignment."""

    def test_callbacks_receive_normalized_inputs(self):
        """Test classifiers get normalized coordinates and the height under the seed."""
        width, height = 40, 20
        heightmap = flat_heightmap(width, height, 0.25)
        type_calls = []
        rule_calls = []

        def classify_type(x, h, z):
            type_calls.append((x, h, z))
            return PlantType.CYPRESS if x > 0.5 else PlantType.BALE

        def classify_rule(plant_type, x, h, z):
            rule_calls.append((plant_type, x, h, z))
            return ROWS if plant_type is PlantType.CYPRESS else CHECKERBOARD

        partition = build_partition(
            width, height, 6, classify_type, classify_rule, heightmap, rng=AleaPRNG("classify")
        )

        assert len(type_calls) == 6
        for seed, (x, h, z), (plant_type, *_rest) in zip(partition.seeds, type_calls, rule_calls):
            assert x == pytest.approx(seed.center[0] / width)
            assert z == pytest.approx(seed.center[1] / height)
            assert 0.0 <= x < 1.0 and 0.0 <= z < 1.0
            assert h == pytest.approx(0.25)
            assert plant_type is seed.plant_type
            expected_rule = ROWS if seed.plant_type is PlantType.CYPRESS else CHECKERBOARD
            assert seed.placement_rule == expected_rule

    def test_height_sampled_at_nearest_cell(self):
        width, height = 16, 16
        heightmap = np.arange(width * height, dtype=np.float32)
        seen = []

        def classify_type(x, h, z):
            seen.append(h)
            return PlantType.BUSH

        partition = build_partition(
            width, height, 5, classify_type, fixed_placement_rule(FULL), heightmap, rng=AleaPRNG("h")
        )

        for seed, h in zip(partition.seeds, seen):
            col = min(int(math.floor(seed.center[0] + 0.5)), width - 1)
            row = min(int(math.floor(seed.center[1] + 0.5)), height - 1)
            assert h == heightmap[row * width + col]

    def test_seeds_are_immutable(self):
        partition = make_partition(32, 32, 3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            partition.seeds[0].plant_type = PlantType.BALE

    def test_type_counts(self):
        partition = make_partition(64, 64, 9)
        assert partition.type_counts() == {PlantType.BUSH: 9}


class TestSpatialIndex:
    """Test bucketed nearest-seed queries."""

    def test_bucket_size_floor(self):
        partition = make_partition(32, 32, 8)
        assert partition.bucket_size == MIN_BUCKET_SIZE

    def test_bucket_size_from_spacing(self):
        partition = make_partition(400, 400, 16)
        # spacing 100, min distance 80
        assert partition.bucket_size == pytest.approx(160.0)

    def test_nearest_matches_brute_force_small(self):
        """Test every cell of a small plane maps to its truly nearest seed."""
        partition = make_partition(32, 32, 8, seed="small")

        for y in range(32):
            for x in range(32):
                seed = partition.nearest(x, y)
                assert seed is not None
                assert seed.distance_to(x, y) <= brute_force_distance(partition, x, y) + 1e-12

    def test_nearest_matches_brute_force_bucketed(self):
        """Test a plane spanning many buckets, including fractional query points."""
        partition = make_partition(400, 300, 64, seed="large")
        assert len(partition.buckets) > 1

        for y in np.arange(0.0, 300.0, 6.5):
            for x in np.arange(0.0, 400.0, 7.25):
                seed = partition.nearest(x, y)
                assert seed.distance_to(x, y) <= brute_force_distance(partition, x, y) + 1e-12

    def test_seeds_registered_in_own_bucket(self):
        partition = make_partition(400, 400, 25)
        for seed in partition.seeds:
            key = partition.bucket_key(*seed.center)
            assert seed in partition.buckets[key]

    def test_sparse_partition_falls_back_to_full_scan(self):
        """Test a query far from any registered bucket still finds the seed."""
        seed = Seed(0, (5.0, 5.0), PlantType.BUSH, FULL)
        partition = VoronoiPartition(1000, 1000, [seed], bucket_size=50.0)

        assert (19, 19) not in partition.buckets
        assert partition.nearest(990.0, 990.0) is seed

    def test_far_window_candidate_triggers_full_scan(self):
        """Test a window hit beyond the coverage radius is checked against all seeds."""
        in_window = Seed(0, (270.0, 270.0), PlantType.BALE, FULL)
        outside_window = Seed(1, (125.0, 300.0), PlantType.BUSH, FULL)
        partition = VoronoiPartition(1000, 1000, [in_window, outside_window], bucket_size=50.0)

        key = partition.bucket_key(125.0, 125.0)
        window_ids = {
            seed.id
            for dx in (-1, 0, 1)
            for dy in (-1, 0, 1)
            for seed in partition.buckets.get((key[0] + dx, key[1] + dy), ())
        }
        assert window_ids == {0}
        assert partition.nearest(125.0, 125.0) is outside_window

    def test_query_outside_plane(self):
        partition = make_partition(64, 64, 4)
        seed = partition.nearest(-500.0, 700.0)

        assert seed is partition.nearest_brute_force(-500.0, 700.0)

    def test_tie_breaks_to_lowest_id(self):
        first = Seed(0, (10.0, 10.0), PlantType.BUSH, FULL)
        second = Seed(1, (30.0, 10.0), PlantType.BALE, FULL)
        partition = VoronoiPartition(40, 20, [second, first], bucket_size=50.0)

        assert partition.nearest(20.0, 10.0) is first

    def test_lookup(self):
        partition = make_partition(32, 32, 3)
        assert partition.lookup(5, 5) == (PlantType.BUSH, FULL)


class TestEmptyPartition:
    """Test partitions without seeds."""

    def test_zero_cells(self):
        partition = make_partition(64, 64, 0)

        assert len(partition) == 0
        assert partition.nearest(10, 10) is None
        assert partition.lookup(10, 10) is None
        assert partition.bucket_size == MIN_BUCKET_SIZE

    def test_negative_cells(self):
        assert len(make_partition(64, 64, -3)) == 0


class TestValidation:
    """Test argument validation."""

    def test_heightmap_size_mismatch(self):
        with pytest.raises(ValueError):
            make_partition(32, 32, 4, heightmap=np.zeros(10, dtype=np.float32))

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            make_partition(0, 32, 4, heightmap=np.zeros(0, dtype=np.float32))
