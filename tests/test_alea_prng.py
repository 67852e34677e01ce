"""Tests for the Alea PRNG and random helpers."""

import pytest

from py_terrain.utils.alea_prng import AleaPRNG
from py_terrain.utils.random import make_prng, resolve_prng


class TestAleaPRNG:
    """Test the seedable generator."""

    def test_same_seed_same_sequence(self):
        """Test that equal seeds replay the same stream."""
        prng1 = AleaPRNG(seed=123)
        prng2 = AleaPRNG(seed=123)

        assert [prng1.random() for _ in range(50)] == [prng2.random() for _ in range(50)]

    def test_different_seeds(self):
        """Test that different seeds diverge."""
        prng1 = AleaPRNG("seed1")
        prng2 = AleaPRNG("seed2")

        assert [prng1.random() for _ in range(10)] != [prng2.random() for _ in range(10)]

    def test_range(self):
        """Test that values stay in [0, 1)."""
        prng = AleaPRNG("range")
        values = [prng.random() for _ in range(5000)]

        assert min(values) >= 0.0
        assert max(values) < 1.0

    def test_iterable_seed(self):
        """Test composite seeds are deterministic and distinct from their parts."""
        a = AleaPRNG([42, "plants"])
        b = AleaPRNG([42, "plants"])
        c = AleaPRNG(42)

        first = a.random()
        assert first == b.random()
        assert first != c.random()

    def test_call_count(self):
        prng = AleaPRNG("count")
        for _ in range(7):
            prng.random()
        assert prng.call_count == 7

    def test_uniform_and_randint_bounds(self):
        """Test derived draws respect their bounds."""
        prng = AleaPRNG("bounds")
        for _ in range(1000):
            value = prng.uniform(-2.0, 3.0)
            assert -2.0 <= value < 3.0
            number = prng.randint(1, 6)
            assert 1 <= number <= 6

    def test_chance_extremes(self):
        prng = AleaPRNG("chance")
        assert all(prng.chance(1.0) for _ in range(100))
        assert not any(prng.chance(0.0) for _ in range(100))

    def test_choice(self):
        prng = AleaPRNG("choice")
        options = ["a", "b", "c"]
        picks = {prng.choice(options) for _ in range(200)}
        assert picks == set(options)

    def test_choice_empty(self):
        with pytest.raises(IndexError):
            AleaPRNG("empty").choice([])

    def test_spawn_seed(self):
        prng = AleaPRNG("spawn")
        seed = prng.spawn_seed()
        assert isinstance(seed, int)
        assert 0 <= seed < 0x7FFFFFFF


class TestRandomHelpers:
    """Test PRNG construction helpers."""

    def test_make_prng_seeded(self):
        assert make_prng("x").random() == AleaPRNG("x").random()

    def test_make_prng_unseeded(self):
        """Test that an unseeded generator still works."""
        value = make_prng().random()
        assert 0.0 <= value < 1.0

    def test_resolve_prefers_given_generator(self):
        prng = AleaPRNG("given")
        assert resolve_prng(prng, seed="ignored") is prng

    def test_resolve_from_seed(self):
        assert resolve_prng(seed=5).random() == AleaPRNG(5).random()
