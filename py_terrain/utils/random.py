"""
Random number generation utilities.

Every stochastic component takes an explicit AleaPRNG. These helpers turn the
values callers usually have at hand (a seed, an existing generator, or
nothing) into one.
"""

import secrets
from typing import Optional, Union

from .alea_prng import AleaPRNG

SeedLike = Union[str, int, float]


def make_prng(seed: Optional[SeedLike] = None) -> AleaPRNG:
    """
    Build an Alea PRNG.

    Args:
        seed: Seed string or number. When None, a seed is drawn from OS
            entropy and the resulting stream is not reproducible.

    Returns:
        AleaPRNG instance
    """
    if seed is None:
        seed = secrets.randbits(32)
    return AleaPRNG(seed)


def resolve_prng(rng: Optional[AleaPRNG] = None, seed: Optional[SeedLike] = None) -> AleaPRNG:
    """Return ``rng`` when given, otherwise a generator built from ``seed``."""
    if rng is not None:
        return rng
    return make_prng(seed)
