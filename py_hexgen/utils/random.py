"""
Random number generation utilities.

Generation code never touches Python's ``random`` or NumPy's global random
state; every phase receives an explicit AleaPRNG stream built here.
"""

import secrets
from typing import Optional

from ..core.alea_prng import AleaPRNG

_SEED_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SEED_LENGTH = 11


def create_prng(seed: str) -> AleaPRNG:
    """
    Create a fresh Alea stream for one generation run.

    Args:
        seed: Seed string

    Returns:
        AleaPRNG instance
    """
    return AleaPRNG(seed)


def generate_random_seed(length: Optional[int] = None) -> str:
    """
    Generate a short base-36 seed string from OS entropy.

    Only used when the caller did not supply a seed; the seed is then reported
    in the generation log so the map can be reproduced.
    """
    length = length or _SEED_LENGTH
    return "".join(secrets.choice(_SEED_ALPHABET) for _ in range(length))


def normalize_seed(seed: Optional[str]) -> Optional[str]:
    """Strip a seed string, mapping blank values to None."""
    if seed is None:
        return None
    seed = str(seed).strip()
    return seed or None
