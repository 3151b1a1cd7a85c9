"""Random source helpers for Indian Rummy."""

import hashlib
import random
import secrets


def create_rng(seed: int | None = None) -> random.Random:
    """Create a Random instance.

    If seed is provided, returns a deterministic Random (for tests/replay).
    If seed is None, returns SystemRandom (cryptographically secure).
    """
    if seed is not None:
        return random.Random(seed)
    return secrets.SystemRandom()


def derive_rng(seed: int | None, salt: str) -> random.Random:
    """Derive an independent deterministic Random from a base seed and a salt.

    Used to give every round of a seeded game its own shuffle. Without a
    seed the result is a SystemRandom, same as create_rng(None).
    """
    if seed is None:
        return create_rng(None)
    digest = hashlib.sha256(f"{seed}:{salt}".encode()).hexdigest()
    return random.Random(int(digest[:16], 16))
