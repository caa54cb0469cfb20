"""
Random payload strings for benchmark entities.

One generator is created per process and passed to whoever needs it, so
rapid successive calls never share a seed. The output is NOT suitable for
anything security related: it uses the Mersenne Twister from `random`.
"""
import random
from typing import Optional

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


class RandomStringGenerator:
    """Uppercase alphanumeric strings drawn uniformly with replacement."""

    def __init__(self, seed: Optional[int] = None, alphabet: str = ALPHABET):
        """
        Args:
            seed: Optional seed for reproducible runs
            alphabet: Characters to draw from
        """
        self.alphabet = alphabet
        self._random = random.Random(seed)

    def generate(self, length: int) -> str:
        """Return exactly `length` random characters from the alphabet."""
        if length < 0:
            raise ValueError(f"length must be >= 0, got {length}")
        return ''.join(self._random.choices(self.alphabet, k=length))
