# Package initializer for the randperm module
from .core import (
    COMMON_UNIVERSES,
    MAX_UNIVERSE,
    PermutationError,
    PermutationIterator,
    RandomPermutation,
    check_permutation,
    iter_permutation,
    select_prime_3mod4,
)
from .utils import is_prime, isqrt_ceil, isqrt_floor, prime_predecessor

__all__ = [
    "RandomPermutation", "PermutationIterator", "PermutationError",
    "check_permutation", "iter_permutation", "select_prime_3mod4",
    "COMMON_UNIVERSES", "MAX_UNIVERSE",
    "isqrt_floor", "isqrt_ceil", "is_prime", "prime_predecessor",
]
