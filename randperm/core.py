"""Core random permutation engine.

Generates a near-uniformly random permutation of the universe [0, U) without materializing it.
Based on Jeff Preshing's quadratic residue trick for unique random 32-bit integers
(https://preshing.com/20121224/how-to-generate-a-sequence-of-unique-random-integers),
extended to any universe size up to 2**64 - 1: numbers in the gap between the prime and
the universe map to themselves, and a seed offset applied between two rounds mixes them
with the rest of the range.
"""
from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, NamedTuple, Optional

from .utils import prime_predecessor

LOGGER = logging.getLogger(__name__)

MAX_UNIVERSE = (1 << 64) - 1
_U64_MASK = MAX_UNIVERSE

# provides a decent distribution of 64 bits
SHUFFLE1 = 0x9696594B6A5936B2
SHUFFLE2 = 0xD2165B4B66592AD6

class CommonUniverse(NamedTuple):
    universe: int
    prime: int

def _pow2(k: int) -> int:
    return 1 << k

# common universe sizes and their largest prime p <= universe with p = 3 (mod 4)
COMMON_UNIVERSES = (
    CommonUniverse(_pow2(16) - 2, _pow2(16) - 17),
    CommonUniverse(_pow2(16) - 1, _pow2(16) - 17),
    CommonUniverse(_pow2(24) - 2, _pow2(24) - 17),
    CommonUniverse(_pow2(24) - 1, _pow2(24) - 17),
    CommonUniverse(_pow2(32) - 2, _pow2(32) - 5),
    CommonUniverse(_pow2(32) - 1, _pow2(32) - 5),
    CommonUniverse(_pow2(40) - 2, _pow2(40) - 213),
    CommonUniverse(_pow2(40) - 1, _pow2(40) - 213),
    CommonUniverse(_pow2(48) - 2, _pow2(48) - 65),
    CommonUniverse(_pow2(48) - 1, _pow2(48) - 65),
    CommonUniverse(_pow2(56) - 2, _pow2(56) - 5),
    CommonUniverse(_pow2(56) - 1, _pow2(56) - 5),
    CommonUniverse(_pow2(63) - 2, _pow2(63) - 25),
    CommonUniverse(_pow2(63) - 1, _pow2(63) - 25),
    CommonUniverse(MAX_UNIVERSE - 1, 0xFFFFFFFFFFFFFF43),
    CommonUniverse(MAX_UNIVERSE, 0xFFFFFFFFFFFFFF43),
)

COMMON_UNIVERSE_PRIMES: Mapping[int, int] = MappingProxyType(dict(COMMON_UNIVERSES))

class PermutationError(ValueError):
    pass

def timestamp() -> int:
    """Current reading of the highest resolution clock, in nanoseconds."""
    return time.time_ns()

def _validate_common_universes(common_universes: Mapping[int, int]) -> Dict[int, int]:
    table = {}
    for universe, prime in common_universes.items():
        universe, prime = int(universe), int(prime)
        if not 0 < prime <= universe:
            raise ValueError(f'prime {prime} must lie in [1, {universe}] for universe {universe}')
        if prime % 4 != 3:
            raise ValueError(f'prime {prime} for universe {universe} is not 3 (mod 4)')
        table[universe] = prime
    return table

def select_prime_3mod4(universe: int, common_universes: Optional[Mapping[int, int]] = None) -> int:
    """
    Find the largest prime p <= universe with p = 3 (mod 4).
    Known universes are answered from COMMON_UNIVERSE_PRIMES, then from `common_universes`
    if given; anything else is searched for. Returns 0 when no such prime exists (universe < 3).
    """
    prime = COMMON_UNIVERSE_PRIMES.get(universe)
    if prime is None and common_universes:
        prime = common_universes.get(universe)
    if prime is not None:
        LOGGER.debug('Universe %d is common, using prime %d', universe, prime)
        return prime

    # otherwise, do it the hard way
    p = prime_predecessor(universe)
    while p and p % 4 != 3:
        p = prime_predecessor(p - 1)
        # for n >= 7 there is a prime of each residue class mod 4 in (n, 2n]
        assert universe < 14 or 2 * p > universe, f'prime search for universe {universe} went past {p}'
    LOGGER.debug('Selected prime %d for universe %d', p, universe)
    return p

class RandomPermutation:
    """
    Random permutation of the universe [0, universe) with near-uniform distribution.

    Instances are immutable; evaluating `perm(i)` is O(1) and side-effect free, so a single
    instance can be shared freely between threads and iterators.
    """

    __slots__ = ('_universe', '_seed', '_prime')

    def __init__(self, universe: int, seed: Optional[int] = None,
                 common_universes: Optional[Mapping[int, int]] = None):
        if not isinstance(universe, int) or isinstance(universe, bool):
            raise TypeError('universe must be an int')
        if not 1 <= universe <= MAX_UNIVERSE:
            raise ValueError(f'universe must lie in [1, {MAX_UNIVERSE}], got {universe}')
        if seed is None:
            seed = timestamp()
        elif not isinstance(seed, int) or isinstance(seed, bool):
            raise TypeError('seed must be an int')

        table = _validate_common_universes(common_universes) if common_universes else None
        self._universe = universe
        self._prime = select_prime_3mod4(universe, table)
        self._seed = ((seed & _U64_MASK) ^ SHUFFLE1) ^ SHUFFLE2

    @classmethod
    def identity(cls) -> 'RandomPermutation':
        """The permutation of the single-element universe {0}."""
        perm = cls.__new__(cls)
        perm._universe = 1
        perm._seed = 0
        perm._prime = 0
        return perm

    @property
    def universe(self) -> int:
        return self._universe

    @property
    def seed(self) -> int:
        """The mixed seed."""
        return self._seed

    @property
    def prime(self) -> int:
        return self._prime

    def _permute(self, x: int) -> int:
        p = self._prime
        if x >= p:
            # numbers in the gap map to themselves, the seed offset takes care of them
            return x
        r = (x * x) % p
        return r if x <= (p >> 1) else p - r

    def __call__(self, i: int) -> int:
        """The i-th number of the permutation."""
        if not 0 <= i < self._universe:
            raise IndexError(f'index {i} out of range for universe {self._universe}')
        return self._permute((self._seed + self._permute(i)) % self._universe)

    def __len__(self) -> int:
        return self._universe

    def __iter__(self) -> 'PermutationIterator':
        return PermutationIterator(self, 0)

    def at(self, start: int = 0) -> 'PermutationIterator':
        """Iterator over the permutation starting at its `start`-th number."""
        return PermutationIterator(self, start)

    def _key(self):
        return (self._universe, self._seed, self._prime)

    def __eq__(self, other):
        if not isinstance(other, RandomPermutation):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f'RandomPermutation(universe={self._universe}, prime={self._prime}, seed={self._seed:#018x})'

class PermutationIterator:
    """
    Forward-only cursor over a RandomPermutation.
    Yields perm(i) for i = start .. universe - 1; index `universe` is the end sentinel.
    Each iterator owns its cursor, use copy.copy() to fork one.
    """

    __slots__ = ('_perm', '_index')

    def __init__(self, perm: RandomPermutation, start: int = 0):
        if not 0 <= start <= perm.universe + 1:
            raise IndexError(f'start {start} out of range for universe {perm.universe}')
        self._perm = perm
        self._index = min(start, perm.universe)

    @property
    def index(self) -> int:
        return self._index

    def __iter__(self) -> 'PermutationIterator':
        return self

    def __next__(self) -> int:
        i = self._index
        if i >= self._perm.universe:
            raise StopIteration
        self._index = i + 1
        return self._perm(i)

    def __length_hint__(self) -> int:
        return self._perm.universe - self._index

    def __copy__(self) -> 'PermutationIterator':
        return PermutationIterator(self._perm, self._index)

def iter_permutation(perm: RandomPermutation, start: int = 0, count: Optional[int] = None) -> Iterator[int]:
    """Yield up to `count` numbers of `perm` starting at index `start` (all remaining if count is None)."""
    it = perm.at(start)
    remaining = perm.universe - it.index
    if count is not None:
        remaining = min(count, remaining)
    for _ in range(remaining):
        yield next(it)

def check_permutation(perm: RandomPermutation) -> None:
    """
    Exhaustively verify that `perm` is a bijection on its universe.
    Records every output in a presence array, O(universe) time and memory.
    Raises PermutationError on the first out-of-range or repeated value.
    """
    universe = perm.universe
    LOGGER.info('Checking permutation of universe %d', universe)
    seen = bytearray(universe)
    for i, j in enumerate(perm):
        if not 0 <= j < universe:
            raise PermutationError(f'perm({i}) = {j} is outside the universe [0, {universe})')
        if seen[j]:
            raise PermutationError(f'perm({i}) = {j} was already generated')
        seen[j] = 1
    LOGGER.info('Permutation of universe %d verified', universe)
