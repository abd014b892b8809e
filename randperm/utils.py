"""Utility helpers: integer square roots, primality testing, prime search."""
from __future__ import annotations

from typing import Tuple

# odd primes below 256, tried before falling back to the 6k+-1 wheel
SMALL_PRIMES: Tuple[int, ...] = (
    3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73,
    79, 83, 89, 97, 101, 103, 107, 109, 113, 127, 131, 137, 139, 149, 151, 157,
    163, 167, 173, 179, 181, 191, 193, 197, 199, 211, 223, 227, 229, 233, 239,
    241, 251,
)

def isqrt_floor(x: int) -> int:
    """
    Integer square root of `x`, rounded down.
    Extracts the root one binary digit at a time, consuming `x` in pairs of bits
    from the most significant pair downward, so the result is exact for any size.
    """
    if x < 0:
        raise ValueError('isqrt_floor is undefined for negative numbers')
    if x < 4:
        return int(x > 0)

    e = (x.bit_length() - 1) >> 1  # the top pair of bits seeds r = 1
    r = 1
    while e:
        e -= 1
        window = x >> (e << 1)
        sm = r << 1
        lg = sm + 1
        r = sm + (lg * lg <= window)
    return r

def isqrt_ceil(x: int) -> int:
    """Integer square root of `x`, rounded up."""
    r = isqrt_floor(x)
    return r + (r * r < x)

def is_prime(p: int) -> bool:
    """
    Deterministic trial division.
    Divides by SMALL_PRIMES first, then by 6k-1 / 6k+1 candidates, never beyond ceil(sqrt(p)).
    Slow for large primes without small structure (about sqrt(p)/3 divisions).
    """
    if p < 2:
        return False
    if p % 2 == 0:
        return p == 2

    m = isqrt_ceil(p)
    for q in SMALL_PRIMES:
        if q > m:
            return True
        if p % q == 0:
            return False

    i = 5 + ((SMALL_PRIMES[-1] - 5) // 6) * 6
    while i <= m:
        if p % i == 0 or p % (i + 2) == 0:
            return False
        i += 6
    return True

def prime_predecessor(p: int) -> int:
    """
    Largest prime less than or equal to `p`, or 0 if there is none.
    Linear search downward; gaps between primes near `p` are small compared to `p`.
    """
    if p < 2:
        return 0
    if p == 2:
        return 2
    if p % 2 == 0:
        p -= 1  # all primes > 2 are odd

    while not is_prime(p):
        p -= 2
    return p
