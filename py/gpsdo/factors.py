from math import gcd, isqrt

__all__ = 'factorize', 'largest_factor_at_most'

SMALL_PRIMES = [
    2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71,
    73, 79, 83, 89, 97, 101, 103, 107, 109, 113, 127, 131, 137, 139, 149, 151,
    157, 163, 167, 173, 179, 181, 191, 193, 197, 199, 211, 223, 227, 229, 233,
    239, 241, 251, 257, 263, 269, 271, 277, 281, 283, 293, 307, 311, 313, 317,
    331, 337, 347, 349, 353, 359, 367, 373, 379, 383, 389, 397, 401, 409, 419,
    421, 431, 433, 439, 443, 449, 457, 461, 463, 467, 479, 487, 491, 499, 503,
    509, 521, 523, 541, 547, 557, 563, 569, 571, 577, 587, 593, 599, 601, 607,
    613, 617, 619, 631, 641, 643, 647, 653, 659, 661, 673, 677, 683, 691, 701,
    709, 719, 727, 733, 739, 743, 751, 757, 761, 769, 773, 787, 797, 809, 811,
    821, 823, 827, 829, 839, 853, 857, 859, 863, 877, 881, 883, 887, 907, 911,
    919, 929, 937, 941, 947, 953, 967, 971, 977, 983, 991, 997]

SMALL_FACTOR_LIMIT = 1009 * 1009

# The first twelve primes as Miller-Rabin witnesses give the right answer for
# everything below 3.3e24.
WITNESSES = SMALL_PRIMES[:12]

def factorize(n: int) -> list[int]:
    '''Prime factors of n, with multiplicity, in ascending order.'''
    assert n > 0
    factors: list[int] = []
    for p in SMALL_PRIMES:
        while n % p == 0:
            factors.append(p)
            n //= p
        if n < p * p:
            break
    if n >= SMALL_FACTOR_LIMIT:
        large_factors(factors, n)
        factors.sort()
    elif n > 1:
        factors.append(n)
    return factors

def large_factors(factors: list[int], n: int) -> None:
    '''Append the prime factors of n, which has no factors in SMALL_PRIMES.'''
    while n >= SMALL_FACTOR_LIMIT:
        if miller_rabin_prime(n):
            factors.append(n)
            return
        factor = pollard_ρ(n)
        if factor >= SMALL_FACTOR_LIMIT:
            large_factors(factors, factor)
        else:
            factors.append(factor)
        n //= factor
    if n > 1:
        factors.append(n)

def pollard_ρ(n: int) -> int:
    '''Pollard rho factorisation.  Returns a non-trivial factor of composite
    n.'''
    for a in reversed(SMALL_PRIMES):
        slow = a
        fast = (slow * slow + a) % n
        count = 2
        while True:
            g = gcd(n, slow - fast)
            if g != 1:
                if g < n:
                    return g
                break                   # Cycled, try another polynomial.
            if count & (count - 1) == 0:
                slow = fast
            fast = (fast * fast + a) % n
            count += 1
    assert False, f'No factor found for {n}'

def miller_rabin_prime(n: int) -> bool:
    n = abs(n)
    if n < 3 or n % 2 == 0:
        return n == 2
    num_twos = ((n - 2) & -n).bit_length()
    untwo = (n - 1) >> num_twos
    assert untwo & 1 != 0
    assert untwo << num_twos == n - 1
    for p in WITNESSES:
        if n % p == 0:
            return n == p
        l = pow(p, untwo, n)
        if l == 1 or l == n - 1:
            continue
        for _ in range(1, num_twos):
            l = l * l % n
            if l == 1:
                return False
            if l == n - 1:
                break
        else:
            return False
    return True

def largest_factor_at_most(product: int, limit: int) -> int:
    '''Return the largest divisor of product that is no bigger than limit.'''
    assert product > 0 and limit >= 1
    if product <= limit:
        return product
    seen: set[int] = set()
    return factor_search(seen, product, limit, factorize(product), 0)

def factor_search(seen: set[int], product: int, limit: int,
                  factors: list[int], index: int) -> int:
    '''Worker function for largest_factor_at_most.

    Search the divisors of product formed by dividing out primes from
    factors[index:].  Each step either divides out the next prime, or skips all
    remaining copies of it.  The factors are ascending, so the quotients at one
    level are descending, and the first one within the limit wins the level.
    seen holds the intermediate products already searched.'''
    best = 1
    if product in seen:
        return best
    seen.add(product)
    while index < len(factors):
        current = factors[index]
        quotient = product // current
        if best < quotient <= limit:
            return quotient
        if index + 1 < len(factors):
            best = max(best,
                       factor_search(seen, quotient, limit, factors, index + 1))
        while index < len(factors) and factors[index] == current:
            index += 1
    return best

def test_small_primes() -> None:
    assert len(SMALL_PRIMES) == 168
    sieve = bytearray(1000)
    sieve[0] = 1
    sieve[1] = 1
    for i in range(2, isqrt(len(sieve)) + 1):
        if sieve[i] == 0:
            for j in range(i * i, len(sieve), i):
                sieve[j] = 1
    primes = [i for i, f in enumerate(sieve) if f == 0]
    assert SMALL_PRIMES == primes
    assert factorize(SMALL_FACTOR_LIMIT) == [1009, 1009]

def test_pollard_ρ() -> None:
    for n in (1 << 32) + 1, 1301119843216015234441, 1009 * 1013:
        f = pollard_ρ(n)
        assert 1 < f < n
        assert n % f == 0

def test_miller_rabin() -> None:
    assert not miller_rabin_prime(SMALL_FACTOR_LIMIT)
    assert miller_rabin_prime(65537)
    assert miller_rabin_prime(2147483647)
    assert not miller_rabin_prime(1301119843216015234441)
    assert not miller_rabin_prime((1 << 32) - 1)
    # Strong pseudo-prime to bases 2, 3, 5 and 7.
    assert not miller_rabin_prime(3215031751)
    assert miller_rabin_prime(2)
    assert not miller_rabin_prime(1)
    for i in range(3, 2000):
        assert miller_rabin_prime(i) == all(i % p for p in range(2, isqrt(i) + 1))

def test_factor() -> None:
    assert factorize(1) == []
    assert factorize(2) == [2]
    assert factorize(360) == [2, 2, 2, 3, 3, 5]
    assert factorize(123431) == [7, 7, 11, 229]
    for n in 8, 65537, (1 << 32) - 1, 700_000_000, 1009 ** 3 * 1013, \
            1301119843216015234441, 2148696083 * 18446744556051857693:
        factors = factorize(n)
        assert factors == sorted(factors)
        product = 1
        for f in factors:
            assert miller_rabin_prime(f)
            product *= f
        assert product == n, f'{n} {factors}'

def test_largest_factor_brute_force() -> None:
    for product in range(1, 600):
        divisors = [d for d in range(1, product + 1) if product % d == 0]
        for limit in range(1, product + 2):
            expect = max(d for d in divisors if d <= limit)
            got = largest_factor_at_most(product, limit)
            assert got == expect, f'{product} {limit} {got} {expect}'

def test_largest_factor_big() -> None:
    # The numerators that turn up in the GPS reference search.
    for product, limit in (700_000_000, 6_000_000), \
            (2 ** 10 * 3 ** 6 * 5 ** 4 * 7 ** 2, 10_000_000), \
            (2 * 4999999, 10_000_000), (1009 ** 2 * 97, 1_000_000):
        got = largest_factor_at_most(product, limit)
        assert product % got == 0 and got <= limit
        # Every multiple of got by a single prime divisor must overshoot.
        for p in set(factorize(product // got)):
            assert got * p > limit
