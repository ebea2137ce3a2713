'''Divider planning for the Si53xx clock generator in a GPSDO.

Both outputs come from the one VCO:

           fOSC             |  N1_HS  = [4, 5, ..., 11]
  fn = --------------       |  NCn_LS = [2, 4, 6, ..., 2**20]
       N1_HS * NCn_LS

and the VCO is locked to the GPS reference:

  f3 = fGPS / N31,  fOSC = f3 * N2_HS * N2_LS

The search picks fOSC as a multiple of the LCM of the two outputs, and then
finds a GPS frequency and N31 giving the highest phase detector frequency f3
it can.'''

from __future__ import annotations

from .factors import largest_factor_at_most
from .plan_constants import *
from .plan_tools import ArithmeticOverflow, InvalidInput, SearchCancelled, \
    exact_int, fract_lcm

from dataclasses import dataclass, fields
from enum import IntEnum
from fractions import Fraction
from math import ceil, floor
from typing import Callable, Generator

__all__ = 'HardwareLimits', 'Search', 'Solution', 'find_solutions', \
    'search_candidates'

class Search(IntEnum):
    '''How hard to search.  Also used to grade a solution, so that searching
    stops once the grade of the best solution reaches the mode.'''
    ANY = 0
    GOOD = 1
    BEST = 2
    ALL = 3

@dataclass(frozen=True)
class HardwareLimits:
    vco_lo: Fraction = VCO_LO
    vco_hi: Fraction = VCO_HI
    # Phase detector frequency range.
    f3_lo: Fraction = F3_LO
    f3_hi: Fraction = F3_HI
    # Maximum GPS reference frequency.
    gps_hi: Fraction = GPS_HI

    def __post_init__(self) -> None:
        for f in fields(self):
            if not getattr(self, f.name) > 0:
                raise InvalidInput(f'{f.name} must be positive')
        if self.vco_lo > self.vco_hi:
            raise InvalidInput('VCO range is empty')
        if self.f3_lo > self.f3_hi:
            raise InvalidInput('Phase detector frequency range is empty')

@dataclass(frozen=True)
class Solution:
    # GPS reference frequency.
    fgps: int
    # Phase detector reference divider.
    n31: int
    # Output high-speed divider, shared by both outputs.
    n1_hs: int
    # Output low-speed dividers.
    nc1_ls: int
    nc2_ls: int
    # Feedback dividers.
    n2_hs: int
    n2_ls: int

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0 <= value <= FIELD_MAX:
                raise ArithmeticOverflow(
                    f'{f.name} = {value} does not fit in a register')

    def f3(self) -> Fraction:
        return Fraction(self.fgps, self.n31)

    def fosc(self) -> Fraction:
        return self.f3() * self.n2_hs * self.n2_ls

    def f1(self) -> Fraction:
        return self.fosc() / (self.n1_hs * self.nc1_ls)

    def f2(self) -> Fraction:
        return self.fosc() / (self.n1_hs * self.nc2_ls)

    def __lt__(self, b: Solution | None) -> bool:
        '''Less is better.  I.e., return True if self is better than b.  Better
        means a higher phase detector frequency, giving less jitter.'''
        if b is None:
            return True
        return self.f3() > b.f3()

    def grade(self, limits: HardwareLimits) -> Search:
        '''BEST if f3 is the maximum, GOOD if at least half of it.'''
        reachable = self.n31 * limits.f3_hi
        if reachable == self.fgps:
            return Search.BEST
        if reachable <= 2 * self.fgps:
            return Search.GOOD
        return Search.ANY

    def validate(self, limits: HardwareLimits, f1: Fraction,
                 f2: Fraction) -> None:
        assert self.f1() == f1, f'f1 {self.f1()} != {f1}'
        assert self.f2() == f2, f'f2 {self.f2()} != {f2}'
        assert limits.f3_lo <= self.f3() <= limits.f3_hi
        assert limits.vco_lo <= self.fosc() <= limits.vco_hi
        assert self.fgps <= limits.gps_hi
        assert HS_MIN <= self.n1_hs <= HS_MAX
        assert HS_MIN <= self.n2_hs <= HS_MAX
        for ls in self.nc1_ls, self.nc2_ls, self.n2_ls:
            assert is_ls_divider(ls), ls
        assert 1 <= self.n31 <= N31_MAX

def is_ls_divider(n: int) -> bool:
    # Odd values, including 1, are excluded, see plan_constants.
    return 2 <= n <= LS_MAX and n % 2 == 0

def n2_hs_candidates(fosc: Fraction) -> list[int]:
    '''The N2_HS values to try for a VCO frequency, best first.

    Smaller denominators of fOSC / N2_HS tend to give a smaller N31 and so a
    higher f3.  On a tie, larger dividers come first as they use less power.'''
    return sorted(range(HS_MAX, HS_MIN - 1, -1),
                  key = lambda n: ((fosc / n).denominator, -n))

def feedback_solution(limits: HardwareLimits, fosc: Fraction, n1_hs: int,
                      nc1_ls: int, nc2_ls: int, n2_hs: int) -> Solution | None:
    '''Find the GPS frequency and dividers to lock the VCO at fosc, using the
    given N2_HS.'''
    f3_n2 = fosc / (2 * n2_hs)
    n31 = f3_n2.denominator
    if n31 > N31_MAX:
        return None

    gps_hi = floor(min(limits.gps_hi, n31 * limits.f3_hi))
    if gps_hi < 1:
        return None
    numerator = f3_n2.numerator
    if numerator <= gps_hi:
        fgps = numerator
        n2_ls = 2
    else:
        # Split the rest of the numerator out into N2_LS.
        fgps = largest_factor_at_most(numerator, gps_hi)
        n2_ls = 2 * (numerator // fgps)

    if n2_ls > LS_MAX or Fraction(fgps, n31) < limits.f3_lo:
        return None

    return Solution(fgps = fgps, n31 = n31, n1_hs = n1_hs,
                    nc1_ls = nc1_ls, nc2_ls = nc2_ls,
                    n2_hs = n2_hs, n2_ls = n2_ls)

def search_candidates(f1: Fraction, f2: Fraction, limits: HardwareLimits,
                      cancel: Callable[[], bool] | None = None) \
        -> Generator[Solution, None, None]:
    '''Generate every admissible solution, in search order.

    The order is descending N1_HS (larger is lower power), ascending VCO
    multiple, and then the N2_HS order from n2_hs_candidates.  Each VCO
    frequency is only tried for the first N1_HS that reaches it.'''
    # All the output frequencies must be integer fractions of the LCM.
    lcm = fract_lcm(f1, f2)

    # NCn_LS must be even, so if the LCM divides either frequency into an odd
    # number, double it.
    if exact_int(lcm / f1) % 2 != 0 or exact_int(lcm / f2) % 2 != 0:
        lcm *= 2

    # NCn_LS = q * fn_div for each output.
    f1_div = exact_int(lcm / f1)
    f2_div = exact_int(lcm / f2)
    q_max = LS_MAX // max(f1_div, f2_div)

    fosc_seen: set[Fraction] = set()

    for n1_hs in range(HS_MAX, HS_MIN - 1, -1):
        #
        #            fOSC                             fOSC
        #   fLCM = ---------   ,  fN1 = fLCM * N1_HS = ----
        #          N1_HS * q                            q
        #
        f_n1 = n1_hs * lcm
        # The VCO range bounds q.
        q_lo = ceil(limits.vco_lo / f_n1)
        q_hi = min(q_max, floor(limits.vco_hi / f_n1))

        for q in range(q_lo, q_hi + 1):
            if cancel is not None and cancel():
                raise SearchCancelled('Search cancelled')

            nc1_ls = q * f1_div
            nc2_ls = q * f2_div
            assert is_ls_divider(nc1_ls) and is_ls_divider(nc2_ls)

            fosc = f_n1 * q
            if fosc in fosc_seen:
                continue
            fosc_seen.add(fosc)

            for n2_hs in n2_hs_candidates(fosc):
                solution = feedback_solution(
                    limits, fosc, n1_hs, nc1_ls, nc2_ls, n2_hs)
                if solution is not None:
                    yield solution

def find_solutions(f1: Fraction, f2: Fraction,
                   limits: HardwareLimits = HardwareLimits(),
                   mode: Search = Search.ANY,
                   cancel: Callable[[], bool] | None = None) -> list[Solution]:
    '''Find divider settings giving exactly f1 and f2 on the two outputs.

    Search.ALL returns every solution, best first.  Otherwise a single solution
    is returned, the best found before the search stops.  The search stops once
    a solution with grade at least mode has been found.  An empty list means
    there is no solution.

    cancel, if given, is polled during the search, and if it returns True
    then SearchCancelled is raised.'''
    f1 = Fraction(f1)
    f2 = Fraction(f2)
    if f1 <= 0 or f2 <= 0:
        raise InvalidInput(f'Frequencies must be positive: {f1}, {f2}')

    solutions: list[Solution] = []
    found: Search | None = None

    for solution in search_candidates(f1, f2, limits, cancel):
        if mode == Search.ALL:
            solutions.append(solution)
            continue

        if not solutions:
            solutions.append(solution)
        elif solution < solutions[0]:
            solutions[0] = solution

        grade = solution.grade(limits)
        if found is None or grade > found:
            found = grade
        if found >= mode:
            break

    # Stable, so equal f3 stays in search order.
    if len(solutions) > 1:
        solutions.sort(key = Solution.f3, reverse = True)

    return solutions

LIMITS = HardwareLimits()

def test_basic() -> None:
    f1 = Fraction(123_431, 100)
    f2 = Fraction(5_432)
    solutions = find_solutions(f1, f2, LIMITS, Search.ALL)
    assert len(solutions) == 16
    assert solutions[0].f3() == 1_974_896
    for s in solutions:
        s.validate(LIMITS, f1, f2)
    f3s = [s.f3() for s in solutions]
    assert f3s == sorted(f3s, reverse = True)

def test_modes() -> None:
    f1 = Fraction(123_431, 100)
    f2 = Fraction(5_432)
    every = find_solutions(f1, f2, LIMITS, Search.ALL)
    assert len(set(every)) == len(every)
    for mode in Search.ANY, Search.GOOD, Search.BEST:
        solutions = find_solutions(f1, f2, LIMITS, mode)
        assert len(solutions) == 1
        assert solutions[0] in every
        solutions[0].validate(LIMITS, f1, f2)

    # Best finds the highest f3, and the first one found with it.
    best = find_solutions(f1, f2, LIMITS, Search.BEST)
    assert best == every[:1]

    # Any is simply the first thing found.
    first = next(search_candidates(f1, f2, LIMITS))
    assert find_solutions(f1, f2, LIMITS, Search.ANY) == [first]

    good, = find_solutions(f1, f2, LIMITS, Search.GOOD)
    assert good.f3() >= first.f3()

def test_deterministic() -> None:
    f1 = Fraction(100_031, 100)
    f2 = Fraction(234_561, 100)
    for mode in Search:
        a = find_solutions(f1, f2, LIMITS, mode)
        b = find_solutions(f1, f2, LIMITS, mode)
        assert a == b
        assert [repr(s) for s in a] == [repr(s) for s in b]
        for s in a:
            s.validate(LIMITS, f1, f2)

def test_same_freq() -> None:
    f = 10 * MHz
    solutions = find_solutions(f, f, LIMITS, Search.ALL)
    assert solutions
    for s in solutions:
        assert s.nc1_ls == s.nc2_ls
        s.validate(LIMITS, f, f)
    best, = find_solutions(f, f, LIMITS, Search.BEST)
    assert best == solutions[0]

def test_good_stops_early() -> None:
    # 10 MHz is easy: the first VCO frequency tried gives f3 = 2 MHz.
    f = 10 * MHz
    good, = find_solutions(f, f, LIMITS, Search.GOOD)
    assert good.grade(LIMITS) >= Search.GOOD
    best, = find_solutions(f, f, LIMITS, Search.BEST)
    assert best.grade(LIMITS) == Search.BEST
    assert best.f3() == LIMITS.f3_hi

def test_fractional() -> None:
    f1 = 10 * kHz + Fraction(1, 7) * kHz
    f2 = Fraction(500, 9) * kHz
    solutions = find_solutions(f1, f2, LIMITS, Search.GOOD)
    for s in solutions:
        s.validate(LIMITS, f1, f2)

def test_no_solution() -> None:
    # Any multiple of 6GHz is outside the VCO range.
    f = 3000 * MHz
    assert find_solutions(f, f, LIMITS, Search.ALL) == []
    assert find_solutions(f, f, LIMITS, Search.ANY) == []

def test_bad_frequency() -> None:
    for f1, f2 in (0, 10 * MHz), (10 * MHz, -1):
        try:
            find_solutions(Fraction(f1), Fraction(f2), LIMITS)
        except InvalidInput:
            continue
        assert False, f'Accepted {f1} {f2}'

def test_bad_limits() -> None:
    for kwargs in {'vco_lo': Fraction(0)}, {'f3_hi': Fraction(1000)}, \
            {'vco_lo': VCO_HI, 'vco_hi': VCO_LO}:
        try:
            HardwareLimits(**kwargs)
        except InvalidInput:
            continue
        assert False, f'Accepted {kwargs}'

def test_overflow() -> None:
    # The 7919 in the denominator ends up in N31, and with the GPS limit lifted,
    # the GPS frequency is f3 * N31, well over 32 bits.
    f = Fraction(1_000_000_000, 7919)
    limits = HardwareLimits(gps_hi = Fraction(10 ** 15),
                            f3_hi = Fraction(10 ** 15))
    try:
        find_solutions(f, f, limits, Search.ANY)
    except ArithmeticOverflow:
        pass
    else:
        assert False, 'No overflow'

    Solution(FIELD_MAX, 1, 4, 2, 2, 4, 2)
    try:
        Solution(FIELD_MAX + 1, 1, 4, 2, 2, 4, 2)
    except ArithmeticOverflow:
        pass
    else:
        assert False, 'No overflow'

def test_cancel() -> None:
    f1 = Fraction(123_431, 100)
    f2 = Fraction(5_432)
    calls = 0
    def never() -> bool:
        nonlocal calls
        calls += 1
        return False
    assert find_solutions(f1, f2, LIMITS, Search.ALL, never) \
        == find_solutions(f1, f2, LIMITS, Search.ALL)
    assert calls > 0

    try:
        find_solutions(f1, f2, LIMITS, Search.ALL, lambda: True)
    except SearchCancelled:
        pass
    else:
        assert False, 'Not cancelled'

def test_n2_hs_order() -> None:
    # 5GHz = 2**9 * 5**10.  Ties on the denominator go to the larger divider.
    assert n2_hs_candidates(Fraction(5_000_000_000)) \
        == [10, 8, 5, 4, 6, 7, 9, 11]
    # 27720 is divisible by all of them: descending.
    assert n2_hs_candidates(Fraction(27720)) \
        == [11, 10, 9, 8, 7, 6, 5, 4]

def test_solution_order() -> None:
    a = Solution(2_000_000, 1, 4, 2, 2, 4, 2)
    b = Solution(3_999_999, 2, 4, 2, 2, 4, 2)
    assert a < b
    assert not b < a
    assert a < None
    assert a.grade(LIMITS) == Search.BEST
    assert b.grade(LIMITS) == Search.GOOD
    assert Solution(100_000, 1, 4, 2, 2, 4, 2).grade(LIMITS) == Search.ANY
