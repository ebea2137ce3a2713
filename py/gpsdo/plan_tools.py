
from .plan_constants import MHz, kHz

from fractions import Fraction
from math import lcm

import re

class PlanningFailed(RuntimeError):
    pass

class InvalidInput(ValueError):
    '''Malformed frequency, or a frequency or limit that makes no sense.'''
    pass

class ArithmeticOverflow(PlanningFailed, OverflowError):
    '''A value does not fit in the register it is destined for.'''
    pass

class SearchCancelled(PlanningFailed):
    pass

def is_multiple_of(a: Fraction, b: Fraction) -> bool:
    if not b:
        return False
    return a.numerator % b.numerator == 0 and \
        b.denominator % a.denominator == 0

def exact_int(f: Fraction) -> int:
    '''Convert a fraction that we know to be an integer.'''
    if f.denominator != 1:
        raise ArithmeticError(f'{f} is not an integer')
    return f.numerator

def fract_lcm(a: Fraction, b: Fraction) -> Fraction:
    '''Least common multiple of two fractions.  Both multiples of the result by
    a and b are integers, and they are coprime.'''
    den = lcm(a.denominator, b.denominator)
    num = lcm(a.numerator * (den // a.denominator),
              b.numerator * (den // b.denominator))
    return Fraction(num, den)

def test_fract_lcm() -> None:
    L2 = list(map(Fraction, '1/8 1/4 1/2 1 2 4 8'.split()))
    L3 = list(map(Fraction, '1/9 1/3 1 3 9'.split()))
    L5 = list(map(Fraction, '1/25 1/5 1 5 25'.split()))
    L7 = list(map(Fraction, '1/7 1 7'.split()))

    fracts: list[Fraction] = []
    for a2 in L2:
        for a3 in L3:
            for a5 in L5:
                for a7 in L7:
                    fracts.append(a2 * a3 * a5 * a7)
    for a in fracts[::3]:
        for b in fracts:
            m = fract_lcm(a, b)
            assert is_multiple_of(m, a) and is_multiple_of(m, b), f'{a} {b}'
            u = exact_int(m / a)
            v = exact_int(m / b)
            assert lcm(u, v) == u * v, f'{a} {b} {m}'

def test_fract_lcm_freqs() -> None:
    assert fract_lcm(Fraction(123431, 100), Fraction(5432)) \
        == Fraction(95782456)
    assert fract_lcm(Fraction(10_000_000), Fraction(96_000)) == 60_000_000
    assert fract_lcm(Fraction(1, 3), Fraction(1, 2)) == 1
    assert fract_lcm(Fraction(5), Fraction(5)) == 5

def test_exact_int() -> None:
    assert exact_int(Fraction(12, 4)) == 3
    try:
        exact_int(Fraction(3, 2))
    except ArithmeticError:
        pass
    else:
        assert False, 'Non-integer accepted'

# An integral part can be given separately, before either a fraction or an
# integer: 10_1/7 or 10 1/7.  Decimals don't mix with that.  The unit scales the
# whole lot.
FREQ_RE = re.compile(r'''
    (?: (?P<integral>\d+) [ _] )?
    (?: (?P<num>\d+) / (?P<den>\d+)
      | (?P<decimal>\d+\.\d*|\.\d+)
      | (?P<whole>\d+) )
    (?P<unit>[kM])?''', re.VERBOSE)

UNITS = {None: 1, 'k': kHz, 'M': MHz}

def str_to_freq(s: str) -> Fraction:
    m = FREQ_RE.fullmatch(s)
    if m is None or m['integral'] is not None and m['decimal'] is not None:
        raise InvalidInput(f'Invalid frequency {s!r}')

    if m['den'] is not None:
        if int(m['den']) == 0:
            raise InvalidInput(f'Invalid frequency {s!r}: zero denominator')
        value = Fraction(int(m['num']), int(m['den']))
    elif m['decimal'] is not None:
        value = Fraction(m['decimal'])
    else:
        value = Fraction(int(m['whole']))

    if m['integral'] is not None:
        value += int(m['integral'])

    return value * UNITS[m['unit']]

# Set the name of str_to_freq to give sensible argparse help test.
str_to_freq.__name__ = 'frequency'

def test_str_to_freq() -> None:
    assert str_to_freq('1000') == 1000
    assert str_to_freq('1000.31') == Fraction(100031, 100)
    assert str_to_freq('10M') == 10_000_000
    assert str_to_freq('96k') == 96_000
    assert str_to_freq('500/9k') == Fraction(500_000, 9)
    assert str_to_freq('10_1/7k') == Fraction(71_000, 7)
    assert str_to_freq('10 1/7') == Fraction(71, 7)
    assert str_to_freq('10_3') == 13
    assert str_to_freq('.5') == Fraction(1, 2)
    assert str_to_freq('2.') == 2
    assert str_to_freq('1.5k') == 1500
    assert str_to_freq('0') == 0

def test_str_to_freq_bad() -> None:
    for s in '', 'abc', '1/0', '1.5.2', '1//2', '1/2/3', '1.5 1/2', \
            '1_2.5', '10kk', '10Mk', '1 2 3', '1  2', '-5', '.', '/3', \
            '10 ', 'k', '10G':
        try:
            str_to_freq(s)
        except InvalidInput:
            continue
        assert False, f'Accepted {s!r}'
