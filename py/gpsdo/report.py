'''Print out solutions in the three formats.'''

from .solver import Solution

from fractions import Fraction

import json

def solution_to_str(s: Solution, verbose: bool = False) -> str:
    text = f'fGPS = {s.fgps}, N31 = {s.n31}, N1_HS = {s.n1_hs}, ' \
        f'NC1_LS = {s.nc1_ls}, NC2_LS = {s.nc2_ls}, ' \
        f'N2_HS = {s.n2_hs}, N2_LS = {s.n2_ls}'
    if verbose:
        text += f' [f3 = {float(s.f3()):g}, fOSC = {float(s.fosc()):g}, ' \
            f'f1 = {float(s.f1()):g}, f2 = {float(s.f2()):g}]'
    return text

def solution_to_cmdline(s: Solution) -> str:
    '''Command line arguments for lb-gps-linux.'''
    return f'--gps {s.fgps} --n31 {s.n31} --n2_ls {s.n2_ls} ' \
        f'--n2_hs {s.n2_hs} --n1_hs {s.n1_hs} ' \
        f'--nc1_ls {s.nc1_ls} --nc2_ls {s.nc2_ls}'

def solution_to_json(s: Solution) -> str:
    return json.dumps({
        'fGPS': s.fgps, 'N31': s.n31, 'N2_LS': s.n2_ls, 'N2_HS': s.n2_hs,
        'N1_HS': s.n1_hs, 'NC1_LS': s.nc1_ls, 'NC2_LS': s.nc2_ls})

EXAMPLE = Solution(fgps = 2_000_000, n31 = 1, n1_hs = 11, nc1_ls = 46,
                   nc2_ls = 46, n2_hs = 11, n2_ls = 230)

def test_to_str() -> None:
    assert solution_to_str(EXAMPLE) == \
        'fGPS = 2000000, N31 = 1, N1_HS = 11, NC1_LS = 46, NC2_LS = 46, ' \
        'N2_HS = 11, N2_LS = 230'
    assert solution_to_str(EXAMPLE, True).endswith(
        ' [f3 = 2e+06, fOSC = 5.06e+09, f1 = 1e+07, f2 = 1e+07]')

def test_to_cmdline() -> None:
    assert solution_to_cmdline(EXAMPLE) == '--gps 2000000 --n31 1 ' \
        '--n2_ls 230 --n2_hs 11 --n1_hs 11 --nc1_ls 46 --nc2_ls 46'

def test_to_json() -> None:
    text = solution_to_json(EXAMPLE)
    assert text == '{"fGPS": 2000000, "N31": 1, "N2_LS": 230, "N2_HS": 11, ' \
        '"N1_HS": 11, "NC1_LS": 46, "NC2_LS": 46}'
    decoded = json.loads(text)
    assert Solution(fgps = decoded['fGPS'], n31 = decoded['N31'],
                    n1_hs = decoded['N1_HS'], nc1_ls = decoded['NC1_LS'],
                    nc2_ls = decoded['NC2_LS'], n2_hs = decoded['N2_HS'],
                    n2_ls = decoded['N2_LS']) == EXAMPLE
    assert EXAMPLE.f1() == Fraction(10_000_000)
