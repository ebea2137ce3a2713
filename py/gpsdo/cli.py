'''Command line front end: gpsdo-config f1 [f2] [options...]'''

from .plan_constants import F3_HI, F3_LO, GPS_HI, VCO_HI, VCO_LO
from .plan_tools import InvalidInput, PlanningFailed, str_to_freq
from .report import solution_to_cmdline, solution_to_json, solution_to_str
from .solver import HardwareLimits, Search, find_solutions

from typing import Any

import argparse, sys

EPILOG = '''If only one frequency is specified, both outputs will be set to the
same frequency.  Frequencies will be processed accurately as rational numbers
internally, and can also be specified as such.  An integral part can be
separated from a fraction by either a single space or an underscore.  Suffixes
`M` and `k` are supported for MHz and kHz.

`--all` and `--best` can be really slow as there may be millions of possible
solutions.  By default, the code will look for a "good" solution, which
shouldn't be significantly slower than `--any`.  The "quality" of a solution is
measured purely by means of the phase detector comparison frequency (f3), which
directly impacts jitter/phase noise.  `--best` will always search for the
solution with the highest possible f3.  The default behaviour will accept any
f3 that is higher than 50%% of the maximum value.

Output for `--json` and `--cmdline` will always be exclusively written to
stdout, suitable for processing by other commands.  All other output will be
written to stderr.

Examples:
  %(prog)s 1000
  %(prog)s 10M 96k
  %(prog)s 1000.31 2345.61 --best
  %(prog)s 10_1/7k 500/9k --all --verbose
  lb-gps-linux /dev/hidraw3 $(%(prog)s 10M 120M --cmdline)

Exit status:
  0: successful completion
  1: could not find any solution for the specified frequencies
  2: input processing error'''

def make_argparser() -> argparse.ArgumentParser:
    argp = argparse.ArgumentParser(
        prog='gpsdo-config', epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='''Find Si53xx divider settings for a GPSDO that give two
        output frequencies exactly.''')

    argp.add_argument('f1', type=str_to_freq, help='frequency 1')
    argp.add_argument('f2', type=str_to_freq, nargs='?',
                      help='frequency 2, defaults to frequency 1')

    search = argp.add_mutually_exclusive_group()
    search.add_argument('--all', dest='mode', action='store_const',
                        const=Search.ALL, help='find all possible solutions')
    search.add_argument('--any', dest='mode', action='store_const',
                        const=Search.ANY, help='find any possible solution')
    search.add_argument('--best', dest='mode', action='store_const',
                        const=Search.BEST, help='find best possible solution')
    argp.set_defaults(mode=Search.GOOD)

    argp.add_argument('-v', '--verbose', action='store_true',
                      help='print more information')

    output = argp.add_mutually_exclusive_group()
    output.add_argument('--cmdline', action='store_true',
                        help='print command line config')
    output.add_argument('--json', action='store_true',
                        help='print solutions as json objects')

    limits = argp.add_argument_group(
        'hardware limits', 'Override the Si53xx and GPS module limits.')
    for flag, default, what in (
            ('--vco-lo', VCO_LO, 'Lowest VCO frequency'),
            ('--vco-hi', VCO_HI, 'Highest VCO frequency'),
            ('--f3-lo', F3_LO, 'Lowest phase detector frequency'),
            ('--f3-hi', F3_HI, 'Highest phase detector frequency'),
            ('--gps-max', GPS_HI, 'Highest GPS reference frequency')):
        limits.add_argument(flag, type=str_to_freq, default=default,
                            metavar='FREQ',
                            help=f'{what} (default {float(default):g})')
    return argp

def main(argv: list[str] | None = None) -> int:
    args = make_argparser().parse_args(argv)

    f1 = args.f1
    f2 = args.f2 if args.f2 is not None else f1

    try:
        limits = HardwareLimits(vco_lo = args.vco_lo, vco_hi = args.vco_hi,
                                f3_lo = args.f3_lo, f3_hi = args.f3_hi,
                                gps_hi = args.gps_max)
        solutions = find_solutions(f1, f2, limits, args.mode)
    except (InvalidInput, PlanningFailed) as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 2

    if not solutions:
        print('no solutions found', file=sys.stderr)
        return 1

    if args.verbose or args.mode == Search.ALL:
        print(f'found {len(solutions)} solution(s)', file=sys.stderr)

    for s in solutions:
        if args.verbose or not (args.cmdline or args.json):
            print(solution_to_str(s, args.verbose), file=sys.stderr)
        if args.cmdline:
            print(solution_to_cmdline(s))
        if args.json:
            print(solution_to_json(s))

    return 0

def test_main_default(capsys: Any) -> None:
    assert main(['10M']) == 0
    out, err = capsys.readouterr()
    assert out == ''
    assert err == 'fGPS = 2000000, N31 = 1, N1_HS = 11, NC1_LS = 46, ' \
        'NC2_LS = 46, N2_HS = 11, N2_LS = 230\n'

def test_main_json(capsys: Any) -> None:
    assert main(['10M', '--json']) == 0
    out, err = capsys.readouterr()
    assert err == ''
    assert out == '{"fGPS": 2000000, "N31": 1, "N2_LS": 230, "N2_HS": 11, ' \
        '"N1_HS": 11, "NC1_LS": 46, "NC2_LS": 46}\n'

def test_main_all(capsys: Any) -> None:
    assert main(['1234.31', '5432', '--all', '--cmdline']) == 0
    out, err = capsys.readouterr()
    lines = out.splitlines()
    assert err == f'found {len(lines)} solution(s)\n'
    assert len(lines) == 16
    assert all(l.startswith('--gps ') for l in lines)

def test_main_verbose(capsys: Any) -> None:
    assert main(['10M', '96k', '-v', '--cmdline']) == 0
    out, err = capsys.readouterr()
    assert out.startswith('--gps ')
    lines = err.splitlines()
    assert lines[0] == 'found 1 solution(s)'
    assert 'f1 = 1e+07, f2 = 96000]' in lines[1]

def test_main_no_solution(capsys: Any) -> None:
    assert main(['3000M', '--all']) == 1
    _, err = capsys.readouterr()
    assert err == 'no solutions found\n'

def test_main_bad_input(capsys: Any) -> None:
    assert main(['0']) == 2
    _, err = capsys.readouterr()
    assert err.startswith('ERROR: ')
    assert main(['10M', '--f3-lo', '3M']) == 2

    for argv in ['10x'], ['10M', '--any', '--best'], \
            ['10M', '--json', '--cmdline'], []:
        try:
            main(argv)
        except SystemExit as e:
            assert e.code == 2, argv
        else:
            assert False, f'Accepted {argv}'
