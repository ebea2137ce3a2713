from fractions import Fraction

# All the frequencies are in Hz.
Hz = Fraction(1)
kHz = 1000 * Hz
MHz = 1000 * kHz

# VCO and phase detector limits.
# Source: Silicon Labs Si53xx-RM Rev. 1.3, Table 26
VCO_LO = 4_850 * MHz
VCO_HI = 5_670 * MHz
F3_LO = 2 * kHz
F3_HI = 2 * MHz

# Maximum frequency of the GPS reference output.
# Source: ublox MAX-M8 series data sheet
GPS_HI = 10 * MHz

# High speed dividers, N1_HS and N2_HS.
HS_MIN = 4
HS_MAX = 11

# Low speed dividers, NC1_LS, NC2_LS and N2_LS.  These are even only.  The
# data sheet allows 1 as well, but the GPS reference clock doesn't work with
# that in CMOS mode.  (https://github.com/simontheu/lb-gps-linux/issues/4)
LS_MAX = 1 << 20

# Phase detector input divider, N31.
N31_MAX = 1 << 19

# Register width of all the divider and frequency settings.
FIELD_MAX = (1 << 32) - 1
