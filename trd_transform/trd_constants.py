# trd_constants.py

# Tracklet data word layout
NBITSTRKLPOS = 11    # bits of the packed position field
NBITSTRKLSLOPE = 8   # bits of the packed slope field

GRANULARITYTRKLPOS = 1.0 / 40     # pad units per position bin
GRANULARITYTRKLSLOPE = 1.0 / 1000  # pads per timebin per slope bin
ADDBITSHIFTSLOPE = 1 << 3          # slope is stored with 3 bits less resolution than position

# Pad plane read-out
NCOLMCM = 18           # pad columns per MCM
Y_CALIB_OFFSET = 10. - 1.  # TDP eq 16.1, -1 for pads shared between MCMs
Y_PAD_OFFSET = 72      # pads from chamber edge to chamber center

# Chamber geometry (cm)
CDRHGHT = 3.0         # drift region height
CAMHGHT = 0.7         # amplification region height
XDRIFT_MARGIN = 0.5   # distance below the cathode plane used as nominal drift X

# Timing
T0_REFERENCE_CHAMBER = 435  # PHOS hole chamber, holds the chamber-averaged t0
TIMEBIN_T0 = 4.0            # timebin of the start of the drift region
TIMEBIN_WIDTH = 0.1         # 100 ns per timebin
