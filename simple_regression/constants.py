"""
Numerical defaults shared by the fitters, the prediction helpers and the CLI.
"""

INTERCEPT_NAME = "(Intercept)"

# Same defaults as R's glm.control(epsilon = 1e-8, maxit = 25).
DEFAULT_MAX_ITER = 25
DEFAULT_TOL = 1e-8

DEFAULT_THRESHOLD = 0.5

# A QR pivot smaller than this fraction of its column norm counts as zero
# (the tolerance R's lm() uses).
RANK_TOL = 1e-7

# Every |y - p| below this means the classes are perfectly separated.
SEPARATION_TOL = 1e-6

# Fitted probabilities closer than this to 0 or 1 are "numerically 0 or 1".
PROBABILITY_EPS = 1e-10
