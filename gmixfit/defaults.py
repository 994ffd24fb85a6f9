"""
numerical constants and default configuration

The determinant floor and the chi squared clamp are fixed values; fit
convergence downstream depends on them, so they are not tunable per call.
"""

# a gaussian with a covariance determinant below this is rejected
GMIX_LOW_DETVAL = 1.0e-200

# beyond this chi squared a gaussian contributes exactly zero
MAX_CHI2 = 25.0

# ellipticities that round off to 1 are pulled back to this
MAX_E = 0.99999999

# impossible starting value for the previous T in the EM iteration
EM_T_LAST_START = -9999.0

DEFAULT_EM_PARS = {
    'maxiter': 1000,
    'tol': 1.0e-6,
}

# flags reported by the EM fitter
EM_MAXITER = 2**0

# limit for the n-dimensional scalar mixture
GMIXND_MAX_DIM = 10
