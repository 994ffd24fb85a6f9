"""
n-dimensional gaussian mixtures with full covariance, for evaluating
probabilities of a parameter vector
"""
import math
import numpy as np
from numba import njit

from .gexceptions import GMixRangeError, GMixFatalError
from .defaults import GMIXND_MAX_DIM


class GMixND(object):
    """
    Gaussian mixture in arbitrary dimensions, up to GMIXND_MAX_DIM

    parameters
    ----------
    weights: array
        weights of the gaussians, shape [ngauss]
    means: array
        means, shape [ngauss, ndim]
    covars: array
        covariance matrices, shape [ngauss, ndim, ndim]
    """
    def __init__(self, weights, means, covars):
        self.set_mixture(weights, means, covars)

    def set_mixture(self, weights, means, covars):
        """
        set the mixture elements
        """

        weights = np.array(weights, dtype='f8', ndmin=1)
        means = np.array(means, dtype='f8', ndmin=2)
        covars = np.array(covars, dtype='f8', ndmin=3)

        if means.ndim != 2:
            raise GMixFatalError(
                "means must be 2-d [ngauss, ndim], got %d" % means.ndim
            )
        if covars.ndim != 3:
            raise GMixFatalError(
                "covars must be 3-d [ngauss, ndim, ndim], got %d" % covars.ndim
            )

        ngauss, ndim = means.shape
        if weights.size != ngauss:
            raise GMixFatalError(
                "got %d weights for %d gaussians" % (weights.size, ngauss)
            )
        if covars.shape != (ngauss, ndim, ndim):
            raise GMixFatalError(
                "covars shape %s does not match means shape %s" % (
                    covars.shape, means.shape,
                )
            )
        if ndim > GMIXND_MAX_DIM:
            raise GMixFatalError(
                "dim must be <= %d, got %d" % (GMIXND_MAX_DIM, ndim)
            )

        self.ngauss = ngauss
        self.ndim = ndim

        self.weights = weights
        self.means = means
        self.covars = covars

        self._calc_icovars_and_norms()

        self.tmp_lnprob = np.zeros(self.ngauss)

    def get_lnprob_scalar(self, pars):
        """
        (x - xmean) icovar (x-xmean)
        """
        return gmixnd_get_prob_scalar(
            self.log_pnorms,
            self.means,
            self.icovars,
            self.tmp_lnprob,
            _get_pars_array(pars),
            True,
        )

    def get_prob_scalar(self, pars):
        """
        (x - xmean) icovar (x-xmean)
        """
        return gmixnd_get_prob_scalar(
            self.log_pnorms,
            self.means,
            self.icovars,
            self.tmp_lnprob,
            _get_pars_array(pars),
            False,
        )

    def get_lnprob_array(self, pars):
        """
        array input, shape [npoints, ndim]; a 1-d array is interpreted as
        npoints values for ndim=1
        """

        pars = np.asarray(pars, dtype='f8')
        if pars.ndim == 1:
            pars = pars.reshape(pars.size, 1)

        n = pars.shape[0]
        lnp = np.zeros(n)

        for i in range(n):
            lnp[i] = self.get_lnprob_scalar(pars[i, :])

        return lnp

    def get_prob_array(self, pars):
        """
        array input, see get_lnprob_array
        """
        return np.exp(self.get_lnprob_array(pars))

    def _calc_icovars_and_norms(self):
        """
        Calculate the normalizations and inverse covariance matrices
        """

        twopi = 2.0*np.pi

        if self.ndim == 1:
            var = self.covars[:, 0, 0]
            for i in range(self.ngauss):
                if not (var[i] > 0.0):
                    raise GMixRangeError(
                        "covariance determinant %g <= 0" % var[i]
                    )

            norms = 1.0/np.sqrt(twopi*var)
            icovars = 1.0/self.covars
        else:
            norms = np.zeros(self.ngauss)
            icovars = np.zeros(self.covars.shape)
            for i in range(self.ngauss):
                cov = self.covars[i, :, :]

                det = np.linalg.det(cov)
                if not (det > 0.0):
                    raise GMixRangeError(
                        "covariance determinant %g <= 0" % det
                    )

                icov = np.linalg.inv(cov)
                n = 1.0/np.sqrt((twopi)**self.ndim*det)

                norms[i] = n
                icovars[i, :, :] = icov

        self.norms = norms
        self.pnorms = norms*self.weights
        self.log_pnorms = np.log(self.pnorms)
        self.icovars = icovars

    def __repr__(self):
        return 'GMixND ngauss: %d ndim: %d' % (self.ngauss, self.ndim)


def gmixnd_get_prob_scalar(log_pnorms, means, icovars, tmp_lnprob, pars, dolog):
    """
    log or linear probability of a single point under the mixture

    parameters
    ----------
    log_pnorms: array
        log(weight*norm) for each gaussian, shape [ngauss]
    means: array
        shape [ngauss, ndim]
    icovars: array
        inverse covariances, shape [ngauss, ndim, ndim]
    tmp_lnprob: array
        scratch of shape [ngauss]
    pars: array
        the point, shape [ndim]
    dolog: bool
        If True return the log probability
    """

    if means.ndim != 2:
        raise GMixFatalError("means dim must be 2, got %d" % means.ndim)
    if icovars.ndim != 3:
        raise GMixFatalError("icovars dim must be 3, got %d" % icovars.ndim)

    ngauss = log_pnorms.size
    ndim = means.shape[1]

    if ndim > GMIXND_MAX_DIM:
        raise GMixFatalError(
            "dim must be <= %d, got %d" % (GMIXND_MAX_DIM, ndim)
        )
    if pars.size != ndim:
        raise GMixFatalError(
            "n_dim is %d but n_pars is %d" % (ndim, pars.size)
        )
    if tmp_lnprob.size != ngauss:
        raise GMixFatalError(
            "n_gauss is %d but n_tmp_lnprob is %d" % (ngauss, tmp_lnprob.size)
        )

    return _gmixnd_get_prob_scalar(
        log_pnorms, means, icovars, tmp_lnprob, pars, dolog,
    )


@njit
def _gmixnd_get_prob_scalar(log_pnorms, means, icovars, tmp_lnprob, pars,
                            dolog):
    """
    log-sum-exp over the gaussians, relative to the largest term
    """
    ngauss = log_pnorms.size
    ndim = means.shape[1]

    xdiff = np.zeros(ndim)

    lnpmax = -math.inf
    for i in range(ngauss):

        for idim1 in range(ndim):
            xdiff[idim1] = pars[idim1] - means[i, idim1]

        chi2 = 0.0
        for idim1 in range(ndim):
            for idim2 in range(ndim):
                chi2 += xdiff[idim1]*xdiff[idim2]*icovars[i, idim1, idim2]

        lnp = -0.5*chi2 + log_pnorms[i]
        if lnp > lnpmax:
            lnpmax = lnp

        tmp_lnprob[i] = lnp

    p = 0.0
    for i in range(ngauss):
        p += math.exp(tmp_lnprob[i] - lnpmax)

    if dolog:
        return math.log(p) + lnpmax
    else:
        return p*math.exp(lnpmax)


def _get_pars_array(pars):
    return np.array(pars, dtype='f8', ndmin=1)
