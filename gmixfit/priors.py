"""
simple priors on the parameters of a gaussian mixture model, and a joint
prior over [row, col, g1, g2, T, flux...] for use with least squares fitters
"""
import numpy as np

from .gexceptions import GMixRangeError


class Normal(object):
    """
    A one-dimensional normal distribution, unnormalized

    parameters
    ----------
    cen: number
        center of the distribution
    sigma: number
        width of the distribution
    """
    def __init__(self, cen, sigma):
        self.cen = cen
        self.sigma = sigma
        self.s2inv = 1.0/sigma**2

    def get_lnprob_scalar(self, x):
        """
        log probability for scalar input
        """
        diff = self.cen - x
        return -0.5*diff*diff*self.s2inv

    def get_prob_scalar(self, x):
        """
        probability for scalar input
        """
        return np.exp(self.get_lnprob_scalar(x))


class Normal2D(object):
    """
    A two-dimensional normal distribution with independent axes, e.g.
    for the center of an object

    parameters
    ----------
    cen1, cen2: numbers
        center in each dimension
    sigma1, sigma2: numbers
        widths in each dimension
    """
    def __init__(self, cen1, cen2, sigma1, sigma2):
        self.cen1 = cen1
        self.cen2 = cen2
        self.sigma1 = sigma1
        self.sigma2 = sigma2

        self.s2inv1 = 1.0/sigma1**2
        self.s2inv2 = 1.0/sigma2**2

    def get_lnprob_scalar(self, x1, x2):
        """
        log probability at the input location
        """
        lnp1, lnp2 = self.get_lnprob_scalar_sep(x1, x2)
        return lnp1 + lnp2

    def get_prob_scalar(self, x1, x2):
        """
        probability at the input location
        """
        return np.exp(self.get_lnprob_scalar(x1, x2))

    def get_lnprob_scalar_sep(self, x1, x2):
        """
        log probability at the input location, separately for
        each dimension
        """
        d1 = self.cen1 - x1
        d2 = self.cen2 - x2

        lnp1 = -0.5*d1*d1*self.s2inv1
        lnp2 = -0.5*d2*d2*self.s2inv2
        return lnp1, lnp2


class ZDisk2D(object):
    """
    uniform within a disk of the given radius, zero outside.  Useful
    as a prior on the shape g1, g2 with radius 1
    """
    def __init__(self, radius):
        self.radius = radius
        self.radius_sq = radius**2

    def get_lnprob_scalar1d(self, r):
        """
        0 inside the disk, GMixRangeError outside
        """
        if r >= self.radius:
            raise GMixRangeError("position out of bounds")
        return 0.0

    def get_prob_scalar1d(self, r):
        """
        1 inside the disk, 0 outside
        """
        if r >= self.radius:
            return 0.0
        else:
            return 1.0

    def get_lnprob_scalar2d(self, x, y):
        """
        0 inside the disk, GMixRangeError outside
        """
        r2 = x**2 + y**2
        if r2 >= self.radius_sq:
            raise GMixRangeError("position out of bounds")
        return 0.0

    def get_prob_scalar2d(self, x, y):
        """
        1 inside the disk, 0 outside
        """
        r2 = x**2 + y**2
        if r2 >= self.radius_sq:
            return 0.0
        else:
            return 1.0


class PriorSimpleSep(object):
    """
    Separate priors on each parameter of a simple model,
    [row, col, g1, g2, T, flux...] with one flux per band

    parameters
    ----------
    cen_prior: Normal2D or similar
        needs get_lnprob_scalar and get_lnprob_scalar_sep
    g_prior: ZDisk2D or similar
        needs get_lnprob_scalar2d
    T_prior: Normal or similar
    F_prior: Normal or similar, or a list of them for multiple bands
    """
    def __init__(self,
                 cen_prior,
                 g_prior,
                 T_prior,
                 F_prior):

        self.cen_prior = cen_prior
        self.g_prior = g_prior
        self.T_prior = T_prior

        if isinstance(F_prior, list):
            self.nband = len(F_prior)
        else:
            self.nband = 1
            F_prior = [F_prior]

        self.npars = 5+self.nband
        self.F_priors = F_prior

    def fill_fdiff(self, pars, fdiff):
        """
        set sqrt(-2ln(p)) ~ (model-data)/err

        returns
        -------
        the number of elements filled; pixel residuals can be filled
        starting at this index
        """
        index = 0

        lnp1, lnp2 = self.cen_prior.get_lnprob_scalar_sep(pars[0], pars[1])

        fdiff[index] = lnp1
        index += 1
        fdiff[index] = lnp2
        index += 1

        fdiff[index] = self.g_prior.get_lnprob_scalar2d(pars[2], pars[3])
        index += 1

        fdiff[index] = self.T_prior.get_lnprob_scalar(pars[4])
        index += 1

        for j in range(self.nband):
            F_prior = self.F_priors[j]
            fdiff[index] = F_prior.get_lnprob_scalar(pars[5+j])
            index += 1

        chi2 = -2*fdiff[0:index].copy()
        chi2.clip(min=0.0, max=None, out=chi2)
        fdiff[0:index] = np.sqrt(chi2)

        return index

    def get_prob_scalar(self, pars):
        """
        probability for scalar input (meaning one point)
        """

        lnp = self.get_lnprob_scalar(pars)
        p = np.exp(lnp)
        return p

    def get_lnprob_scalar(self, pars):
        """
        log probability for scalar input (meaning one point)
        """

        lnp = self.cen_prior.get_lnprob_scalar(pars[0], pars[1])
        lnp += self.g_prior.get_lnprob_scalar2d(pars[2], pars[3])
        lnp += self.T_prior.get_lnprob_scalar(pars[4])

        for j, F_prior in enumerate(self.F_priors):
            lnp += F_prior.get_lnprob_scalar(pars[5+j])

        return lnp
