"""
Fit an image with a gaussian mixture using the EM algorithm

The sky is treated as an extra, infinitely wide component.  It must be
non-zero somewhere for the algorithm to behave; prep_image can be used to
shift an image so all pixels are positive
"""
import logging
import math
import numpy as np
from numba import njit

from .gmix import GMix
from .gmix_nb import (
    gauss2d_set,
    gmix_get_T,
    jacobian_get_u,
    jacobian_get_v,
)
from .gexceptions import GMixRangeError, GMixFatalError, GMixMaxIterEM
from .defaults import (
    DEFAULT_EM_PARS,
    EM_MAXITER,
    EM_T_LAST_START,
    MAX_CHI2,
)

logger = logging.getLogger(__name__)

EM_OK = 0
EM_RANGE_ERROR_GTOT = 1
EM_RANGE_ERROR_P = 2
EM_RANGE_ERROR_DET = 3

_em_sums_dtype = [
    ('gi', 'f8'),

    # scratch for each pixel
    ('trowsum', 'f8'),
    ('tcolsum', 'f8'),
    ('tu2sum', 'f8'),
    ('tuvsum', 'f8'),
    ('tv2sum', 'f8'),

    # summed over pixels
    ('pnew', 'f8'),
    ('rowsum', 'f8'),
    ('colsum', 'f8'),
    ('u2sum', 'f8'),
    ('uvsum', 'f8'),
    ('v2sum', 'f8'),
]


class GMixEM(object):
    """
    Fit an image with a gaussian mixture using the EM algorithm

    parameters
    ----------
    obs: Observation
        An Observation object, containing the image and possibly
        non-trivial jacobian.  The weight map is ignored
    em_pars: dict, optional
        maxiter and tol for the iteration, see defaults.DEFAULT_EM_PARS
    raise_on_maxiter: bool, optional
        If True raise GMixMaxIterEM when the iteration limit is hit,
        otherwise just set the EM_MAXITER flag in the result

    examples
    --------
    obs = Observation(image, jacobian=jacobian)
    em = GMixEM(obs, em_pars={'maxiter': 2000, 'tol': 1.0e-6})
    em.go(gmix_guess, sky)

    res = em.get_result()
    gmix = em.get_gmix()
    """
    def __init__(self, obs, em_pars=None, raise_on_maxiter=False):

        self._obs = obs
        self.raise_on_maxiter = raise_on_maxiter

        self.em_pars = {}
        self.em_pars.update(DEFAULT_EM_PARS)
        if em_pars is not None:
            self.em_pars.update(em_pars)

        self._gm = None
        self._result = None

    def get_gmix(self):
        """
        Get the gaussian mixture from the final iteration
        """
        if self._gm is None:
            raise RuntimeError("run go() first")
        return self._gm

    def get_result(self):
        """
        Get some stats about the processing

        returns
        -------
        dict with flags, numiter, fdiff, sky and message
        """
        if self._result is None:
            raise RuntimeError("run go() first")
        return self._result

    def make_image(self, counts=None):
        """
        Get an image of the best fit mixture, scaled to the
        counts in the image
        """
        im = self.get_gmix().make_image(
            self._obs.image.shape,
            jacobian=self._obs.jacobian,
        )
        if counts is None:
            counts = self._obs.image.sum()
        im *= counts
        return im

    def go(self, gmix_guess, sky, maxiter=None, tol=None):
        """
        Run the em algorithm from the input starting guesses

        The guess is not modified; the fit is run on a copy which is
        available from get_gmix().  The amplitudes p of the result are
        fractions of the total counts in the image.  If a GMixRangeError
        is raised the mixture holds the state reached before the failure

        parameters
        ----------
        gmix_guess: GMix
            A gaussian mixture (GMix or child class) representing a starting
            guess for the algorithm
        sky: number
            The sky value per pixel in the image
        maxiter: number, optional
            The maximum number of iterations, default from em_pars
        tol: number, optional
            The tolerance in the fractional change in T used to determine
            convergence, default from em_pars
        """

        self._gm = None
        self._result = None

        if not isinstance(gmix_guess, GMix):
            raise GMixFatalError("gmix_guess must be a GMix")

        if maxiter is None:
            maxiter = self.em_pars['maxiter']
        if tol is None:
            tol = self.em_pars['tol']

        # always work on a full mixture, the model pars do not apply
        # once the em starts changing the gaussians
        gm = GMix(pars=gmix_guess.get_full_pars())
        self._gm = gm

        image = self._obs.image
        counts = image.sum()

        sums = np.zeros(len(gm), dtype=_em_sums_dtype)

        status, numiter, fdiff, nsky, value = em_run(
            gm.get_data(),
            image,
            self._obs.jacobian.get_data(),
            sums,
            float(sky),
            float(counts),
            float(tol),
            int(maxiter),
        )

        if status != EM_OK:
            mess = _get_error_message(status, value)
            logger.debug('em failed after %d iterations: %s', numiter, mess)
            raise GMixRangeError(mess)

        scale = self._obs.jacobian.get_sdet()
        flags = 0
        if numiter >= maxiter:
            flags = EM_MAXITER
            message = 'maxit'
        else:
            message = 'OK'

        self._result = {
            'flags': flags,
            'numiter': numiter,
            'fdiff': fdiff,
            'sky': nsky*counts*scale**2,
            'message': message,
        }
        logger.debug(
            'em numiter: %d fdiff: %g flags: %d',
            numiter, fdiff, flags,
        )

        if flags != 0 and self.raise_on_maxiter:
            raise GMixMaxIterEM("em hit maxiter %d" % maxiter)


def prep_image(im0):
    """
    Prep an image to fit with EM.  Make sure there are no pixels < 0

    parameters
    ----------
    image: ndarray
        2d image

    output
    ------
    new_image, sky:
        The image with new background level and the background level
    """
    im = np.array(im0, dtype='f8', copy=True)

    # need no zero pixels and sky value
    im_min = im.min()
    im_max = im.max()

    sky = 0.001*(im_max-im_min)

    im += (sky-im_min)

    return im, sky


def _get_error_message(status, value):
    if status == EM_RANGE_ERROR_GTOT:
        return "em gtot = 0"
    elif status == EM_RANGE_ERROR_P:
        return "em gaussian weight p = %g" % value
    else:
        return "gauss2d det too low: %g" % value


@njit
def em_clear_sums(sums):
    """
    zero all the sums
    """
    for i in range(sums.size):
        tsums = sums[i]

        tsums['gi'] = 0.0
        tsums['trowsum'] = 0.0
        tsums['tcolsum'] = 0.0
        tsums['tu2sum'] = 0.0
        tsums['tuvsum'] = 0.0
        tsums['tv2sum'] = 0.0

        tsums['pnew'] = 0.0
        tsums['rowsum'] = 0.0
        tsums['colsum'] = 0.0
        tsums['u2sum'] = 0.0
        tsums['uvsum'] = 0.0
        tsums['v2sum'] = 0.0


@njit
def em_set_gmix_from_sums(gmix, sums):
    """
    the M step: set the gaussians from the accumulated sums

    returns
    -------
    status, value
        value is the weight or the determinant on failure.  Gaussians
        before the failing one have already been updated
    """
    for i in range(gmix.size):
        tsums = sums[i]

        p = tsums['pnew']
        if not (p > 0.0):
            return EM_RANGE_ERROR_P, p

        pinv = 1.0/p

        ok, det = gauss2d_set(
            gmix[i],
            p,
            tsums['rowsum']*pinv,
            tsums['colsum']*pinv,
            tsums['u2sum']*pinv,
            tsums['uvsum']*pinv,
            tsums['v2sum']*pinv,
        )
        if not ok:
            return EM_RANGE_ERROR_DET, det

    return EM_OK, 0.0


@njit
def em_run(gmix, image, jacob, sums, sky, counts, tol, maxiter):
    """
    run the em algorithm

    parameters
    ----------
    gmix: gaussian mixture
        holds the guess and, on exit, the last iteration
    image: 2-d array
        the image; sky must be non-zero where the gaussians vanish
    jacob: jacobian array
    sums: em sums array
        same size as gmix, used as scratch
    sky: number
        sky per pixel
    counts: number
        total counts in the image
    tol: number
        tolerance in the fractional change in T
    maxiter: int
        maximum number of iterations

    returns
    -------
    status, numiter, fdiff, nsky, value
        value is only meaningful when status is not EM_OK
    """
    jac = jacob[0]

    nrow, ncol = image.shape

    scale = jac['sdet']
    area = nrow*ncol*scale*scale

    # zero counts means zero normalized data
    if counts != 0.0:
        icounts = 1.0/counts
    else:
        icounts = 0.0

    nsky = sky*icounts

    T_last = EM_T_LAST_START
    fdiff = math.inf

    numiter = 0
    while numiter < maxiter:
        skysum = 0.0
        em_clear_sums(sums)

        for row in range(nrow):
            u = jacobian_get_u(jac, row, 0)
            v = jacobian_get_v(jac, row, 0)

            for col in range(ncol):

                gtot = 0.0
                imnorm = image[row, col]*icounts

                for i in range(gmix.size):
                    tsums = sums[i]
                    gauss = gmix[i]

                    udiff = u - gauss['row']
                    vdiff = v - gauss['col']

                    u2 = udiff*udiff
                    v2 = vdiff*vdiff
                    uv = udiff*vdiff

                    chi2 = (
                        gauss['dcc']*u2 + gauss['drr']*v2
                        - 2.0*gauss['drc']*uv
                    )

                    if chi2 < MAX_CHI2 and chi2 >= 0.0:
                        gi = gauss['pnorm']*math.exp(-0.5*chi2)
                    else:
                        gi = 0.0

                    tsums['gi'] = gi
                    gtot += gi

                    tsums['trowsum'] = u*gi
                    tsums['tcolsum'] = v*gi
                    tsums['tu2sum'] = u2*gi
                    tsums['tuvsum'] = uv*gi
                    tsums['tv2sum'] = v2*gi

                gtot += nsky

                if gtot == 0.0:
                    return EM_RANGE_ERROR_GTOT, numiter, fdiff, nsky, gtot

                igrat = imnorm/gtot
                for i in range(gmix.size):
                    tsums = sums[i]

                    # wtau is gi[pix]/gtot[pix]*imnorm[pix]
                    wtau = tsums['gi']*igrat

                    tsums['pnew'] += wtau

                    tsums['rowsum'] += tsums['trowsum']*igrat
                    tsums['colsum'] += tsums['tcolsum']*igrat
                    tsums['u2sum'] += tsums['tu2sum']*igrat
                    tsums['uvsum'] += tsums['tuvsum']*igrat
                    tsums['v2sum'] += tsums['tv2sum']*igrat

                skysum += nsky*igrat

                u += jac['dudcol']
                v += jac['dvdcol']

        status, value = em_set_gmix_from_sums(gmix, sums)
        if status != EM_OK:
            return status, numiter, fdiff, nsky, value

        nsky = skysum/area

        T, psum = gmix_get_T(gmix)
        fdiff = abs((T - T_last)/T)

        if fdiff < tol:
            break

        T_last = T

        numiter += 1

    return EM_OK, numiter, fdiff, nsky, 0.0
