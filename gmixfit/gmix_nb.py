"""
numba kernels for gaussian mixtures

The mixtures are structured arrays with the gaussian dtype defined in
gmix.py, the jacobian a length one structured array defined in jacobian.py.

Error checking should be done in python.  The kernels never raise; failures
are reported through the returned status, along with the offending value,
and the callers turn them into exceptions.
"""
import math
from numba import njit

from .defaults import GMIX_LOW_DETVAL, MAX_CHI2, MAX_E

# status codes returned by the fill and convolve kernels
FILL_OK = 0
FILL_BAD_SHAPE = 1
FILL_BAD_DET = 2


@njit
def gauss2d_set(gauss, p, row, col, irr, irc, icc):
    """
    set the gaussian and its derived quantities

    parameters
    ----------
    gauss: record
        An element of a gaussian mixture array
    p, row, col, irr, irc, icc: floats
        Amplitude, center and covariance

    returns
    -------
    ok, det: bool, float
        ok is False if the determinant is too low; in that case the
        gaussian is not modified
    """

    det = irr*icc - irc*irc

    # also catches nan
    if not (det >= GMIX_LOW_DETVAL):
        return False, det

    gauss['p'] = p
    gauss['row'] = row
    gauss['col'] = col
    gauss['irr'] = irr
    gauss['irc'] = irc
    gauss['icc'] = icc

    gauss['det'] = det

    idet = 1.0/det
    gauss['drr'] = irr*idet
    gauss['drc'] = irc*idet
    gauss['dcc'] = icc*idet
    gauss['norm'] = 1.0/(2*math.pi*math.sqrt(det))

    gauss['pnorm'] = p*gauss['norm']

    return True, det


@njit
def gmix_set_gauss(gmix, index, p, row, col, irr, irc, icc):
    """
    set gaussian index of the mixture, see gauss2d_set
    """
    return gauss2d_set(gmix[index], p, row, col, irr, irc, icc)


@njit
def gauss2d_eval(gauss, u, v):
    """
    evaluate a single gaussian at the location u, v

    Beyond MAX_CHI2 the contribution is exactly zero
    """
    udiff = u - gauss['row']
    vdiff = v - gauss['col']

    chi2 = (
        gauss['dcc']*udiff*udiff
        + gauss['drr']*vdiff*vdiff
        - 2.0*gauss['drc']*udiff*vdiff
    )

    if chi2 < MAX_CHI2 and chi2 >= 0.0:
        return gauss['pnorm']*math.exp(-0.5*chi2)
    else:
        return 0.0


@njit
def gmix_eval(gmix, u, v):
    """
    evaluate the mixture at the location u, v
    """
    val = 0.0
    for i in range(gmix.size):
        val += gauss2d_eval(gmix[i], u, v)

    return val


@njit
def gmix_get_cen(gmix):
    """
    weighted center of the mixture

    returns
    -------
    row, col, psum
        The center is only meaningful if psum is not zero
    """
    row = 0.0
    col = 0.0
    psum = 0.0

    for i in range(gmix.size):
        gauss = gmix[i]

        p = gauss['p']
        row += p*gauss['row']
        col += p*gauss['col']
        psum += p

    if psum != 0.0:
        row /= psum
        col /= psum

    return row, col, psum


@njit
def gmix_get_T(gmix):
    """
    weighted T=irr+icc of the mixture

    returns
    -------
    T, psum
        T is only meaningful if psum is not zero
    """
    T = 0.0
    psum = 0.0
    for i in range(gmix.size):
        gauss = gmix[i]

        psum += gauss['p']
        T += gauss['p']*(gauss['irr'] + gauss['icc'])

    if psum != 0.0:
        T /= psum

    return T, psum


@njit
def g1g2_to_e1e2(g1, g2):
    """
    convert reduced shear g1,g2 to standard ellipticity e1,e2

    returns
    -------
    ok, e1, e2, g
        ok is False if |g| >= 1
    """
    g = math.sqrt(g1*g1 + g2*g2)

    if g >= 1.0:
        return False, 0.0, 0.0, g

    if g == 0.0:
        return True, 0.0, 0.0, g

    eta = 2*math.atanh(g)
    e = math.tanh(eta)
    if e >= 1.0:
        # round off
        e = MAX_E

    fac = e/g

    return True, fac*g1, fac*g2, g


@njit
def e1e2_to_g1g2(e1, e2):
    """
    convert standard ellipticity e1,e2 to reduced shear g1,g2

    returns
    -------
    ok, g1, g2, e
        ok is False if |e| >= 1
    """
    e = math.sqrt(e1*e1 + e2*e2)

    if e >= 1.0:
        return False, 0.0, 0.0, e

    if e == 0.0:
        return True, 0.0, 0.0, e

    eta = math.atanh(e)
    g = math.tanh(0.5*eta)
    if g >= 1.0:
        g = MAX_E

    fac = g/e

    return True, fac*e1, fac*e2, e


@njit
def gmix_fill_full(gmix, pars):
    """
    fill the mixture from full pars, 6 per gaussian
    [p, row, col, irr, irc, icc]

    The caller must ensure pars.size == 6*gmix.size

    returns
    -------
    status, value
        value is the offending determinant on failure
    """
    for i in range(gmix.size):
        beg = i*6

        ok, det = gauss2d_set(
            gmix[i],
            pars[beg+0],
            pars[beg+1],
            pars[beg+2],
            pars[beg+3],
            pars[beg+4],
            pars[beg+5],
        )
        if not ok:
            return FILL_BAD_DET, det

    return FILL_OK, 0.0


@njit
def _fill_simple_range(gmix, start, row, col, e1, e2, T, flux, fvals, pvals):
    """
    fill gaussians start:start+fvals.size sharing a center and ellipticity
    """
    for i in range(fvals.size):
        T_i_2 = 0.5*T*fvals[i]
        flux_i = flux*pvals[i]

        ok, det = gauss2d_set(
            gmix[start+i],
            flux_i,
            row,
            col,
            T_i_2*(1-e1),
            T_i_2*e2,
            T_i_2*(1+e1),
        )
        if not ok:
            return FILL_BAD_DET, det

    return FILL_OK, 0.0


@njit
def gmix_fill_simple(gmix, pars, fvals, pvals):
    """
    fill a simple model from [row, col, g1, g2, T, flux]

    parameters
    ----------
    gmix: gaussian mixture
        must have fvals.size elements
    pars: array
        The 6 shape parameters
    fvals, pvals: arrays
        relative sizes and weights for the profile family

    returns
    -------
    status, value
        value is |g| or the determinant on failure
    """

    row = pars[0]
    col = pars[1]
    g1 = pars[2]
    g2 = pars[3]
    T = pars[4]
    flux = pars[5]

    ok, e1, e2, g = g1g2_to_e1e2(g1, g2)
    if not ok:
        return FILL_BAD_SHAPE, g

    return _fill_simple_range(
        gmix, 0, row, col, e1, e2, T, flux, fvals, pvals,
    )


@njit
def gmix_fill_bdf(gmix,
                  pars,
                  fvals_exp, pvals_exp,
                  fvals_dev, pvals_dev,
                  TdByTe):
    """
    fill a bulge+disk model from [row, col, g1, g2, T, fracdev, flux]

    The exp components come first, followed by the dev components.  Both
    share the center and ellipticity; the dev size is T*TdByTe
    """

    row = pars[0]
    col = pars[1]
    g1 = pars[2]
    g2 = pars[3]
    T = pars[4]
    fracdev = pars[5]
    flux = pars[6]

    ok, e1, e2, g = g1g2_to_e1e2(g1, g2)
    if not ok:
        return FILL_BAD_SHAPE, g

    status, val = _fill_simple_range(
        gmix, 0, row, col, e1, e2,
        T, (1.0-fracdev)*flux,
        fvals_exp, pvals_exp,
    )
    if status != FILL_OK:
        return status, val

    return _fill_simple_range(
        gmix, fvals_exp.size, row, col, e1, e2,
        T*TdByTe, fracdev*flux,
        fvals_dev, pvals_dev,
    )


@njit
def convolve_fill(output, gmix, psf):
    """
    fill output with the convolution of gmix and psf

    The psf is re-centered on its own weighted center, so the object
    center is preserved.  The caller must ensure
    output.size == gmix.size*psf.size and that the psf has a non-zero total
    weight

    returns
    -------
    status, value
        value is the offending determinant on failure
    """
    psf_rowcen, psf_colcen, psf_psum = gmix_get_cen(psf)
    psf_ipsum = 1.0/psf_psum

    itot = 0
    for iobj in range(gmix.size):
        obj_gauss = gmix[iobj]

        for ipsf in range(psf.size):
            psf_gauss = psf[ipsf]

            p = obj_gauss['p']*psf_gauss['p']*psf_ipsum

            row = obj_gauss['row'] + (psf_gauss['row']-psf_rowcen)
            col = obj_gauss['col'] + (psf_gauss['col']-psf_colcen)

            irr = obj_gauss['irr'] + psf_gauss['irr']
            irc = obj_gauss['irc'] + psf_gauss['irc']
            icc = obj_gauss['icc'] + psf_gauss['icc']

            ok, det = gauss2d_set(
                output[itot], p, row, col, irr, irc, icc,
            )
            if not ok:
                return FILL_BAD_DET, det

            itot += 1

    return FILL_OK, 0.0


@njit
def jacobian_get_u(jac, row, col):
    """
    u for the pixel location; jac is the jacobian record
    """
    return (
        jac['dudrow']*(row - jac['row0'])
        + jac['dudcol']*(col - jac['col0'])
    )


@njit
def jacobian_get_v(jac, row, col):
    """
    v for the pixel location; jac is the jacobian record
    """
    return (
        jac['dvdrow']*(row - jac['row0'])
        + jac['dvdcol']*(col - jac['col0'])
    )


@njit
def _eval_pixel_sub(gmix, jac, row, col, nsub):
    """
    mean of the mixture over an nsub x nsub grid within the pixel
    """
    stepsize = 1.0/nsub
    offset = (nsub-1)*stepsize/2.0
    areafac = 1.0/(nsub*nsub)

    # sub-steps while moving along column direction
    ustepsize = stepsize*jac['dudcol']
    vstepsize = stepsize*jac['dvdcol']

    tval = 0.0
    trow = row - offset
    lowcol = col - offset

    for rowsub in range(nsub):
        u = jacobian_get_u(jac, trow, lowcol)
        v = jacobian_get_v(jac, trow, lowcol)

        for colsub in range(nsub):
            tval += gmix_eval(gmix, u, v)

            u += ustepsize
            v += vstepsize

        trow += stepsize

    return tval*areafac


@njit
def render(gmix, image, nsub):
    """
    add the mixture to the image, without a jacobian

    The mixture is evaluated directly in pixel coordinates, averaged over an
    nsub x nsub grid in each pixel
    """
    stepsize = 1.0/nsub
    offset = (nsub-1)*stepsize/2.0
    areafac = 1.0/(nsub*nsub)

    nrow, ncol = image.shape

    for row in range(nrow):
        for col in range(ncol):

            tval = 0.0
            trow = row - offset

            for rowsub in range(nsub):
                tcol = col - offset
                for colsub in range(nsub):

                    tval += gmix_eval(gmix, trow, tcol)

                    tcol += stepsize

                trow += stepsize

            # add to existing values
            image[row, col] += tval*areafac


@njit
def render_jacob(gmix, image, nsub, jacob):
    """
    add the mixture to the image, mapping each sub-pixel through the
    jacobian
    """
    jac = jacob[0]

    nrow, ncol = image.shape
    for row in range(nrow):
        for col in range(ncol):
            image[row, col] += _eval_pixel_sub(gmix, jac, row, col, nsub)


@njit
def get_loglike(gmix, image, weight, jacob):
    """
    gaussian log likelihood of the image given the mixture

    returns
    -------
    loglike, s2n_numer, s2n_denom
    """
    jac = jacob[0]

    loglike = 0.0
    s2n_numer = 0.0
    s2n_denom = 0.0

    nrow, ncol = image.shape
    for row in range(nrow):
        u = jacobian_get_u(jac, row, 0)
        v = jacobian_get_v(jac, row, 0)

        for col in range(ncol):

            ivar = weight[row, col]
            if ivar > 0.0:
                data = image[row, col]
                model_val = gmix_eval(gmix, u, v)

                diff = model_val - data
                loglike += diff*diff*ivar
                s2n_numer += data*model_val*ivar
                s2n_denom += model_val*model_val*ivar

            u += jac['dudcol']
            v += jac['dvdcol']

    loglike *= (-0.5)

    return loglike, s2n_numer, s2n_denom


@njit
def get_loglike_robust(gmix, image, weight, jacob, nu, logfactor):
    """
    student-t log likelihood of the image given the mixture

    logfactor must be log(gamma((nu+1)/2)/(gamma(nu/2)*sqrt(pi*nu)))

    returns
    -------
    loglike, s2n_numer, s2n_denom
    """
    jac = jacob[0]

    nupow = -0.5*(nu+1.0)

    loglike = 0.0
    s2n_numer = 0.0
    s2n_denom = 0.0

    nrow, ncol = image.shape
    for row in range(nrow):
        u = jacobian_get_u(jac, row, 0)
        v = jacobian_get_v(jac, row, 0)

        for col in range(ncol):

            ivar = weight[row, col]
            if ivar > 0.0:
                data = image[row, col]
                model_val = gmix_eval(gmix, u, v)

                diff = model_val - data
                loglike += logfactor + nupow*math.log(1.0+diff*diff*ivar/nu)
                s2n_numer += data*model_val*ivar
                s2n_denom += model_val*model_val*ivar

            u += jac['dudcol']
            v += jac['dvdcol']

    return loglike, s2n_numer, s2n_denom


@njit
def fill_fdiff(gmix, image, weight, jacob, fdiff, start):
    """
    fill fdiff[start:] with (model-data)*sqrt(ivar), zero for masked
    pixels

    returns
    -------
    s2n_numer, s2n_denom
    """
    jac = jacob[0]

    s2n_numer = 0.0
    s2n_denom = 0.0

    # we might start somewhere after the priors
    fdiff_i = start

    nrow, ncol = image.shape
    for row in range(nrow):
        u = jacobian_get_u(jac, row, 0)
        v = jacobian_get_v(jac, row, 0)

        for col in range(ncol):

            ivar = weight[row, col]
            if ivar > 0.0:
                ierr = math.sqrt(ivar)

                data = image[row, col]
                model_val = gmix_eval(gmix, u, v)

                fdiff[fdiff_i] = (model_val-data)*ierr
                s2n_numer += data*model_val*ivar
                s2n_denom += model_val*model_val*ivar
            else:
                fdiff[fdiff_i] = 0.0

            fdiff_i += 1

            u += jac['dudcol']
            v += jac['dvdcol']

    return s2n_numer, s2n_denom


@njit
def fill_fdiff_sub(gmix, image, weight, jacob, fdiff, start, nsub):
    """
    same as fill_fdiff but the model is averaged over an nsub x nsub
    grid within each pixel
    """
    jac = jacob[0]

    s2n_numer = 0.0
    s2n_denom = 0.0

    fdiff_i = start

    nrow, ncol = image.shape
    for row in range(nrow):
        for col in range(ncol):

            ivar = weight[row, col]
            if ivar > 0.0:
                model_val = _eval_pixel_sub(gmix, jac, row, col, nsub)

                ierr = math.sqrt(ivar)
                data = image[row, col]

                fdiff[fdiff_i] = (model_val-data)*ierr
                s2n_numer += data*model_val*ivar
                s2n_denom += model_val*model_val*ivar
            else:
                fdiff[fdiff_i] = 0.0

            fdiff_i += 1

    return s2n_numer, s2n_denom


@njit
def get_model_s2n_sum(gmix, weight, jacob):
    """
    sum of model**2 * ivar over unmasked pixels
    """
    jac = jacob[0]

    s2n_sum = 0.0

    nrow, ncol = weight.shape
    for row in range(nrow):
        u = jacobian_get_u(jac, row, 0)
        v = jacobian_get_v(jac, row, 0)

        for col in range(ncol):

            ivar = weight[row, col]
            if ivar > 0.0:
                model_val = gmix_eval(gmix, u, v)
                s2n_sum += model_val*model_val*ivar

            u += jac['dudcol']
            v += jac['dvdcol']

    return s2n_sum
