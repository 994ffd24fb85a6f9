"""
gaussian mixtures

GMix:
    A general two-dimensional gaussian mixture, filled from full
    parameters [p, row, col, irr, irc, icc] for each gaussian.
GMixModel:
    A mixture built from shape parameters [row, col, g1, g2, T, flux] for
    one of the fixed profile families.
GMixBDF:
    bulge+disk mixture with parameters [row, col, g1, g2, T, fracdev, flux]
"""
import numpy as np
from scipy.special import gammaln

from . import gmix_nb
from .gmix_nb import FILL_OK, FILL_BAD_SHAPE
from .gexceptions import GMixRangeError, GMixFatalError

_gauss2d_dtype = [
    ('p', 'f8'),
    ('row', 'f8'),
    ('col', 'f8'),
    ('irr', 'f8'),
    ('irc', 'f8'),
    ('icc', 'f8'),
    ('det', 'f8'),
    ('drr', 'f8'),
    ('drc', 'f8'),
    ('dcc', 'f8'),
    ('norm', 'f8'),
    ('pnorm', 'f8'),
]

GMIX_FULL = 0
GMIX_GAUSS = 1
GMIX_TURB = 2
GMIX_EXP = 3
GMIX_DEV = 4
GMIX_BDF = 5

_gmix_model_dict = {
    'full': GMIX_FULL,
    GMIX_FULL: GMIX_FULL,
    'gauss': GMIX_GAUSS,
    GMIX_GAUSS: GMIX_GAUSS,
    'turb': GMIX_TURB,
    GMIX_TURB: GMIX_TURB,
    'exp': GMIX_EXP,
    GMIX_EXP: GMIX_EXP,
    'dev': GMIX_DEV,
    GMIX_DEV: GMIX_DEV,
    'bdf': GMIX_BDF,
    GMIX_BDF: GMIX_BDF,
}

_gmix_string_dict = {
    GMIX_FULL: 'full',
    GMIX_GAUSS: 'gauss',
    GMIX_TURB: 'turb',
    GMIX_EXP: 'exp',
    GMIX_DEV: 'dev',
    GMIX_BDF: 'bdf',
}

_gmix_ngauss_dict = {
    GMIX_GAUSS: 1,
    GMIX_TURB: 3,
    GMIX_EXP: 6,
    GMIX_DEV: 10,
    GMIX_BDF: 16,
}

_gmix_npars_dict = {
    GMIX_GAUSS: 6,
    GMIX_TURB: 6,
    GMIX_EXP: 6,
    GMIX_DEV: 6,
    GMIX_BDF: 7,
}


def _readonly(data):
    arr = np.array(data, dtype='f8')
    arr.flags.writeable = False
    return arr


# pvals are relative weights, fvals relative sizes
_pvals_exp = _readonly([
    0.00061601229677880041,
    0.0079461395724623237,
    0.053280454055540001,
    0.21797364640726541,
    0.45496740582554868,
    0.26521634184240478,
])
_fvals_exp = _readonly([
    0.002467115141477932,
    0.018147435573256168,
    0.07944063151366336,
    0.27137669897479122,
    0.79782256866993773,
    2.1623306025075739,
])

_pvals_dev = _readonly([
    6.5288960012625658e-05,
    0.00044199216814302695,
    0.0020859587871659754,
    0.0075913681418996841,
    0.02260266219257237,
    0.056532254390212859,
    0.11939049233042602,
    0.20969545753234975,
    0.29254151133139222,
    0.28905301416582552,
])
_fvals_dev = _readonly([
    3.068330909892871e-07,
    3.551788624668698e-06,
    2.542810833482682e-05,
    0.0001466508940804874,
    0.0007457199853069548,
    0.003544702600428794,
    0.01648881157673708,
    0.07893194619504579,
    0.4203787615506401,
    3.055782252301236,
])

_pvals_turb = _readonly([
    0.596510042804182,
    0.4034898268889178,
    1.303069003078001e-07,
])
_fvals_turb = _readonly([
    0.5793612389470884,
    1.621860687127999,
    7.019347162356363,
])

_pvals_gauss = _readonly([1.0])
_fvals_gauss = _readonly([1.0])

_gmix_tables = {
    GMIX_GAUSS: (_fvals_gauss, _pvals_gauss),
    GMIX_TURB: (_fvals_turb, _pvals_turb),
    GMIX_EXP: (_fvals_exp, _pvals_exp),
    GMIX_DEV: (_fvals_dev, _pvals_dev),
}


def get_model_num(model):
    """
    get the model number, e.g. GMIX_EXP for 'exp'
    """
    try:
        return _gmix_model_dict[model]
    except (KeyError, TypeError):
        raise GMixFatalError("bad gmix model: '%s'" % (model,))


def get_model_name(model):
    """
    get the model name, e.g. 'exp' for GMIX_EXP
    """
    num = get_model_num(model)
    return _gmix_string_dict[num]


def get_model_ngauss(model):
    """
    number of gaussians for the profile family

    The count for full models depends on the parameters, so they are not
    accepted here
    """
    num = get_model_num(model)
    if num == GMIX_FULL:
        raise GMixFatalError(
            "number of gaussians for full models depends on the pars"
        )
    return _gmix_ngauss_dict[num]


def get_model_npars(model):
    """
    number of parameters for the profile family
    """
    num = get_model_num(model)
    if num == GMIX_FULL:
        raise GMixFatalError(
            "number of pars for full models depends on the number "
            "of gaussians"
        )
    return _gmix_npars_dict[num]


def _check_fill_status(status, value):
    """
    raise GMixRangeError for a failed fill
    """
    if status == FILL_OK:
        return

    if status == FILL_BAD_SHAPE:
        raise GMixRangeError("g out of bounds: %g" % value)
    else:
        raise GMixRangeError("gauss2d det too low: %g" % value)


class GMix(object):
    """
    A general two-dimensional gaussian mixture.

    parameters
    ----------
    ngauss: number, optional
        number of gaussians.  ngauss= or pars= must be sent
    pars: array-like, optional
        6*ngauss elements to fill the gaussian mixture,
        [p, row, col, irr, irc, icc] for each gaussian

    methods
    -------
    copy(self):
        make a new copy of this GMix
    convolve(psf):
        Get a new GMix that is the convolution of the GMix with the input psf
    get_T():
        get T=sum(p*T_i)/sum(p)
    get_cen():
        get the weighted center
    make_image(dims, nsub=1, jacobian=None):
        render the mixture into a new image
    get_loglike(obs):
        gaussian log likelihood of the observation
    fill_fdiff(obs, fdiff, start=0, nsub=1):
        fill residuals for a least squares fitter
    """
    def __init__(self, ngauss=None, pars=None):

        self._model = GMIX_FULL
        self._model_name = 'full'

        if ngauss is None and pars is None:
            raise GMixFatalError("send ngauss= or pars=")

        if pars is not None:
            npars = len(pars)
            if (npars % 6) != 0:
                raise GMixFatalError(
                    "full pars should be multiple of 6, got %d" % npars
                )
            ngauss = npars//6

        self._ngauss = ngauss
        self._npars = ngauss*6

        self.reset()

        if pars is not None:
            self.fill(pars)

    def get_data(self):
        """
        Get the underlying array
        """
        return self._data

    def get_model(self):
        """
        the model name
        """
        return self._model_name

    def get_ngauss(self):
        """
        number of gaussians
        """
        return self._ngauss

    def get_full_pars(self):
        """
        Get the full gaussian array as an array of shape [ngauss, 6]
        flattened to [p, row, col, irr, irc, icc] for each
        """
        gm = self._data

        pars = np.zeros(self._ngauss*6)
        for i in range(self._ngauss):
            beg = i*6

            pars[beg+0] = gm['p'][i]
            pars[beg+1] = gm['row'][i]
            pars[beg+2] = gm['col'][i]
            pars[beg+3] = gm['irr'][i]
            pars[beg+4] = gm['irc'][i]
            pars[beg+5] = gm['icc'][i]

        return pars

    def copy(self):
        """
        Get a new GMix with the same parameters
        """
        gmix = GMix(ngauss=self._ngauss)
        gmix._data[:] = self._data[:]
        gmix._pars = self.get_full_pars()
        return gmix

    def fill(self, pars):
        """
        Fill in the gaussian mixture with new parameters

        The fill is all or nothing: if any gaussian is invalid a
        GMixRangeError is raised and the mixture is not modified

        parameters
        ----------
        pars: ndarray or sequence
            The parameters
        """

        pars = np.array(pars, dtype='f8', ndmin=1)
        if pars.size != self._npars:
            raise GMixFatalError(
                "model '%s' requires %d pars, got %d" % (
                    self._model_name, self._npars, pars.size,
                )
            )

        data = self._data.copy()
        status, value = self._fill_data(data, pars)
        _check_fill_status(status, value)

        self._data[:] = data
        self._pars = pars

    def _fill_data(self, data, pars):
        return gmix_nb.gmix_fill_full(data, pars)

    def set_gauss(self, index, p, row, col, irr, irc, icc):
        """
        set one of the gaussians; it is not modified if the
        determinant is too low

        parameters
        ----------
        index: int
            index of the gaussian
        p, row, col, irr, irc, icc: numbers
            amplitude, center and covariance
        """
        if index < 0 or index >= self._ngauss:
            raise GMixFatalError(
                "index %d out of bounds [0,%d]" % (index, self._ngauss-1)
            )

        ok, det = gmix_nb.gmix_set_gauss(
            self._data,
            index,
            float(p), float(row), float(col),
            float(irr), float(irc), float(icc),
        )
        if not ok:
            raise GMixRangeError("gauss2d det too low: %g" % det)

    def get_psum(self):
        """
        get sum(p)
        """
        return self._data['p'].sum()

    def get_flux(self):
        """
        get sum(p), the total flux
        """
        return self.get_psum()

    def set_flux(self, flux):
        """
        set the total flux, keeping the relative weights
        """
        psum = self.get_psum()
        if psum == 0.0:
            raise GMixRangeError("cannot rescale a gmix with psum=0")

        rat = flux/psum
        self._data['p'] *= rat
        self._data['pnorm'] *= rat

    def get_cen(self):
        """
        get the weighted center (row, col)
        """
        row, col, psum = gmix_nb.gmix_get_cen(self._data)
        if psum == 0.0:
            raise GMixRangeError("cannot get center: psum=0")
        return row, col

    def set_cen(self, row, col):
        """
        Move the mixture to a new center, keeping the offsets of the
        individual gaussians from the weighted center
        """
        row0, col0 = self.get_cen()

        self._data['row'] += row - row0
        self._data['col'] += col - col0

    def get_T(self):
        """
        get weighted sum of T=irr+icc for the mixture
        """
        T, psum = gmix_nb.gmix_get_T(self._data)
        if psum == 0.0:
            raise GMixRangeError("cannot get T: psum=0")
        return T

    def get_sigma(self):
        """
        get sqrt(T/2)
        """
        T = self.get_T()
        return np.sqrt(T/2.)

    def get_e1e2T(self):
        """
        get e1, e2 and T for the total gaussian mixture
        """
        gm = self._data
        psum = self.get_psum()
        if psum == 0.0:
            raise GMixRangeError("cannot get moments: psum=0")

        irr = (gm['p']*gm['irr']).sum()/psum
        irc = (gm['p']*gm['irc']).sum()/psum
        icc = (gm['p']*gm['icc']).sum()/psum

        T = irr + icc
        if T == 0.0:
            raise GMixRangeError("T=0, cannot get ellipticity")

        e1 = (icc - irr)/T
        e2 = 2.0*irc/T
        return e1, e2, T

    def get_g1g2T(self):
        """
        get g1, g2 and T for the total gaussian mixture
        """
        e1, e2, T = self.get_e1e2T()
        ok, g1, g2, e = gmix_nb.e1e2_to_g1g2(e1, e2)
        if not ok:
            raise GMixRangeError("e out of bounds: %g" % e)
        return g1, g2, T

    def convolve(self, psf):
        """
        Get a new GMix that is the convolution of the GMix with the input psf

        parameters
        ----------
        psf: GMix object
        """
        if not isinstance(psf, GMix):
            raise TypeError("Can only convolve with another GMix")

        ntot = self._ngauss*psf._ngauss
        output = GMix(ngauss=ntot)
        convolve_fill(output, self, psf)
        return output

    def make_image(self, dims, nsub=1, jacobian=None):
        """
        Render the mixture into a new image

        parameters
        ----------
        dims: 2-element sequence
            dimensions [nrows, ncols]
        nsub: integer, optional
            Defines a grid for sub-pixel integration
        jacobian: Jacobian, optional
            Map from pixel to sky coordinates.  If not sent the mixture
            is evaluated in pixel coordinates
        """
        dims = tuple(dims)
        if len(dims) != 2:
            raise GMixFatalError("dims must be 2 element sequence/array")

        image = np.zeros(dims, dtype='f8')
        self.render(image, nsub=nsub, jacobian=jacobian)
        return image

    def render(self, image, nsub=1, jacobian=None):
        """
        Add the mixture to the input image

        parameters
        ----------
        image: 2-d array
            Must be a 2-d 'f8' array; the model is added to the
            existing values
        nsub: integer, optional
            Defines a grid for sub-pixel integration
        jacobian: Jacobian, optional
            Map from pixel to sky coordinates
        """
        _check_image(image)
        nsub = _check_nsub(nsub)

        if jacobian is None:
            gmix_nb.render(self._data, image, nsub)
        else:
            gmix_nb.render_jacob(
                self._data, image, nsub, jacobian.get_data(),
            )

    def get_loglike(self, obs):
        """
        Calculate the gaussian log likelihood given the input Observation

        parameters
        ----------
        obs: Observation
            The Observation to compare with. See observation.py

        returns
        -------
        loglike, s2n_numer, s2n_denom
        """
        return gmix_nb.get_loglike(
            self._data,
            obs.image,
            obs.weight,
            obs.jacobian.get_data(),
        )

    def get_loglike_robust(self, obs, nu):
        """
        Calculate the student-t log likelihood given the input Observation

        parameters
        ----------
        obs: Observation
            The Observation to compare with
        nu: number
            degrees of freedom, > 0

        returns
        -------
        loglike, s2n_numer, s2n_denom
        """
        if nu <= 0:
            raise GMixFatalError("nu must be > 0, got %g" % nu)

        logfactor = get_robust_logfactor(nu)
        return gmix_nb.get_loglike_robust(
            self._data,
            obs.image,
            obs.weight,
            obs.jacobian.get_data(),
            float(nu),
            logfactor,
        )

    def fill_fdiff(self, obs, fdiff, start=0, nsub=1):
        """
        Fill fdiff=(model-data)*sqrt(ivar) for the input Observation

        parameters
        ----------
        obs: Observation
            The Observation to compare with
        fdiff: 1-d array
            The array to fill; it may hold other entries, for example
            from priors, before start
        start: int, optional
            Where to start filling
        nsub: int, optional
            Defines a grid for sub-pixel integration of the model

        returns
        -------
        s2n_numer, s2n_denom
        """

        _check_fdiff(fdiff)

        npix = obs.image.size
        if start < 0 or fdiff.size - start < npix:
            raise GMixFatalError(
                "fdiff size %d too small for %d pixels "
                "starting at %d" % (fdiff.size, npix, start)
            )

        nsub = _check_nsub(nsub)
        if nsub > 1:
            return gmix_nb.fill_fdiff_sub(
                self._data,
                obs.image,
                obs.weight,
                obs.jacobian.get_data(),
                fdiff,
                start,
                nsub,
            )
        else:
            return gmix_nb.fill_fdiff(
                self._data,
                obs.image,
                obs.weight,
                obs.jacobian.get_data(),
                fdiff,
                start,
            )

    def get_model_s2n_sum(self, obs):
        """
        Get the sum of model**2*ivar over the unmasked pixels
        """
        return gmix_nb.get_model_s2n_sum(
            self._data,
            obs.weight,
            obs.jacobian.get_data(),
        )

    def get_model_s2n(self, obs):
        """
        Get the s/n of the model, sqrt(sum(model**2*ivar))
        """
        return np.sqrt(self.get_model_s2n_sum(obs))

    def reset(self):
        """
        Replace the data array with a zeroed one.
        """
        self._data = np.zeros(self._ngauss, dtype=_gauss2d_dtype)
        self._pars = np.zeros(self._npars)

    def __call__(self, u, v):
        """
        evaluate the mixture at the location u, v
        """
        return gmix_nb.gmix_eval(self._data, float(u), float(v))

    def __len__(self):
        return self._ngauss

    def __repr__(self):
        rep = []
        fmt = (
            "p: %-10.5g row: %-10.5g col: %-10.5g "
            "irr: %-10.5g irc: %-10.5g icc: %-10.5g"
        )
        for i in range(self._ngauss):
            t = self._data[i]
            s = fmt % (t['p'], t['row'], t['col'],
                       t['irr'], t['irc'], t['icc'])
            rep.append(s)

        return '\n'.join(rep)


class GMixModel(GMix):
    """
    A two-dimensional gaussian mixture created from a set of model parameters

    Inherits from the more general GMix class, and all its methods.

    parameters
    ----------
    pars: array-like
        Parameter array. [row, col, g1, g2, T, flux] for the simple
        models, [row, col, g1, g2, T, fracdev, flux] for bdf
    model: string or gmix type
        e.g. 'exp' or GMIX_EXP
    """
    def __init__(self, pars, model):

        self._model = get_model_num(model)
        self._model_name = get_model_name(model)

        if self._model == GMIX_FULL:
            raise GMixFatalError("use GMix(pars=) for full models")

        self._ngauss = get_model_ngauss(self._model)
        self._npars = get_model_npars(self._model)

        self.reset()
        self.fill(pars)

    def copy(self):
        """
        Get a new GMixModel with the same parameters and gaussians
        """
        gm = GMixModel(self._pars, self._model_name)
        gm._data[:] = self._data[:]
        return gm

    def get_pars(self):
        """
        the model parameters
        """
        return self._pars.copy()

    def _fill_data(self, data, pars):
        fvals, pvals = _gmix_tables[self._model]
        return gmix_nb.gmix_fill_simple(data, pars, fvals, pvals)


class GMixBDF(GMixModel):
    """
    bulge+disk mixture, exp and dev sharing center and ellipticity

    parameters
    ----------
    pars: array-like
        [row, col, g1, g2, T, fracdev, flux]
    TdByTe: number, optional
        ratio of the bulge to disk size, default 1
    """
    def __init__(self, pars, TdByTe=1.0):
        self._TdByTe = TdByTe
        super(GMixBDF, self).__init__(pars, 'bdf')

    def copy(self):
        """
        Get a new GMixBDF with the same parameters and gaussians
        """
        gm = GMixBDF(self._pars, TdByTe=self._TdByTe)
        gm._data[:] = self._data[:]
        return gm

    def _fill_data(self, data, pars):
        return gmix_nb.gmix_fill_bdf(
            data,
            pars,
            _fvals_exp, _pvals_exp,
            _fvals_dev, _pvals_dev,
            self._TdByTe,
        )


def make_gmix_model(pars, model):
    """
    get a gaussian mixture model for the given model
    """
    num = get_model_num(model)
    if num == GMIX_FULL:
        return GMix(pars=pars)
    elif num == GMIX_BDF:
        return GMixBDF(pars)
    else:
        return GMixModel(pars, num)


def convolve_fill(output, gmix, psf):
    """
    Fill the output mixture with the convolution of gmix and psf

    The output must already have gmix.get_ngauss()*psf.get_ngauss()
    gaussians.  On failure a GMixRangeError is raised; the output may hold
    partial results and should be discarded

    parameters
    ----------
    output: GMix
        the mixture to fill
    gmix: GMix
        the object mixture
    psf: GMix
        the psf mixture
    """
    ntot = len(gmix)*len(psf)
    if len(output) != ntot:
        raise GMixFatalError(
            "target gmix is wrong size %d, expected %d" % (len(output), ntot)
        )

    if psf.get_psum() == 0.0:
        raise GMixRangeError("psf psum is zero")

    status, value = gmix_nb.convolve_fill(
        output.get_data(), gmix.get_data(), psf.get_data(),
    )
    _check_fill_status(status, value)


def get_robust_logfactor(nu):
    """
    log(gamma((nu+1)/2)/(gamma(nu/2)*sqrt(pi*nu))), the normalization
    of the student-t distribution
    """
    return float(
        gammaln((nu+1)/2.0) - gammaln(nu/2.0) - 0.5*np.log(np.pi*nu)
    )


def get_s2n(s2n_numer, s2n_denom):
    """
    matched filter s/n from the sums returned by the likelihood
    and fdiff functions
    """
    if s2n_denom > 0:
        return s2n_numer/np.sqrt(s2n_denom)
    else:
        return 0.0


def convert_simple_double_logpars(logpars, pars, band):
    """
    convert [row, col, g1, g2, log10(T), log10(flux_0), ...] for the given
    band into linear [row, col, g1, g2, T, flux]

    parameters
    ----------
    logpars: array
        the log parameters, at least 6+band elements
    pars: array
        array to fill, at least 6 elements
    band: int
        which flux to convert
    """
    if len(logpars) < 6+band:
        raise GMixFatalError(
            "band %d not in logpars with %d elements" % (band, len(logpars))
        )

    pars[0] = logpars[0]
    pars[1] = logpars[1]
    pars[2] = logpars[2]
    pars[3] = logpars[3]
    pars[4] = 10.0**logpars[4]
    pars[5] = 10.0**logpars[5+band]


def get_simple_linpars(logpars, band=0):
    """
    get linear [row, col, g1, g2, T, flux] from log parameters
    """
    pars = np.zeros(6)
    convert_simple_double_logpars(logpars, pars, band)
    return pars


def _check_image(image):
    if (not isinstance(image, np.ndarray)
            or image.ndim != 2
            or image.dtype != np.float64):
        raise GMixFatalError("image must be a 2-d 'f8' array")


def _check_fdiff(fdiff):
    if (not isinstance(fdiff, np.ndarray)
            or fdiff.ndim != 1
            or fdiff.dtype != np.float64):
        raise GMixFatalError("fdiff must be a 1-d 'f8' array")


def _check_nsub(nsub):
    nsub = int(nsub)
    if nsub < 1:
        raise GMixFatalError("nsub must be >= 1, got %d" % nsub)
    return nsub
