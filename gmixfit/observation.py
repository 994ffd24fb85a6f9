"""
Observation: an image, its weight map and the jacobian describing its
coordinate system

The numba kernels do not check that these agree; that checking is done here,
once, when the observation is created
"""
import numpy as np

from .jacobian import Jacobian, UnitJacobian
from .gexceptions import GMixFatalError


class Observation(object):
    """
    Represent an observation with an image and possibly a
    weight map and jacobian

    parameters
    ----------
    image: ndarray
        The image
    weight: ndarray, optional
        Weight map, same shape as image; pixels with weight <= 0 are
        ignored.  Default is all ones
    jacobian: Jacobian, optional
        Type Jacobian or a sub-type.  Default is a UnitJacobian centered
        at the origin
    meta: dict, optional
        extra information about the observation
    """
    def __init__(self, image, weight=None, jacobian=None, meta=None):

        self._image = _get_f8_image(image, 'image')

        if weight is None:
            weight = np.ones(self._image.shape)
        weight = _get_f8_image(weight, 'weight')
        if weight.shape != self._image.shape:
            raise GMixFatalError(
                "weight shape %s does not match image shape %s" % (
                    weight.shape, self._image.shape,
                )
            )
        self._weight = weight

        if jacobian is None:
            jacobian = UnitJacobian(row=0.0, col=0.0)
        elif not isinstance(jacobian, Jacobian):
            raise GMixFatalError(
                "jacobian must be a Jacobian, got %s" % type(jacobian)
            )
        self._jacobian = jacobian

        self.meta = {}
        if meta is not None:
            self.meta.update(meta)

    @property
    def image(self):
        """
        the image
        """
        return self._image

    @property
    def weight(self):
        """
        the weight map
        """
        return self._weight

    @property
    def jacobian(self):
        """
        the jacobian
        """
        return self._jacobian

    def has_data(self):
        """
        True if any pixels have weight > 0
        """
        return np.any(self._weight > 0)

    def get_s2n(self):
        """
        estimate the s/n of the image, sum(I)/sqrt(sum(var))
        """
        w = self._weight > 0
        if not np.any(w):
            return -9999.0

        isum = self._image[w].sum()
        vsum = (1.0/self._weight[w]).sum()
        return isum/np.sqrt(vsum)

    def copy(self):
        """
        make a copy of the observation
        """
        return Observation(
            self._image.copy(),
            weight=self._weight.copy(),
            jacobian=self._jacobian.copy(),
            meta=self.meta,
        )


def _get_f8_image(im, name):
    im = np.asarray(im, dtype='f8')
    if im.ndim != 2:
        raise GMixFatalError(
            "%s must be 2-d, got %d dimensions" % (name, im.ndim)
        )
    return np.ascontiguousarray(im)
