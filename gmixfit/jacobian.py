"""
affine map from pixel coordinates to the sky plane

    u = dudrow*(row-row0) + dudcol*(col-col0)
    v = dvdrow*(row-row0) + dvdcol*(col-col0)

The gaussian mixtures are evaluated in u, v; sdet converts pixel area to
sky area
"""
import numpy as np

from .gexceptions import GMixFatalError

_jacobian_dtype = [
    ('row0', 'f8'),
    ('col0', 'f8'),
    ('dvdrow', 'f8'),
    ('dvdcol', 'f8'),
    ('dudrow', 'f8'),
    ('dudcol', 'f8'),
    ('det', 'f8'),
    ('sdet', 'f8'),
]


class Jacobian(object):
    """
    A class representing a jacobian matrix of a transformation.  The
    jacobian is defined relative to the input center

    Objects are not modified after construction; set_cen returns a new
    Jacobian

    parameters
    ----------
    row: number
        row of the reference point, usually the object center
    col: number
        col of the reference point
    dudrow, dudcol, dvdrow, dvdcol: numbers
        elements of the jacobian
    """
    def __init__(self, row, col, dudrow, dudcol, dvdrow, dvdcol):

        det = dudrow*dvdcol - dudcol*dvdrow
        if det == 0.0:
            raise GMixFatalError("jacobian determinant is zero")

        self._data = np.zeros(1, dtype=_jacobian_dtype)

        self._data['row0'] = row
        self._data['col0'] = col

        self._data['dudrow'] = dudrow
        self._data['dudcol'] = dudcol

        self._data['dvdrow'] = dvdrow
        self._data['dvdcol'] = dvdcol

        self._data['det'] = det
        self._data['sdet'] = np.sqrt(abs(det))

    def get_data(self):
        """
        the underlying array, as sent to the numba kernels
        """
        return self._data

    def get_cen(self):
        """
        Get the center of the coordinate system
        """
        return self._data['row0'][0], self._data['col0'][0]

    def set_cen(self, row, col):
        """
        get a new Jacobian with the same matrix, centered at row, col
        """
        return Jacobian(
            row,
            col,
            self.dudrow,
            self.dudcol,
            self.dvdrow,
            self.dvdcol,
        )

    def get_det(self):
        """
        Get the determinant of the jacobian matrix
        """
        return self._data['det'][0]

    def get_sdet(self):
        """
        Get the sqrt(abs(det)) of the jacobian matrix
        """
        return self._data['sdet'][0]

    def get_scale(self):
        """
        Get the scale, defined as sqrt(abs(det))
        """
        return self._data['sdet'][0]

    def get_u(self, row, col):
        """
        Get the u coordinate for the input pixel location
        """
        return (
            self.dudrow*(row - self._data['row0'][0])
            + self.dudcol*(col - self._data['col0'][0])
        )

    def get_v(self, row, col):
        """
        Get the v coordinate for the input pixel location
        """
        return (
            self.dvdrow*(row - self._data['row0'][0])
            + self.dvdcol*(col - self._data['col0'][0])
        )

    def get_rowcol(self, u, v):
        """
        Get the pixel location for the input u, v; inverse of __call__
        """
        idet = 1.0/self.get_det()

        drow = (self.dvdcol*u - self.dudcol*v)*idet
        dcol = (-self.dvdrow*u + self.dudrow*v)*idet

        return self._data['row0'][0] + drow, self._data['col0'][0] + dcol

    def copy(self):
        """
        get a new Jacobian with the same parameters
        """
        return self.set_cen(*self.get_cen())

    def __call__(self, row, col):
        """
        get u, v for the input pixel location
        """
        return self.get_u(row, col), self.get_v(row, col)

    @property
    def dudrow(self):
        return self._data['dudrow'][0]

    @property
    def dudcol(self):
        return self._data['dudcol'][0]

    @property
    def dvdrow(self):
        return self._data['dvdrow'][0]

    @property
    def dvdcol(self):
        return self._data['dvdcol'][0]

    @property
    def scale(self):
        return self.get_scale()

    def __repr__(self):
        fmt = (
            'row0: %-10.5g col0: %-10.5g dudrow: %-10.5g dudcol: %-10.5g '
            'dvdrow: %-10.5g dvdcol: %-10.5g'
        )
        return fmt % (
            self._data['row0'][0],
            self._data['col0'][0],
            self.dudrow,
            self.dudcol,
            self.dvdrow,
            self.dvdcol,
        )


class DiagonalJacobian(Jacobian):
    """
    jacobian with a single pixel scale and no shear or rotation

    parameters
    ----------
    row, col: numbers
        center of the coordinate system
    scale: number, optional
        pixel scale, default 1
    """
    def __init__(self, row, col, scale=1.0):
        super(DiagonalJacobian, self).__init__(
            row,
            col,
            scale,
            0.0,
            0.0,
            scale,
        )


class UnitJacobian(DiagonalJacobian):
    """
    identity jacobian, u, v are pixel offsets from row, col
    """
    def __init__(self, row, col):
        super(UnitJacobian, self).__init__(row, col, scale=1.0)
