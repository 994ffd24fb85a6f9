import numpy as np
import pytest

from ..gmix import GMixModel
from ..jacobian import Jacobian, DiagonalJacobian, UnitJacobian
from ..gexceptions import GMixFatalError


def test_render_point_eval():
    gm = GMixModel([5.2, 6.7, 0.1, -0.2, 6.0, 1.0], 'exp')

    im = gm.make_image([11, 13])
    assert im.shape == (11, 13)

    for row in range(im.shape[0]):
        for col in range(im.shape[1]):
            assert im[row, col] == gm(row, col)


def test_render_adds():
    gm = GMixModel([5.0, 5.0, 0.0, 0.0, 4.0, 1.0], 'gauss')

    model = gm.make_image([11, 11], nsub=2)

    im = np.ones((11, 11))
    gm.render(im, nsub=2)
    assert np.allclose(im, 1.0 + model, rtol=0, atol=1.0e-15)


def test_render_oversample_flux():
    # small gaussian, pixel sampling is poor without oversampling
    gm = GMixModel([10.0, 10.0, 0.0, 0.0, 0.5, 1.0], 'gauss')

    im1 = gm.make_image([21, 21], nsub=1)
    im4 = gm.make_image([21, 21], nsub=4)

    err1 = abs(im1.sum() - 1)
    err4 = abs(im4.sum() - 1)

    assert err4 < err1
    assert err4 < 1.0e-4


def test_render_jacobian():
    jac = DiagonalJacobian(row=10.0, col=10.0, scale=0.5)

    # center in u, v
    gm = GMixModel([0.0, 0.0, 0.2, 0.1, 2.0, 1.0], 'gauss')

    im = gm.make_image([21, 21], jacobian=jac)

    assert im[10, 10] == gm(0.0, 0.0)
    assert abs(im[12, 10] - gm(1.0, 0.0)) < 1.0e-15
    assert abs(im[10, 7] - gm(0.0, -1.5)) < 1.0e-15


def test_render_unit_jacobian():
    # unit jacobian at the origin is the same as no jacobian
    gm = GMixModel([5.2, 6.7, 0.1, -0.2, 6.0, 1.0], 'dev')

    for nsub in [1, 3]:
        im = gm.make_image([11, 13], nsub=nsub)
        jim = gm.make_image([11, 13], nsub=nsub, jacobian=UnitJacobian(0, 0))

        assert np.allclose(im, jim, rtol=1.0e-12, atol=1.0e-15)


def test_render_sheared_jacobian():
    jac = Jacobian(
        row=7.0, col=8.0,
        dudrow=0.25, dudcol=0.02,
        dvdrow=-0.03, dvdcol=0.27,
    )
    gm = GMixModel([0.1, -0.2, 0.0, 0.3, 1.5, 1.0], 'turb')

    im = gm.make_image([15, 15], jacobian=jac)
    for row, col in [(7, 8), (3, 11), (14, 0)]:
        u, v = jac(row, col)
        assert abs(im[row, col] - gm(u, v)) < 1.0e-14


def test_render_checks():
    gm = GMixModel([5.0, 5.0, 0.0, 0.0, 4.0, 1.0], 'gauss')

    with pytest.raises(GMixFatalError):
        gm.render(np.zeros((10, 10), dtype='i4'))

    with pytest.raises(GMixFatalError):
        gm.render(np.zeros(10))

    with pytest.raises(GMixFatalError):
        gm.make_image([10, 10], nsub=0)

    with pytest.raises(GMixFatalError):
        gm.make_image([10, 10, 10])
