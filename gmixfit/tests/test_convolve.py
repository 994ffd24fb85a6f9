import numpy as np
import pytest

from ..gmix import GMix, GMixModel, convolve_fill
from ..gexceptions import GMixRangeError, GMixFatalError


def test_convolve_gauss():
    obj = GMixModel([10.0, 12.0, 0.0, 0.0, 4.0, 100.0], 'gauss')

    # off-center psf, the object center should be preserved
    psf = GMixModel([0.5, -0.3, 0.0, 0.0, 2.0, 3.0], 'gauss')

    gm = obj.convolve(psf)

    assert len(gm) == 1
    data = gm.get_data()

    assert abs(data['p'][0] - 100.0) < 1.0e-10
    assert abs(data['row'][0] - 10.0) < 1.0e-12
    assert abs(data['col'][0] - 12.0) < 1.0e-12
    assert abs(gm.get_T() - 6.0) < 1.0e-12


def test_convolve_moments():
    obj = GMixModel([1.0, 2.0, 0.2, -0.1, 8.0, 1.0], 'exp')
    psf = GMixModel([0.0, 0.0, 0.05, 0.02, 3.0, 1.0], 'turb')

    gm = obj.convolve(psf)

    assert len(gm) == len(obj)*len(psf)
    assert gm.get_model() == 'full'

    # second moments add under convolution
    e1o, e2o, To = obj.get_e1e2T()
    e1p, e2p, Tp = psf.get_e1e2T()
    e1, e2, T = gm.get_e1e2T()

    assert abs(T - (To + Tp)) < 1.0e-10
    assert abs(e1*T - (e1o*To + e1p*Tp)) < 1.0e-10
    assert abs(e2*T - (e2o*To + e2p*Tp)) < 1.0e-10

    assert abs(gm.get_flux() - obj.get_flux()) < 1.0e-12


def test_convolve_fill_size():
    obj = GMixModel([0.0, 0.0, 0.0, 0.0, 4.0, 1.0], 'exp')
    psf = GMixModel([0.0, 0.0, 0.0, 0.0, 2.0, 1.0], 'gauss')

    output = GMix(ngauss=5)
    with pytest.raises(GMixFatalError):
        convolve_fill(output, obj, psf)

    output = GMix(ngauss=6)
    convolve_fill(output, obj, psf)
    assert np.all(output.get_data()['det'] > 0)


def test_convolve_zero_psf():
    obj = GMixModel([0.0, 0.0, 0.0, 0.0, 4.0, 1.0], 'gauss')
    psf = GMix(pars=[0.0, 0.0, 0.0, 1.0, 0.0, 1.0])

    with pytest.raises(GMixRangeError):
        obj.convolve(psf)


def test_convolve_bad_type():
    obj = GMixModel([0.0, 0.0, 0.0, 0.0, 4.0, 1.0], 'gauss')
    with pytest.raises(TypeError):
        obj.convolve([1.0, 0.0, 0.0, 1.0, 0.0, 1.0])
