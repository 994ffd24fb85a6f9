import numpy as np
import pytest

from ..gmix import (
    GMix,
    GMixModel,
    GMixBDF,
    GMIX_EXP,
    make_gmix_model,
    get_model_num,
    get_model_name,
    get_model_ngauss,
    get_model_npars,
    convert_simple_double_logpars,
    get_simple_linpars,
)
from ..gexceptions import GMixRangeError, GMixFatalError
from ..defaults import MAX_CHI2


def test_set_and_eval_center():
    gm = GMix(pars=[1.0, 0.0, 0.0, 2.0, 0.0, 2.0])

    data = gm.get_data()
    assert data['det'][0] == 4.0
    assert data['norm'][0] == 1.0/(2*np.pi*2.0)

    val = gm(0.0, 0.0)
    assert abs(val - 1.0/(4*np.pi)) < 1.0e-15


def test_eval_cutoff():
    # irr=icc=1, so chi2 is the squared distance
    gm = GMix(pars=[1.0, 0.0, 0.0, 1.0, 0.0, 1.0])

    rmax = np.sqrt(MAX_CHI2)
    assert gm(rmax - 0.01, 0.0) > 0.0
    assert gm(rmax + 0.01, 0.0) == 0.0
    assert gm(0.0, rmax + 0.01) == 0.0


def test_set_gauss():
    gm = GMix(ngauss=2)
    gm.set_gauss(1, 2.0, 3.0, 4.0, 2.0, 0.5, 3.0)

    pars = gm.get_full_pars()
    assert np.all(pars[0:6] == 0.0)
    assert np.all(pars[6:] == [2.0, 3.0, 4.0, 2.0, 0.5, 3.0])

    with pytest.raises(GMixRangeError):
        gm.set_gauss(1, 1.0, 0.0, 0.0, 1.0, 1.0, 1.0)

    # unchanged after the failure
    assert np.all(gm.get_full_pars()[6:] == [2.0, 3.0, 4.0, 2.0, 0.5, 3.0])

    with pytest.raises(GMixFatalError):
        gm.set_gauss(2, 1.0, 0.0, 0.0, 1.0, 0.0, 1.0)


def test_full_pars_validation():
    with pytest.raises(GMixFatalError):
        GMix()

    with pytest.raises(GMixFatalError):
        GMix(pars=[1.0, 2.0, 3.0])

    gm = GMix(ngauss=2)
    with pytest.raises(GMixFatalError):
        gm.fill([1.0, 0.0, 0.0, 1.0, 0.0, 1.0])


def test_full_fill_atomic():
    pars = [1.0, 10.0, 11.0, 2.0, 0.1, 3.0,
            2.0, 12.0, 13.0, 4.0, 0.2, 5.0]
    gm = GMix(pars=pars)
    before = gm.get_data().copy()

    # second gaussian has det < 0
    bad_pars = [3.0, 1.0, 1.0, 1.0, 0.0, 1.0,
                1.0, 0.0, 0.0, 1.0, 2.0, 1.0]
    with pytest.raises(GMixRangeError):
        gm.fill(bad_pars)

    assert np.all(gm.get_data() == before)
    assert np.all(gm.get_full_pars() == pars)


def test_circular_build():
    for model in ['gauss', 'exp', 'dev', 'turb']:
        gm = GMixModel([1.5, 2.5, 0.0, 0.0, 4.0, 100.0], model)
        data = gm.get_data()

        assert len(gm) == get_model_ngauss(model)
        assert np.all(data['irc'] == 0.0)
        assert np.all(data['irr'] == data['icc'])
        assert np.all(data['row'] == 1.5)
        assert np.all(data['col'] == 2.5)

        assert abs(gm.get_flux()/100.0 - 1) < 1.0e-5


def test_gauss_moments():
    gm = GMixModel([0.0, 0.0, 0.0, 0.0, 4.0, 1.0], 'gauss')
    data = gm.get_data()

    assert data['irr'][0] == 2.0
    assert data['icc'][0] == 2.0
    assert gm.get_T() == 4.0
    assert abs(gm.get_sigma() - np.sqrt(2.0)) < 1.0e-15


def test_exp_T():
    # the exp table is normalized to preserve T
    gm = GMixModel([0.0, 0.0, 0.0, 0.0, 16.0, 1.0], 'exp')
    assert abs(gm.get_T()/16.0 - 1) < 1.0e-5


def test_shape_roundtrip():
    g1, g2, T = 0.2, -0.1, 8.0
    gm = GMixModel([3.0, 4.0, g1, g2, T, 10.0], 'gauss')

    mg1, mg2, mT = gm.get_g1g2T()
    assert abs(mg1 - g1) < 1.0e-12
    assert abs(mg2 - g2) < 1.0e-12
    assert abs(mT - T) < 1.0e-12

    row, col = gm.get_cen()
    assert row == 3.0
    assert col == 4.0


def test_shape_bounds():
    pars = [0.0, 0.0, 0.0, 0.0, 4.0, 1.0]

    for g1, g2 in [(1.0, 0.0), (0.0, -1.0), (0.8, 0.8), (1.5, 0.0)]:
        pars[2] = g1
        pars[3] = g2
        with pytest.raises(GMixRangeError):
            GMixModel(pars, 'exp')

    pars[2] = 0.999
    pars[3] = 0.0
    gm = GMixModel(pars, 'exp')
    assert np.all(gm.get_data()['det'] > 0)


def test_model_fill_atomic():
    gm = GMixModel([0.0, 0.0, 0.1, 0.1, 4.0, 1.0], 'exp')
    before = gm.get_data().copy()

    with pytest.raises(GMixRangeError):
        gm.fill([5.0, 5.0, 1.2, 0.0, 4.0, 1.0])

    assert np.all(gm.get_data() == before)
    assert np.all(gm.get_pars() == [0.0, 0.0, 0.1, 0.1, 4.0, 1.0])


def test_model_names():
    assert get_model_num('exp') == GMIX_EXP
    assert get_model_num(GMIX_EXP) == GMIX_EXP
    assert get_model_name(GMIX_EXP) == 'exp'

    assert get_model_ngauss('gauss') == 1
    assert get_model_ngauss('turb') == 3
    assert get_model_ngauss('exp') == 6
    assert get_model_ngauss('dev') == 10
    assert get_model_ngauss('bdf') == 16

    assert get_model_npars('dev') == 6
    assert get_model_npars('bdf') == 7

    with pytest.raises(GMixFatalError):
        get_model_num('sersic')

    with pytest.raises(GMixFatalError):
        get_model_ngauss('full')

    with pytest.raises(GMixFatalError):
        GMixModel([0.0]*6, 'full')

    with pytest.raises(GMixFatalError):
        GMixModel([0.0, 0.0, 0.0, 4.0, 1.0], 'exp')


def test_bdf():
    pars = [1.0, 2.0, 0.1, 0.05, 4.0, 0.3, 100.0]
    gm = GMixBDF(pars)
    data = gm.get_data()

    assert len(gm) == 16
    assert abs(data['p'][0:6].sum()/70.0 - 1) < 1.0e-5
    assert abs(data['p'][6:].sum()/30.0 - 1) < 1.0e-5

    # pure disk is the exp model
    pars[5] = 0.0
    gm = make_gmix_model(pars, 'bdf')
    egm = GMixModel([1.0, 2.0, 0.1, 0.05, 4.0, 100.0], 'exp')

    edata = egm.get_data()
    data = gm.get_data()
    for name in ['p', 'row', 'col', 'irr', 'irc', 'icc']:
        assert np.all(data[name][0:6] == edata[name])

    assert np.all(data['p'][6:] == 0.0)


def test_bdf_size_ratio():
    pars = [0.0, 0.0, 0.0, 0.0, 4.0, 1.0, 1.0]
    gm = GMixBDF(pars, TdByTe=2.0)
    dgm = GMixModel([0.0, 0.0, 0.0, 0.0, 8.0, 1.0], 'dev')

    data = gm.get_data()
    ddata = dgm.get_data()
    assert np.allclose(data['irr'][6:], ddata['irr'], rtol=1.0e-14)


def test_flux_and_cen():
    gm = GMixModel([0.0, 0.0, 0.2, 0.0, 4.0, 1.0], 'exp')

    val = gm(0.5, 0.5)
    rat = 2.0/gm.get_flux()

    gm.set_flux(2.0)
    assert abs(gm.get_flux() - 2.0) < 1.0e-12
    assert abs(gm(0.5, 0.5)/val - rat) < 1.0e-12

    gm.set_cen(10.0, 20.0)
    row, col = gm.get_cen()
    assert abs(row - 10.0) < 1.0e-12
    assert abs(col - 20.0) < 1.0e-12
    assert abs(gm(10.5, 20.5)/val - rat) < 1.0e-12


def test_zero_psum():
    gm = GMix(ngauss=2)
    with pytest.raises(GMixRangeError):
        gm.get_cen()
    with pytest.raises(GMixRangeError):
        gm.get_T()
    with pytest.raises(GMixRangeError):
        gm.set_flux(1.0)


def test_copy():
    gm = GMixModel([0.0, 0.0, 0.2, 0.0, 4.0, 1.0], 'turb')
    gmc = gm.copy()

    assert gmc.get_model() == 'turb'
    assert np.all(gmc.get_data() == gm.get_data())

    gmc.set_flux(3.0)
    assert abs(gm.get_flux() - 1.0) < 1.0e-5

    full = GMix(pars=gm.get_full_pars())
    fullc = full.copy()
    assert np.all(fullc.get_full_pars() == full.get_full_pars())


def test_copy_after_changes():
    gm = GMixModel([0.0, 0.0, 0.2, 0.0, 4.0, 1.0], 'exp')
    gm.set_flux(5.0)
    gm.set_cen(3.0, 4.0)
    gm.set_gauss(0, 0.01, 3.0, 4.0, 0.5, 0.0, 0.5)

    gmc = gm.copy()
    assert gmc.get_model() == 'exp'
    assert np.all(gmc.get_data() == gm.get_data())
    assert abs(gmc.get_flux() - gm.get_flux()) < 1.0e-12

    row, col = gmc.get_cen()
    assert abs(row - 3.0) < 1.0e-12
    assert abs(col - 4.0) < 1.0e-12

    bdf = GMixBDF([0.0, 0.0, 0.1, 0.2, 4.0, 0.3, 1.0], TdByTe=2.0)
    bdf.set_flux(2.0)
    bdf.set_cen(-1.0, 1.5)

    bdfc = bdf.copy()
    assert np.all(bdfc.get_data() == bdf.get_data())
    assert abs(bdfc.get_flux() - 2.0) < 1.0e-12


def test_logpars():
    logpars = [1.0, 2.0, 0.1, 0.2, np.log10(4.0),
               np.log10(100.0), np.log10(50.0)]

    pars = get_simple_linpars(logpars, band=1)
    assert np.allclose(pars, [1.0, 2.0, 0.1, 0.2, 4.0, 50.0], rtol=1.0e-14)

    pars = np.zeros(6)
    convert_simple_double_logpars(logpars, pars, 0)
    assert np.allclose(pars, [1.0, 2.0, 0.1, 0.2, 4.0, 100.0], rtol=1.0e-14)

    with pytest.raises(GMixFatalError):
        get_simple_linpars(logpars, band=2)
