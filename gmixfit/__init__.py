# flake8: noqa

__version__ = '0.1.0'

from . import gexceptions
from .gexceptions import GMixRangeError, GMixFatalError, GMixMaxIterEM

from . import defaults

from . import gmix
from .gmix import (
    GMix,
    GMixModel,
    GMixBDF,
    make_gmix_model,
    get_model_num,
    get_model_name,
    get_model_ngauss,
    get_model_npars,
)

from . import jacobian
from .jacobian import Jacobian, DiagonalJacobian, UnitJacobian

from . import observation
from .observation import Observation

from . import em
from .em import GMixEM, prep_image

from . import gmixnd
from .gmixnd import GMixND

from . import priors

from . import tests
