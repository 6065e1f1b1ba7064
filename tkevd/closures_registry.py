r"""
Registry of available closures.

This module only contains a constant variable which lists all the available closures. It can be
obtained by the prefix :code:`tkevd.closures_registry.` or directly by :code:`tkevd.`.

Attributes
==========
CLOSURES_REGISTRY : Dict[str, Type[AbstractTurbulenceClosure]]
    This variable is a dictionnary whose keys are the names of the closures and whose values are
    the corresponding child classes of :class:`~closure.AbstractTurbulenceClosure`. The model builds
    its closure with the default parameters from one of these names. When the user adds the code
    of a closure in :code:`closures/` they must import its class here and add an entry to this
    dictionnary.

    The current available closures are :

    - :code:`tke-based` cf. :mod:`closures.tke_based_vertical_diffusivity`
    - :code:`vertical-scalar` cf. :mod:`closures.vertical_scalar_diffusivity`

"""

from typing import Dict, Type

from tkevd.closure import AbstractTurbulenceClosure

from tkevd.closures.tke_based_vertical_diffusivity import TKEBasedVerticalDiffusivity
from tkevd.closures.vertical_scalar_diffusivity import VerticalScalarDiffusivity


CLOSURES_REGISTRY: Dict[str, Type[AbstractTurbulenceClosure]] = {
    'tke-based': TKEBasedVerticalDiffusivity,
    'vertical-scalar': VerticalScalarDiffusivity
}
