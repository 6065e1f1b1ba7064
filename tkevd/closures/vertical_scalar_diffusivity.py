"""
Constant vertical viscosity and diffusivity.

This closure is mostly used as a background diffusivity in a :class:`~closure.ClosureSequence`
behind :class:`~tke_based_vertical_diffusivity.TKEBasedVerticalDiffusivity`, and in the tests. It
can be obtained by the prefix :code:`tkevd.closures.vertical_scalar_diffusivity.` or directly by
:code:`tkevd.`.

"""

from __future__ import annotations
from typing import Mapping, Optional, Type

import jax.numpy as jnp

from tkevd.space import Grid, Clock, ArrCenter, ArrZFace
from tkevd.fields import Field
from tkevd.operators import dz_centers
from tkevd.closure import (
    AbstractTurbulenceClosure, TimeDiscretization, TracerKind, VerticallyImplicitTimeDiscretization
)


class VerticalScalarDiffusivity(AbstractTurbulenceClosure):
    r"""
    Same viscosity and diffusivities in every cell and at every time.

    Parameters
    ----------
    float_type : type, default=float
        Type of the floats of the parameters.
    nu : float, default=1e-4
        cf. :attr:`nu`.
    kappa : float, default=1e-5
        cf. :attr:`kappa`.
    time_discretization : ExplicitTimeDiscretization or VerticallyImplicitTimeDiscretization, optional
        cf. :attr:`time_discretization`, vertically implicit if :code:`None`.

    Attributes
    ----------
    nu : float
        Vertical viscosity :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    kappa : float
        Vertical diffusivity of all the tracers :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    time_discretization : ExplicitTimeDiscretization or VerticallyImplicitTimeDiscretization
        Time discretization of the vertical fluxes.

    """

    nu: float
    kappa: float

    def __init__(
            self,
            float_type: Type=float,
            nu: float=1e-4,
            kappa: float=1e-5,
            time_discretization: Optional[TimeDiscretization]=None
        ) -> None:
        if time_discretization is None:
            time_discretization = VerticallyImplicitTimeDiscretization()
        self.nu = jnp.asarray(nu, dtype=float_type)
        self.kappa = jnp.asarray(kappa, dtype=float_type)
        self.time_discretization = time_discretization

    def explicit_viscous_flux_uz(
            self,
            diffusivities: None,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        return - self.nu * fields['u'].dz(grid, clock, fields)

    def explicit_viscous_flux_vz(
            self,
            diffusivities: None,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        return - self.nu * fields['v'].dz(grid, clock, fields)

    def explicit_viscous_flux_wz(
            self,
            diffusivities: None,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrCenter:
        return - self.nu * dz_centers(fields['w'].data, grid)

    def explicit_diffusive_flux_z(
            self,
            diffusivities: None,
            kind: TracerKind,
            c: Field,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        return - self.kappa * c.dz(grid, clock, fields)

    def z_viscosity(self, diffusivities: None) -> float:
        return self.nu

    def z_diffusivity(self, kind: TracerKind, diffusivities: None) -> float:
        return self.kappa
