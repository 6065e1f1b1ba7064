"""
TKE-based vertical diffusivity closure.

This module contains the closure :class:`TKEBasedVerticalDiffusivity`, its parameters and the
functions computing its diagnostics. The eddy-viscosity and eddy-diffusivities of the closure are
the product of a stability function of the Richardson number, a mixing length and of the turbulent
velocity given by the prognostic turbulent kinetic energy (TKE) :math:`e` :

:math:`K^\\phi = \\sigma^\\phi(Ri) \\ell \\sqrt{\\max(0, e)}`

for :math:`\\phi` being the momentum (:math:`u`), the tracers (:math:`c`) and the TKE itself
(:math:`e`). The TKE is a tracer of the model, its sources (the shear production, the buoyancy
flux and the dissipation) are given by :func:`shear_production`, :func:`buoyancy_flux` and
:func:`dissipation`, and its surface flux by :mod:`tke_surface_flux`. These classes and functions
can be obtained by the prefix :code:`tkevd.closures.tke_based_vertical_diffusivity.` or directly by
:code:`tkevd.`.

"""

from __future__ import annotations
import warnings
from functools import partial
from typing import Any, ClassVar, Dict, Mapping, Optional, Sequence, Tuple, Type

import numpy as np
import xarray as xr
import equinox as eqx
import jax
import jax.numpy as jnp

from tkevd.space import Grid, Clock, ArrNz, ArrXY, ArrCenter, ArrZFace
from tkevd.fields import Field, CENTER
from tkevd.boundary_conditions import BoundaryCondition, FieldBoundaryConditions
from tkevd.operators import (
    dz_centers, interp_z_centers, interp_z_faces, interp_x_centers, interp_x_faces,
    interp_y_centers, interp_y_faces
)
from tkevd.closure import (
    AbstractTurbulenceClosure, Closure, TimeDiscretization, TracerKind,
    TurbulentKineticEnergyTracer, VerticallyImplicitTimeDiscretization, TKE_NAME, tke_closure
)
from tkevd.closures.tke_surface_flux import TKESurfaceFlux, add_tke_boundary_conditions
from tkevd.functions import _format_to_single_line

DIFFUSIVITY_NAMES: Tuple[str, ...] = ('ku', 'kc', 'ke')
"""Names of the diffusivity fields of the closure."""


class RiDependentDiffusivityScaling(eqx.Module):
    r"""
    Stability functions of the eddy-viscosity and eddy-diffusivities.

    Each stability function varies smoothly from its value for unstable stratification (:math:`-`)
    to its value for stable stratification (:math:`+`) around the critical Richardson number
    :math:`Ri^c` with the width :math:`Ri^w` (cf. :func:`scale`). The constructor takes all the
    attributes as parameters.

    Attributes
    ----------
    c_ku_minus : float, default=0.15
        Momentum stability function for unstable stratification :math:`C^{K}_{u-}`
        [dimensionless].
    c_ku_plus : float, default=0.73
        Momentum stability function for stable stratification :math:`C^{K}_{u+}` [dimensionless].
    c_kc_minus : float, default=0.40
        Tracers stability function for unstable stratification :math:`C^{K}_{c-}`
        [dimensionless].
    c_kc_plus : float, default=1.77
        Tracers stability function for stable stratification :math:`C^{K}_{c+}` [dimensionless].
    c_ke_minus : float, default=0.13
        TKE stability function for unstable stratification :math:`C^{K}_{e-}` [dimensionless].
    c_ke_plus : float, default=1.22
        TKE stability function for stable stratification :math:`C^{K}_{e+}` [dimensionless].
    c_ri_width : float, default=0.72
        Width of the transition between the unstable and stable values :math:`C^{K}_{Ri^w}`
        [dimensionless].
    c_ri_critical : float, default=0.76
        Center of the transition between the unstable and stable values :math:`C^{K}_{Ri^c}`
        [dimensionless].

    """

    c_ku_minus: float = 0.15
    c_ku_plus: float = 0.73
    c_kc_minus: float = 0.40
    c_kc_plus: float = 1.77
    c_ke_minus: float = 0.13
    c_ke_plus: float = 1.22
    c_ri_width: float = 0.72
    c_ri_critical: float = 0.76


class ConvectiveAdjustmentParameters(eqx.Module):
    """
    Stability functions used where the stratification is unstable.

    When the closure has convective adjustment, these values replace the stability functions of
    :class:`RiDependentDiffusivityScaling` in the cells where the vertical buoyancy gradient is
    negative, and the mixing length times the turbulent velocity is replaced by the convective
    diffusivity (cf. :func:`convective_diffusivity`). The constructor takes all the attributes as
    parameters.

    Attributes
    ----------
    c_au : float, default=1.0
        Momentum stability function :math:`C^A_u` [dimensionless].
    c_ac : float, default=100.0
        Tracers stability function :math:`C^A_c` [dimensionless].
    c_ae : float, default=100.0
        TKE stability function :math:`C^A_e` [dimensionless].

    """

    c_au: float = 1.0
    c_ac: float = 100.0
    c_ae: float = 100.0


def _convert_eltype(float_type: Type, tree: Any) -> Any:
    """Convert all the floats of a tree of parameters to :code:`float_type`."""
    return jax.tree_util.tree_map(lambda x: jnp.asarray(x, dtype=float_type), tree)


class DiffusivityFields(eqx.Module):
    r"""
    Eddy-viscosity and eddy-diffusivities computed by :class:`TKEBasedVerticalDiffusivity`.

    The constructor takes all the attributes as parameters.

    Attributes
    ----------
    ku : Field
        Eddy-viscosity on the centers of the cells
        :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    kc : Field
        Eddy-diffusivity of the tracers on the centers of the cells
        :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    ke : Field
        Eddy-diffusivity of the TKE on the centers of the cells
        :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.

    """

    ku: Field
    kc: Field
    ke: Field

    @classmethod
    def zeros(
            cls,
            grid: Grid,
            bcs: Optional[Mapping[str, FieldBoundaryConditions]]=None
        ) -> DiffusivityFields:
        """
        Allocate the three fields on a grid, with the boundary conditions of :code:`bcs` given for
        their names if any.
        """
        bcs = {} if bcs is None else bcs
        fields = [Field.zeros(grid, CENTER, bcs.get(name)) for name in DIFFUSIVITY_NAMES]
        return cls(*fields)

    def with_data(self, ku: ArrCenter, kc: ArrCenter, ke: ArrCenter) -> DiffusivityFields:
        """Replace the values of the three fields."""
        return eqx.tree_at(
            lambda t: (t.ku, t.kc, t.ke), self, (self.ku.set(ku), self.kc.set(kc), self.ke.set(ke))
        )

    def to_ds(self, grid: Grid) -> xr.Dataset:
        """
        Export the diffusivities in an :class:`xarray.Dataset`.

        Parameters
        ----------
        grid : Grid
            Geometry of the domain, used for the coordinates.

        Returns
        -------
        ds : Dataset
            Dataset with the variables :code:`ku`, :code:`kc` and :code:`ke` on the dimensions
            :code:`x`, :code:`y` and :code:`zr`.
        """
        dims = ('x', 'y', 'zr')
        variables = {
            name: (dims, np.asarray(getattr(self, name).data)) for name in DIFFUSIVITY_NAMES
        }
        coords = {
            'x': np.asarray(grid.xc),
            'y': np.asarray(grid.yc),
            'zr': np.asarray(grid.zr)
        }
        return xr.Dataset(variables, coords=coords)

    def to_nc(self, nc_path: str, grid: Grid) -> None:
        """
        Write the diffusivities in a netcdf file.

        Parameters
        ----------
        nc_path : str
            Path of the netcdf file to write.
        grid : Grid
            Geometry of the domain.
        """
        self.to_ds(grid).to_netcdf(nc_path)


class TKEBasedVerticalDiffusivity(AbstractTurbulenceClosure):
    r"""
    Closure with eddy-diffusivities computed from a prognostic turbulent kinetic energy.

    This closure is experimental and unvalidated, a warning is raised at each construction. All the
    float parameters are converted to :code:`float_type`.

    Parameters
    ----------
    float_type : type, default=float
        Type of the floats of the parameters (eg. :code:`float`, :code:`jnp.float32`).
    diffusivity_scaling : RiDependentDiffusivityScaling, optional, default=None
        cf. :attr:`diffusivity_scaling`, the default coefficients if :code:`None`.
    dissipation_parameter : float, default=2.91
        cf. :attr:`dissipation_parameter`.
    mixing_length_parameter : float, default=1.16
        cf. :attr:`mixing_length_parameter`.
    convective_adjustment : ConvectiveAdjustmentParameters, optional
        cf. :attr:`convective_adjustment`, the default coefficients if not given and :code:`None`
        to disable the convective adjustment.
    surface_model : TKESurfaceFlux, optional, default=None
        cf. :attr:`surface_model`, the default coefficients if :code:`None`.
    time_discretization : ExplicitTimeDiscretization or VerticallyImplicitTimeDiscretization, optional
        cf. :attr:`time_discretization`, vertically implicit if :code:`None`.

    Attributes
    ----------
    diffusivity_scaling : RiDependentDiffusivityScaling
        Stability functions of the diffusivities.
    dissipation_parameter : float
        Coefficient of the dissipation of TKE :math:`C^D` [dimensionless].
    mixing_length_parameter : float
        Coefficient of the buoyancy mixing length :math:`C^b` [dimensionless].
    convective_adjustment : ConvectiveAdjustmentParameters, optional
        Stability functions for unstable stratification, no convective adjustment if
        :code:`None`.
    surface_model : TKESurfaceFlux
        Coefficients of the surface flux of TKE.
    time_discretization : ExplicitTimeDiscretization or VerticallyImplicitTimeDiscretization
        Time discretization of the vertical fluxes.

    Warns
    -----
    UserWarning
        At each construction, the closure being experimental.

    """

    diffusivity_scaling: RiDependentDiffusivityScaling
    dissipation_parameter: float
    mixing_length_parameter: float
    convective_adjustment: Optional[ConvectiveAdjustmentParameters]
    surface_model: TKESurfaceFlux
    owns_tke_terms: ClassVar[bool] = True

    def __init__(
            self,
            float_type: Type=float,
            diffusivity_scaling: Optional[RiDependentDiffusivityScaling]=None,
            dissipation_parameter: float=2.91,
            mixing_length_parameter: float=1.16,
            convective_adjustment: Optional[ConvectiveAdjustmentParameters]=(
                ConvectiveAdjustmentParameters()),
            surface_model: Optional[TKESurfaceFlux]=None,
            time_discretization: Optional[TimeDiscretization]=None
        ) -> None:
        warnings.warn(_format_to_single_line("""
            TKEBasedVerticalDiffusivity is an experimental and unvalidated turbulence closure.
        """))
        if diffusivity_scaling is None:
            diffusivity_scaling = RiDependentDiffusivityScaling()
        if surface_model is None:
            surface_model = TKESurfaceFlux()
        if time_discretization is None:
            time_discretization = VerticallyImplicitTimeDiscretization()
        convert = partial(_convert_eltype, float_type)
        self.diffusivity_scaling = convert(diffusivity_scaling)
        self.dissipation_parameter = convert(dissipation_parameter)
        self.mixing_length_parameter = convert(mixing_length_parameter)
        self.convective_adjustment = convert(convective_adjustment)
        self.surface_model = convert(surface_model)
        self.time_discretization = time_discretization

    def with_tracers(self, tracer_names: Sequence[str]) -> TKEBasedVerticalDiffusivity:
        """
        Check that the tracers of the model contain the TKE.

        Raises
        ------
        ValueError
            If :data:`~closure.TKE_NAME` is not in :code:`tracer_names`.
        """
        if TKE_NAME not in tracer_names:
            raise ValueError(_format_to_single_line(f"""
                Tracers must contain '{TKE_NAME}' to represent turbulent kinetic energy for
                `TKEBasedVerticalDiffusivity`.
            """))
        return self

    def diffusivity_fields(
            self,
            grid: Grid,
            tracer_names: Sequence[str],
            bcs: Mapping[str, FieldBoundaryConditions]
        ) -> DiffusivityFields:
        """Allocate the fields :code:`ku`, :code:`kc` and :code:`ke`."""
        return DiffusivityFields.zeros(grid, bcs)

    def calculate_diffusivities(
            self,
            diffusivities: DiffusivityFields,
            model: Any
        ) -> DiffusivityFields:
        """
        Compute the eddy-viscosity and eddy-diffusivities in every cell.

        Parameters
        ----------
        diffusivities : DiffusivityFields
            The fields to fill.
        model : OceanModel
            The model, with its current grid, clock, fields, buoyancy and boundary conditions.

        Returns
        -------
        diffusivities : DiffusivityFields
            The fields with the new values.
        """
        top_tracer_bcs = {
            name: tracer.boundary_conditions.top for name, tracer in model.tracers.items()
        }
        ku, kc, ke = tke_diffusivities(
            self, model.grid, model.clock, model.fields, model.buoyancy, top_tracer_bcs
        )
        return jax.block_until_ready(diffusivities.with_data(ku, kc, ke))

    def add_closure_specific_boundary_conditions(
            self,
            user_bcs: Dict[str, FieldBoundaryConditions],
            grid: Grid,
            tracer_names: Sequence[str],
            buoyancy: Any,
            enclosing: Optional[Closure]=None
        ) -> Dict[str, FieldBoundaryConditions]:
        """
        Install the surface TKE flux as top condition of the TKE
        (cf. :func:`~tke_surface_flux.add_tke_boundary_conditions`).
        """
        closure = self if enclosing is None else enclosing
        return add_tke_boundary_conditions(closure, user_bcs, grid, tracer_names, buoyancy)

    def explicit_viscous_flux_uz(
            self,
            diffusivities: DiffusivityFields,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        ku = interp_z_faces(interp_x_faces(diffusivities.ku.data), grid)
        return - ku * fields['u'].dz(grid, clock, fields)

    def explicit_viscous_flux_vz(
            self,
            diffusivities: DiffusivityFields,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        ku = interp_z_faces(interp_y_faces(diffusivities.ku.data), grid)
        return - ku * fields['v'].dz(grid, clock, fields)

    def explicit_viscous_flux_wz(
            self,
            diffusivities: DiffusivityFields,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrCenter:
        return - diffusivities.ku.data * dz_centers(fields['w'].data, grid)

    def explicit_diffusive_flux_z(
            self,
            diffusivities: DiffusivityFields,
            kind: TracerKind,
            c: Field,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        k = interp_z_faces(self.z_diffusivity(kind, diffusivities), grid)
        return - k * c.dz(grid, clock, fields)

    def z_viscosity(self, diffusivities: DiffusivityFields) -> ArrCenter:
        return diffusivities.ku.data

    def z_diffusivity(self, kind: TracerKind, diffusivities: DiffusivityFields) -> ArrCenter:
        if isinstance(kind, TurbulentKineticEnergyTracer):
            return diffusivities.ke.data
        return diffusivities.kc.data


def wall_vertical_distance(grid: Grid) -> ArrNz:
    r"""
    Distance of the centers of the cells to the nearest vertical boundary :math:`\ell^z`.
    """
    depth = grid.zw[-1] - grid.zr
    height = grid.zr - grid.zw[0]
    return jnp.minimum(depth, height)


def buoyancy_mixing_length(
        closure: TKEBasedVerticalDiffusivity,
        e: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    r"""
    Mixing length limited by the stratification.

    :math:`\ell^b = C^b \dfrac{\sqrt{e^+}}{N}` with :math:`e^+ = \max(0, e)` and
    :math:`N = \sqrt{\max(0, N^2)}`. It is infinite where :math:`N = 0`.

    Parameters
    ----------
    closure : TKEBasedVerticalDiffusivity
        The closure, for :math:`C^b`.
    e : float :class:`~jax.Array` of shape (nx, ny, nz)
        TKE on the centers :math:`[\text m^2 \cdot \text s^{-2}]`.
    n2 : float :class:`~jax.Array` of shape (nx, ny, nz)
        Vertical buoyancy gradient on the centers :math:`[\text s^{-2}]`.

    Returns
    -------
    lb : float :class:`~jax.Array` of shape (nx, ny, nz)
        Buoyancy mixing length :math:`[\text m]`.
    """
    n = jnp.sqrt(jnp.maximum(0., n2))
    e_plus = jnp.maximum(0., e)
    n_safe = jnp.where(n == 0., 1., n)
    lb = closure.mixing_length_parameter * jnp.sqrt(e_plus) / n_safe
    return jnp.where(n == 0., jnp.inf, lb)


def dissipation_mixing_length(
        closure: TKEBasedVerticalDiffusivity,
        grid: Grid,
        e: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    r"""
    Mixing length of the closure.

    :math:`\ell = \max \left( \dfrac{\Delta z}{2}, \min(\ell^z, \ell^b) \right)` where
    :math:`\ell^z` is the distance to the nearest vertical boundary
    (:func:`wall_vertical_distance`) and :math:`\ell^b` the buoyancy mixing length
    (:func:`buoyancy_mixing_length`). It is never lower than half the thickness of the cell.
    """
    lz = wall_vertical_distance(grid)
    lb = buoyancy_mixing_length(closure, e, n2)
    return jnp.maximum(grid.hz/2, jnp.minimum(lz, lb))


def richardson_number(n2: ArrCenter, shear2: ArrCenter) -> ArrCenter:
    r"""
    Gradient Richardson number :math:`Ri = N^2 / S^2`, 0 where :math:`N^2 = 0`.

    A strictly non-zero :math:`N^2` with no shear gives an infinite Richardson number.
    """
    shear2_safe = jnp.where(n2 == 0., 1., shear2)
    return jnp.where(n2 == 0., 0., n2/shear2_safe)


def step(x: ArrCenter, c: float, w: float) -> ArrCenter:
    r"""Smooth step :math:`\dfrac{1}{2} \left( 1 + \tanh \dfrac{x-c}{w} \right)`."""
    return (1 + jnp.tanh((x - c) / w)) / 2


def scale(
        ri: ArrCenter,
        sigma_minus: float,
        sigma_plus: float,
        c: float,
        w: float
    ) -> ArrCenter:
    r"""
    Stability function varying from :code:`sigma_minus` to :code:`sigma_plus` with the Richardson
    number.

    :math:`\sigma = \sigma^- + (\sigma^+ - \sigma^-) \mathrm{step}(Ri, c, w)`
    """
    return sigma_minus + (sigma_plus - sigma_minus) * step(ri, c, w)


def is_unstable(n2: ArrCenter) -> ArrCenter:
    """Cells where the stratification is unstable."""
    return n2 < 0.


def _diffusivity_scale(
        closure: TKEBasedVerticalDiffusivity,
        variable: str,
        ri: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    scaling = closure.diffusivity_scaling
    stable = scale(
        ri,
        getattr(scaling, f'c_k{variable}_minus'),
        getattr(scaling, f'c_k{variable}_plus'),
        scaling.c_ri_critical,
        scaling.c_ri_width
    )
    if closure.convective_adjustment is None:
        return stable
    unstable = getattr(closure.convective_adjustment, f'c_a{variable}')
    return jnp.where(is_unstable(n2), unstable, stable)


def momentum_diffusivity_scale(
        closure: TKEBasedVerticalDiffusivity,
        ri: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    """Stability function of the eddy-viscosity :math:`\\sigma^u`."""
    return _diffusivity_scale(closure, 'u', ri, n2)


def tracer_diffusivity_scale(
        closure: TKEBasedVerticalDiffusivity,
        ri: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    """Stability function of the eddy-diffusivity of the tracers :math:`\\sigma^c`."""
    return _diffusivity_scale(closure, 'c', ri, n2)


def tke_diffusivity_scale(
        closure: TKEBasedVerticalDiffusivity,
        ri: ArrCenter,
        n2: ArrCenter
    ) -> ArrCenter:
    """Stability function of the eddy-diffusivity of the TKE :math:`\\sigma^e`."""
    return _diffusivity_scale(closure, 'e', ri, n2)


def turbulent_velocity(e: ArrCenter) -> ArrCenter:
    r"""Turbulent velocity :math:`\sqrt{\max(0, e)}` :math:`[\text m \cdot \text s^{-1}]`."""
    return jnp.sqrt(jnp.maximum(0., e))


def convective_diffusivity(e: ArrCenter, top_qb: ArrXY) -> ArrCenter:
    r"""
    Unscaled diffusivity in the unstable cells with convective adjustment.

    :math:`\dfrac{\max(0, e)^2}{Q^b}` where :math:`Q^b` is the buoyancy flux at the surface of the
    column, 0 if :math:`Q^b \leq 0`.
    """
    qb = top_qb[..., None]
    qb_safe = jnp.where(qb > 0., qb, 1.)
    return jnp.where(qb > 0., jnp.maximum(0., e)**2 / qb_safe, 0.)


def unscaled_diffusivity(
        closure: TKEBasedVerticalDiffusivity,
        grid: Grid,
        e: ArrCenter,
        n2: ArrCenter,
        top_qb: Optional[ArrXY]=None
    ) -> ArrCenter:
    r"""
    Diffusivity before its multiplication by the stability functions.

    :math:`\ell \sqrt{\max(0, e)}`, replaced by :func:`convective_diffusivity` in the unstable
    cells if the closure has convective adjustment.

    Parameters
    ----------
    closure : TKEBasedVerticalDiffusivity
        The closure.
    grid : Grid
        Geometry of the domain.
    e : float :class:`~jax.Array` of shape (nx, ny, nz)
        TKE on the centers :math:`[\text m^2 \cdot \text s^{-2}]`.
    n2 : float :class:`~jax.Array` of shape (nx, ny, nz)
        Vertical buoyancy gradient on the centers :math:`[\text s^{-2}]`.
    top_qb : float :class:`~jax.Array` of shape (nx, ny), optional, default=None
        Buoyancy flux at the surface :math:`[\text m^2 \cdot \text s^{-3}]`, only used with
        convective adjustment.

    Returns
    -------
    k : float :class:`~jax.Array` of shape (nx, ny, nz)
        Unscaled diffusivity :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    """
    ell = dissipation_mixing_length(closure, grid, e, n2)
    stable_k = ell * turbulent_velocity(e)
    if closure.convective_adjustment is None:
        return stable_k
    return jnp.where(is_unstable(n2), convective_diffusivity(e, top_qb), stable_k)


def shear_squared(grid: Grid, clock: Clock, fields: Mapping[str, Field]) -> ArrCenter:
    r"""
    Squared vertical shear of the horizontal velocity on the centers of the cells.

    :math:`S^2 = (\partial_z u)^2 + (\partial_z v)^2` where the squared derivatives are
    interpolated from the faces of the velocities to the centers.
    """
    dz_u2 = fields['u'].dz(grid, clock, fields)**2
    dz_v2 = fields['v'].dz(grid, clock, fields)**2
    return interp_z_centers(interp_x_centers(dz_u2)) + interp_z_centers(interp_y_centers(dz_v2))


def buoyancy_gradient(
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        buoyancy: Any
    ) -> ArrCenter:
    r"""Vertical buoyancy gradient :math:`N^2 = \partial_z b` on the centers of the cells."""
    return interp_z_centers(buoyancy.dz_b(grid, clock, fields))


@eqx.filter_jit
def tke_diffusivities(
        closure: TKEBasedVerticalDiffusivity,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        buoyancy: Any,
        top_tracer_bcs: Mapping[str, Optional[BoundaryCondition]]
    ) -> Tuple[ArrCenter, ArrCenter, ArrCenter]:
    r"""
    Eddy-viscosity and eddy-diffusivities of the closure in every cell.

    Parameters
    ----------
    closure : TKEBasedVerticalDiffusivity
        The closure.
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model, with :code:`'u'`, :code:`'v'` and :code:`'e'`.
    buoyancy : BuoyancyTracer or SeawaterBuoyancy
        Buoyancy model.
    top_tracer_bcs : Mapping[str, BoundaryCondition]
        Top boundary conditions of the tracers, for the surface buoyancy flux.

    Returns
    -------
    ku : float :class:`~jax.Array` of shape (nx, ny, nz)
        Eddy-viscosity :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    kc : float :class:`~jax.Array` of shape (nx, ny, nz)
        Eddy-diffusivity of the tracers :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    ke : float :class:`~jax.Array` of shape (nx, ny, nz)
        Eddy-diffusivity of the TKE :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.

    Notes
    -----
    This function is jitted with :func:`equinox.filter_jit`.
    """
    e = fields[TKE_NAME].data
    n2 = buoyancy_gradient(grid, clock, fields, buoyancy)
    ri = richardson_number(n2, shear_squared(grid, clock, fields))
    if closure.convective_adjustment is None:
        top_qb = None
    else:
        top_qb = buoyancy.top_buoyancy_flux(grid, top_tracer_bcs, clock, fields)
    k = unscaled_diffusivity(closure, grid, e, n2, top_qb)
    ku = momentum_diffusivity_scale(closure, ri, n2) * k
    kc = tracer_diffusivity_scale(closure, ri, n2) * k
    ke = tke_diffusivity_scale(closure, ri, n2) * k
    return ku, kc, ke


def shear_production(
        closure: Closure,
        diffusivities: Any,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrCenter:
    r"""
    Production of TKE by the vertical shear :math:`K^u S^2`.

    For a sequence of closures, the eddy-viscosity of its first closure is used.
    """
    _, diffusivities = tke_closure(closure, diffusivities)
    return diffusivities.ku.data * shear_squared(grid, clock, fields)


def buoyancy_flux(
        closure: Closure,
        diffusivities: Any,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        buoyancy: Any
    ) -> ArrCenter:
    r"""
    Production of TKE by the buoyancy flux :math:`- K^c N^2`.

    For a sequence of closures, the eddy-diffusivity of its first closure is used.
    """
    _, diffusivities = tke_closure(closure, diffusivities)
    return - diffusivities.kc.data * buoyancy_gradient(grid, clock, fields, buoyancy)


def dissipation(
        closure: Closure,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        buoyancy: Any
    ) -> ArrCenter:
    r"""
    Dissipation of TKE :math:`C^D \dfrac{|e|^{3/2}}{\ell}`.

    Slightly negative values of the TKE are dissipated like positive ones. For a sequence of
    closures, the parameters of its first closure are used.
    """
    closure, _ = tke_closure(closure)
    e = fields[TKE_NAME].data
    n2 = buoyancy_gradient(grid, clock, fields, buoyancy)
    ell = dissipation_mixing_length(closure, grid, e, n2)
    return closure.dissipation_parameter * jnp.abs(e)**1.5 / ell
