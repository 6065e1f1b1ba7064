"""
Buoyancy models.

A buoyancy model tells how the buoyancy is computed from the tracers of the model. The closure uses
it for the stratification (the vertical gradient of buoyancy) and for the buoyancy flux through the
surface. These classes can be obtained by the prefix :code:`tkevd.buoyancy.` or directly by
:code:`tkevd.`.

"""

from typing import Mapping, Tuple, Union

import equinox as eqx

from tkevd.space import Grid, Clock, ArrXY, ArrCenter, ArrZFace
from tkevd.fields import Field
from tkevd.boundary_conditions import BoundaryCondition, boundary_flux
from tkevd.functions import _format_to_single_line


class BuoyancyTracer(eqx.Module):
    """
    The buoyancy is directly the tracer :code:`'b'` of the model.
    """

    @property
    def required_tracers(self) -> Tuple[str, ...]:
        """Names of the tracers needed to compute the buoyancy."""
        return ('b',)

    def buoyancy(self, fields: Mapping[str, Field]) -> ArrCenter:
        """Buoyancy on the centers of the cells :math:`[\\text m \\cdot \\text s^{-2}]`."""
        return fields['b'].data

    def dz_b(self, grid: Grid, clock: Clock, fields: Mapping[str, Field]) -> ArrZFace:
        """Vertical gradient of buoyancy on the vertical faces :math:`[\\text s^{-2}]`."""
        return fields['b'].dz(grid, clock, fields)

    def top_buoyancy_flux(
            self,
            grid: Grid,
            top_tracer_bcs: Mapping[str, BoundaryCondition],
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrXY:
        """Buoyancy flux through the top of each column :math:`[\\text m^2 \\cdot \\text s^{-3}]`."""
        return boundary_flux(top_tracer_bcs['b'], grid, clock, fields)


class SeawaterBuoyancy(eqx.Module):
    r"""
    Buoyancy of seawater with a linear equation of state.

    The buoyancy is :math:`b = g \left( \alpha (T - T_0) - \beta (S - S_0) \right)`, where the
    temperature :math:`T` is the tracer :code:`'t'` and the salinity :math:`S` the tracer
    :code:`'s'`. The constructor takes all the attributes as parameters.

    Attributes
    ----------
    grav : float, default=9.81
        Gravity acceleration :math:`[\text{m} \cdot \text{s}^{-2}]`.
    alpha : float, default=2e-4
        Thermal expansion coefficient :math:`[\text{K}^{-1}]`.
    beta : float, default=8e-4
        Salinity expansion coefficient :math:`[\text{psu}^{-1}]`.
    t_rho_ref : float, default=0.
        Reference temperature :math:`T_0` :math:`[° \text C]`.
    s_rho_ref : float, default=35.
        Reference salinity :math:`S_0` :math:`[\text{psu}]`.
    eos_tracers : str, default='t'
        Tracers used for the equation of state. One of {:code:`'t'`, :code:`'s'`, :code:`'ts'`}.

    Raises
    ------
    ValueError
        If :attr:`eos_tracers` is not one of the possible values.

    """

    grav: float = 9.81
    alpha: float = 2e-4
    beta: float = 8e-4
    t_rho_ref: float = 0.
    s_rho_ref: float = 35.
    eos_tracers: str = eqx.field(default='t', static=True)

    def __check_init__(self):
        if self.eos_tracers not in ('t', 's', 'ts'):
            raise ValueError(_format_to_single_line(f"""
                `eos_tracers` should be one of 't', 's' or 'ts', got {self.eos_tracers!r}.
            """))

    @property
    def required_tracers(self) -> Tuple[str, ...]:
        """Names of the tracers needed to compute the buoyancy."""
        return tuple(self.eos_tracers)

    def _combine(
            self,
            t_term: Union[float, ArrCenter, ArrZFace, ArrXY],
            s_term: Union[float, ArrCenter, ArrZFace, ArrXY]
        ):
        return self.grav*(self.alpha*t_term - self.beta*s_term)

    def buoyancy(self, fields: Mapping[str, Field]) -> ArrCenter:
        """Buoyancy on the centers of the cells :math:`[\\text m \\cdot \\text s^{-2}]`."""
        t = fields['t'].data - self.t_rho_ref if 't' in self.eos_tracers else 0.
        s = fields['s'].data - self.s_rho_ref if 's' in self.eos_tracers else 0.
        return self._combine(t, s)

    def dz_b(self, grid: Grid, clock: Clock, fields: Mapping[str, Field]) -> ArrZFace:
        """Vertical gradient of buoyancy on the vertical faces :math:`[\\text s^{-2}]`."""
        dz_t = fields['t'].dz(grid, clock, fields) if 't' in self.eos_tracers else 0.
        dz_s = fields['s'].dz(grid, clock, fields) if 's' in self.eos_tracers else 0.
        return self._combine(dz_t, dz_s)

    def top_buoyancy_flux(
            self,
            grid: Grid,
            top_tracer_bcs: Mapping[str, BoundaryCondition],
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrXY:
        """Buoyancy flux through the top of each column :math:`[\\text m^2 \\cdot \\text s^{-3}]`."""
        q_t = boundary_flux(top_tracer_bcs['t'], grid, clock, fields) \
            if 't' in self.eos_tracers else 0.
        q_s = boundary_flux(top_tracer_bcs['s'], grid, clock, fields) \
            if 's' in self.eos_tracers else 0.
        return self._combine(q_t, q_s)
