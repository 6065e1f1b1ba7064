"""
Importation of tkevd classes and functions for shortcuts.
"""


from .space import Grid, Clock
from .fields import Field, CENTER, X_FACE, Y_FACE, Z_FACE
from .boundary_conditions import (
    BoundaryCondition, FluxBoundaryCondition, GradientBoundaryCondition, ValueBoundaryCondition,
    DefaultBoundaryCondition, FieldBoundaryConditions, getbc, boundary_flux
)
from .buoyancy import BuoyancyTracer, SeawaterBuoyancy
from .functions import tridiag_solve, tridiag_solve_columns, add_boundaries
from .closure import (
    AbstractTurbulenceClosure, ClosureSequence, ExplicitTimeDiscretization,
    VerticallyImplicitTimeDiscretization, OrdinaryTracer, TurbulentKineticEnergyTracer,
    tracer_kind, TKE_NAME
)
from .closures.tke_based_vertical_diffusivity import (
    TKEBasedVerticalDiffusivity, RiDependentDiffusivityScaling, ConvectiveAdjustmentParameters,
    DiffusivityFields, shear_production, buoyancy_flux, dissipation
)
from .closures.tke_surface_flux import TKESurfaceFlux
from .closures.vertical_scalar_diffusivity import VerticalScalarDiffusivity
from .closures_registry import CLOSURES_REGISTRY
from .fluxes import (
    viscous_flux_uz, viscous_flux_vz, viscous_flux_wz, diffusive_flux_x, diffusive_flux_y,
    diffusive_flux_z, z_viscosity, z_diffusivity
)
from .tendencies import (
    tracer_tendency, velocity_tendency, diffusion_solver, implicit_vertical_step
)
from .model import OceanModel
