# Add the import for which you want to give a direct access
from sage.all_cmdline import *

from .algebras import (
    SemisimpleDecomposition,
    group_algebra,
    integral_group_ring,
    structure_constant_algebra,
    unit_group_generators,
)
from .compact import compact_presentation, evaluate_mod, is_power
from .facelem import FactoredElement, FactoredElements
from .genus import DyadicGenusSymbol, LocalGenusSymbol, genus, hermitian_local_genus
from .lattices import (
    HermitianLattice,
    QuadraticLattice,
    hermitian_lattice,
    is_locally_isometric,
    is_rationally_isometric,
    lattice,
    maximal_integral_lattice,
    quadratic_lattice,
)
from .locally_free import (
    K1_order_mod_conductor,
    RayClassGroup,
    locally_free_class_group,
)
from .orders import AlgebraOrder, OrderIdeal
from .pseudo_matrix import PseudoMatrix, pseudo_echelon_form
from .spaces import (
    HermitianSpace,
    QuadraticSpace,
    hermitian_space,
    quadratic_space,
    rationals_as_number_field,
)
from .util import Bunch, config_section_map, read_parameters
