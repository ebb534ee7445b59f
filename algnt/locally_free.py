r"""
Locally free class groups of commutative orders.

For an order `O` in a commutative semisimple algebra `A = \prod K_i` with
maximal order `O_A` and conductor `F`, the locally free class group is the
quotient of the product of the ray class groups of the `K_i` modulo the
components of `F` by the classes of the elements of `K_1(O/F)`.
"""
from sage.arith.misc import crt
from sage.misc.misc_c import prod
from sage.misc.verbose import verbose
from sage.modules.free_module_element import free_module_element as vector
from sage.rings.all import ZZ
from sage.structure.sage_object import SageObject

from .algebras import unit_group_generators
from .util import muted, read_parameters


class RayClassGroup(SageObject):
    r"""
    The ray class group of the ring of integers of ``K`` modulo the ideal
    ``modulus`` (no infinite places).

    EXAMPLES::

        sage: from algnt.locally_free import RayClassGroup
        sage: K.<i> = QuadraticField(-1)
        sage: R = RayClassGroup(K, K.ideal(3))
        sage: R.invariants()
        [2]
        sage: R.discrete_log(K.ideal(2 + i))
        [1]
        sage: R.discrete_log(K.ideal(2))
        [0]
    """

    def __init__(self, K, modulus):
        self._field = K
        self._modulus = modulus
        self._bnr = K.pari_bnf().bnrinit(modulus.pari_hnf(), 1)
        self._cyc = [ZZ(c) for c in self._bnr[4][1]]  # bnr.clgp.cyc

    def field(self):
        return self._field

    def modulus(self):
        return self._modulus

    def invariants(self):
        return list(self._cyc)

    def order(self):
        return prod(self._cyc, ZZ(1))

    def discrete_log(self, I):
        r"""
        Coordinates of the class of the ideal ``I``, which has to be coprime
        to the modulus.
        """
        if not (I + self._modulus).is_one():
            raise ValueError("the ideal must be coprime to the modulus")
        v = self._bnr.bnrisprincipal(I.pari_hnf(), 0)
        return [ZZ(c) % n for c, n in zip(v, self._cyc)]

    def _repr_(self):
        return "Ray class group of %s modulo %s with invariants %s" % (
            self._field,
            self._modulus,
            self._cyc,
        )


@muted
def _residue_units(R):
    return [R.lift(u) for u in unit_group_generators(R.algebra())]


def K1_order_mod_conductor(O, F):
    r"""
    Generators of `K_1(O/F)`, that is of the unit group of the finite ring
    `O/F`, as elements of the commutative order ``O``.

    The ring is split into its primary parts `O/(F + p^e O)`. Each of them
    is an extension of `K_1(O/(F + pO))` by `(1 + F + pO)/(1 + F + p^e O)`,
    and the primary parts are glued with the Chinese remainder theorem.

    EXAMPLES::

        sage: from algnt.algebras import integral_group_ring
        sage: from algnt.locally_free import K1_order_mod_conductor
        sage: O = integral_group_ring(CyclicPermutationGroup(2))
        sage: F = O.ideal_from_integer(4)
        sage: gens = K1_order_mod_conductor(O, F)
        sage: all(g in O for g in gens)
        True
    """
    if not O.is_commutative():
        raise NotImplementedError("only commutative orders are supported")
    N = ZZ(F.index())
    one = O.algebra().one()
    gens = []
    for p, e in N.factor():
        pe = p**e
        M = F + O.ideal_from_integer(pe)
        P = F + O.ideal_from_integer(p)
        local = []
        Pk = P
        while not Pk <= M:
            local.extend(one + x for x in Pk.basis())
            Pk = Pk * P
        local.extend(_residue_units(O.residue_algebra(P, p)))
        c = crt(ZZ(1), ZZ(0), pe, N // pe)
        verbose("%s generators at %s" % (len(local), p), level=2)
        gens.extend(one + c * (x - one) for x in local)
    return gens


def _component_ideals(D, F):
    fields = D.fields()
    images = [D.to_fields(b) for b in F.basis()]
    return [K.ideal([y[i] for y in images]) for i, K in enumerate(fields)]


def reduced_norm_classes(x, D, groups):
    r"""
    The coordinates of the class of `\mathrm{nr}(x) O_A` in the product of
    the ray class groups ``groups``, one for each component of the
    decomposition ``D``.
    """
    ans = []
    for y, R in zip(D.to_fields(x), groups):
        if y == 0:
            raise ZeroDivisionError("the element is not invertible")
        ans.extend(R.discrete_log(R.field().ideal(y)))
    return ans


def locally_free_class_group(O, cond="center", random_tries=None):
    r"""
    The locally free class group of the order ``O`` in a commutative
    semisimple `\QQ`-algebra, as a finitely generated abelian group.

    For commutative algebras the conductors ``"left"``, ``"center"`` and
    ``"product"`` all coincide with the conductor of ``O`` in the maximal
    order.

    EXAMPLES::

        sage: from algnt.algebras import structure_constant_algebra, integral_group_ring
        sage: from algnt.orders import AlgebraOrder
        sage: from algnt.locally_free import locally_free_class_group
        sage: A = structure_constant_algebra(QQ, [[[1, 0], [0, 1]], [[0, 1], [-1, 0]]])
        sage: one, w = A.gens()
        sage: locally_free_class_group(AlgebraOrder(A, [one, 3 * w])).invariants()
        (2,)
        sage: B = structure_constant_algebra(QQ, [[[1, 0], [0, 1]], [[0, 1], [-5, 0]]])
        sage: one, w = B.gens()
        sage: locally_free_class_group(AlgebraOrder(B, [one, w])).invariants()
        (2,)
        sage: locally_free_class_group(integral_group_ring(CyclicPermutationGroup(5))).invariants()
        ()
    """
    if cond not in ("left", "center", "product"):
        raise ValueError("unknown conductor type %s" % cond)
    if not O.is_commutative():
        raise NotImplementedError("only commutative algebras are supported")
    params = read_parameters(
        "LocallyFreeClassGroup", {"random_tries": 100}, random_tries=random_tries
    )
    OA = O.maximal_order()
    F = O.conductor(OA)
    D = O.decomposition()
    groups = [
        RayClassGroup(K, FK) for K, FK in zip(D.fields(), _component_ideals(D, F))
    ]
    cyc = sum((R.invariants() for R in groups), [])
    verbose("ray class groups with invariants %s" % cyc, level=1)
    r = len(cyc)
    V = ZZ**r
    rels = [vector(ZZ, [c if j == i else 0 for j in range(r)]) for i, c in enumerate(cyc)]
    if F.index() > 1:
        Fbasis = F.basis()
        for x in K1_order_mod_conductor(O, F):
            for _ in range(params.random_tries):
                try:
                    rels.append(vector(ZZ, reduced_norm_classes(x, D, groups)))
                    break
                except ZeroDivisionError:
                    x = x + sum(
                        (ZZ.random_element(-5, 6) * f for f in Fbasis),
                        O.algebra().zero(),
                    )
            else:
                raise RuntimeError("could not find an invertible representative")
    return V / V.span(rels)
