r"""
Finite-dimensional commutative algebras.

The algebras are Sage ``FiniteDimensionalAlgebra`` objects given by
structure constants. Over a prime field `GF(p)` we compute the radical,
the decomposition of the semisimple quotient into fields and generators of
the unit group; over `\QQ` we split a semisimple algebra into number fields.
"""
from sage.algebras.finite_dimensional_algebras.finite_dimensional_algebra import (
    FiniteDimensionalAlgebra,
)
from sage.matrix.all import Matrix, identity_matrix
from sage.misc.cachefunc import cached_method
from sage.misc.verbose import verbose
from sage.modules.free_module_element import free_module_element as vector
from sage.rings.all import QQ, ZZ
from sage.rings.number_field.number_field import NumberField
from sage.structure.sage_object import SageObject


def structure_constant_algebra(k, products, names="e"):
    r"""
    Return the algebra over ``k`` with basis `e_0, \dots, e_{n-1}` and
    `e_i e_j = \sum_l` ``products[i][j][l]`` `e_l`.

    EXAMPLES::

        sage: from algnt.algebras import structure_constant_algebra
        sage: A = structure_constant_algebra(QQ, [[[1, 0], [0, 1]], [[0, 1], [-1, 0]]])
        sage: e0, e1 = A.gens()
        sage: e1 * e1 == -e0
        True
        sage: A.one() == e0
        True
    """
    n = len(products)
    table = [Matrix(k, n, n, [list(products[j][i]) for j in range(n)]) for i in range(n)]
    return FiniteDimensionalAlgebra(k, table, names=names, assume_associative=True)


def group_algebra(G, k=QQ):
    r"""
    Return ``(A, elements)`` with ``A`` the group algebra `k[G]` of the
    finite group ``G`` on the basis ``elements``.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra
        sage: A, elts = group_algebra(CyclicPermutationGroup(3))
        sage: A.degree(), A.is_commutative()
        (3, True)
    """
    elts = list(G)
    index = {g: i for i, g in enumerate(elts)}
    n = len(elts)

    def unit(i):
        return [1 if l == i else 0 for l in range(n)]

    products = [[unit(index[g * h]) for h in elts] for g in elts]
    return structure_constant_algebra(k, products, names="g"), elts


def _power(x, m):
    result = None
    base = x
    while m:
        if m & 1:
            result = base if result is None else result * base
        m >>= 1
        if m:
            base = base * base
    return result


class QuotientAlgebra(SageObject):
    r"""
    The quotient of an algebra ``A`` over a field by an ideal ``W``, given as
    a subspace of the coordinate space of ``A``.

    The basis of the quotient consists of the images of the basis vectors of
    ``A`` at the non-pivot positions of the echelon form of ``W``.

    EXAMPLES::

        sage: from algnt.algebras import structure_constant_algebra, QuotientAlgebra
        sage: A = structure_constant_algebra(GF(3), [[[1, 0], [0, 1]], [[0, 1], [0, 0]]])
        sage: W = (GF(3)^2).subspace([[0, 1]])
        sage: Q = QuotientAlgebra(A, W)
        sage: Q.algebra().degree()
        1
        sage: Q.project(A.gens()[1]) == 0
        True
        sage: Q.lift(Q.algebra().one()) == A.one()
        True
    """

    def __init__(self, A, W):
        k = A.base_ring()
        n = A.degree()
        self._ambient = A
        E = W.echelonized_basis_matrix() if W.dimension() > 0 else Matrix(k, 0, n)
        self._echelon = E
        self._pivots = E.pivots()
        self._free = [j for j in range(n) if j not in self._pivots]
        if len(self._free) == 0:
            raise ValueError("the quotient is the zero ring")
        basis = [A(vector(k, [1 if l == j else 0 for l in range(n)])) for j in self._free]
        products = [[self._coordinates(x * y) for y in basis] for x in basis]
        self._quotient = structure_constant_algebra(k, products, names="q")

    def _coordinates(self, x):
        v = vector(self._ambient.base_ring(), list(x.vector()))
        for r, j in zip(self._echelon.rows(), self._pivots):
            if v[j] != 0:
                v = v - v[j] * r
        return [v[j] for j in self._free]

    def ambient(self):
        return self._ambient

    def algebra(self):
        return self._quotient

    def project(self, x):
        return self._quotient(self._coordinates(self._ambient(x)))

    def lift(self, y):
        k = self._ambient.base_ring()
        n = self._ambient.degree()
        v = [k(0)] * n
        for j, c in zip(self._free, y.vector()):
            v[j] = c
        return self._ambient(v)

    def _repr_(self):
        return "Quotient of dimension %s of %s" % (len(self._free), self._ambient)


def frobenius_radical(A):
    r"""
    The Jacobson radical of a commutative algebra ``A`` over `GF(p)`, as a
    subspace of the coordinate space.

    In characteristic `p` the Frobenius `x \mapsto x^p` is linear on a
    commutative algebra, and the radical is the kernel of its `t`-th power
    for any `p^t \geq \dim A`.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra, frobenius_radical
        sage: A, _ = group_algebra(CyclicPermutationGroup(4), GF(2))
        sage: frobenius_radical(A).dimension()
        3
        sage: A, _ = group_algebra(CyclicPermutationGroup(4), GF(5))
        sage: frobenius_radical(A).dimension()
        0
    """
    k = A.base_ring()
    p = k.characteristic()
    if not k.is_prime_field():
        raise NotImplementedError("only prime fields are supported")
    n = A.degree()
    Phi = Matrix(k, [_power(b, p).vector() for b in A.gens()])
    t = 0
    while p**t < n:
        t += 1
    return (Phi**t).left_kernel()


def ideal_powers(A, J):
    r"""
    The chain ``[J, J^2, ..., 0]`` for a nilpotent ideal ``J`` of ``A``.
    """
    ambient = J.ambient_vector_space()
    powers = [J]
    while powers[-1].dimension() > 0:
        prev = powers[-1]
        gens = [(A(u) * A(w)).vector() for u in prev.basis() for w in J.basis()]
        nxt = ambient.subspace(gens)
        if nxt == prev:
            raise ValueError("the ideal is not nilpotent")
        powers.append(nxt)
    return powers


def primitive_idempotents(S):
    r"""
    The primitive idempotents of a commutative semisimple algebra ``S`` over
    `GF(p)`.

    They are obtained by splitting `1` with the elements of the Berlekamp
    subalgebra `\{x : x^p = x\}`, which is a product of copies of `GF(p)`,
    one for each simple component.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra, primitive_idempotents
        sage: A, _ = group_algebra(CyclicPermutationGroup(6), GF(7))
        sage: E = primitive_idempotents(A)
        sage: len(E), sum(E, A.zero()) == A.one()
        (6, True)
        sage: all(e * e == e for e in E)
        True
    """
    k = S.base_ring()
    p = k.characteristic()
    one = S.one()
    n = S.degree()
    Phi = Matrix(k, [_power(b, p).vector() for b in S.gens()])
    fixed = (Phi - identity_matrix(k, n)).left_kernel()
    idems = [one]
    for y in fixed.basis():
        y = S(y)
        new = []
        for e in idems:
            z = e * y
            for c in z.minimal_polynomial().roots(multiplicities=False):
                f = e * (one - _power(z - c * one, p - 1))
                if f != 0:
                    new.append(f)
        idems = new
    assert len(idems) == fixed.dimension()
    return idems


def multiplicative_generator(S, e, tries=1000):
    r"""
    A generator of the cyclic unit group of the field ``e*S``, for a
    primitive idempotent ``e`` of a commutative semisimple algebra ``S``
    over `GF(p)`.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra, primitive_idempotents, multiplicative_generator
        sage: A, _ = group_algebra(CyclicPermutationGroup(3), GF(2))
        sage: e = [f for f in primitive_idempotents(A) if f != sum(A.gens(), A.zero())][0]
        sage: u = multiplicative_generator(A, e)
        sage: u != e and u * u * u == e
        True
    """
    k = S.base_ring()
    p = k.characteristic()
    B = Matrix(k, [(e * b).vector() for b in S.gens()])
    comp = B.row_space()
    f = comp.dimension()
    N = ZZ(p) ** f - 1
    if N == 1:
        return e
    ells = N.prime_divisors()
    for _ in range(tries):
        u = S(comp.random_element())
        if _power(u, N) != e:
            continue
        if all(_power(u, N // l) != e for l in ells):
            return u
    raise RuntimeError("no generator found")


def unit_group_generators(A):
    r"""
    Generators of the unit group of a finite commutative algebra ``A`` over
    `GF(p)`.

    The unit group is an extension of the units of ``A/J`` by `1 + J`; the
    latter is generated by `1 + x` for `x` running over bases of the powers
    of `J`, the former by one lift per simple component of a generator of
    that component.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra, unit_group_generators
        sage: A, _ = group_algebra(CyclicPermutationGroup(4), GF(2))
        sage: gens = unit_group_generators(A)
        sage: all(g.is_invertible() for g in gens)
        True
        sage: G = MatrixGroup([g.matrix() for g in gens])
        sage: G.order()
        8
    """
    J = frobenius_radical(A)
    one = A.one()
    gens = []
    for Jk in ideal_powers(A, J)[:-1]:
        gens.extend(one + A(v) for v in Jk.basis())
    Q = QuotientAlgebra(A, J)
    S = Q.algebra()
    idems = primitive_idempotents(S)
    verbose("%s simple components" % len(idems), level=2)
    for e in idems:
        u = multiplicative_generator(S, e)
        gens.append(Q.lift(u + (S.one() - e)))
    return gens


class SemisimpleDecomposition(SageObject):
    r"""
    The decomposition of a commutative semisimple `\QQ`-algebra ``A`` into a
    product of number fields.

    A primitive element `\theta` is searched among small integral
    combinations of ``elements`` (by default the basis of ``A``), so that
    its minimal polynomial `m` is integral when the elements span an order.
    Then `A \cong \QQ[x]/(m) \cong \prod \QQ[x]/(m_i)`.

    EXAMPLES::

        sage: from algnt.algebras import group_algebra, SemisimpleDecomposition
        sage: A, elts = group_algebra(CyclicPermutationGroup(6))
        sage: D = SemisimpleDecomposition(A)
        sage: sorted(K.degree() for K in D.fields())
        [1, 1, 2, 2]
        sage: x = A.gens()[1] + 3 * A.gens()[4]
        sage: D.from_fields(D.to_fields(x)) == x
        True
        sage: sum(D.idempotents(), A.zero()) == A.one()
        True
    """

    def __init__(self, A, elements=None, tries=100):
        if A.base_ring() is not QQ:
            raise ValueError("the algebra must be defined over the rationals")
        if not A.is_commutative():
            raise NotImplementedError("only commutative algebras are supported")
        n = A.degree()
        elts = list(elements) if elements is not None else list(A.gens())
        self._algebra = A
        theta = None
        for t in range(tries):
            bound = 1 + t // 10
            x = sum(
                (ZZ.random_element(-bound, bound + 1) * b for b in elts), A.zero()
            )
            m = x.minimal_polynomial()
            if m.degree() == n and m.is_squarefree():
                theta = x
                break
        if theta is None:
            raise ValueError("the algebra does not seem to be semisimple")
        self._theta = theta
        self._minpoly = m
        powers = [A.one()]
        for _ in range(n - 1):
            powers.append(powers[-1] * theta)
        self._P = Matrix(QQ, [p.vector() for p in powers])
        self._Pinv = self._P.inverse()
        self._factors = [g for g, _ in m.factor()]
        self._fields = [
            NumberField(g, "a%s" % i) for i, g in enumerate(self._factors)
        ]
        self._idempotent_polys = []
        for g in self._factors:
            M = m // g
            d, s, _ = M.xgcd(g)
            assert d == 1
            self._idempotent_polys.append((s * M) % m)
        verbose(
            "components of degrees %s" % [K.degree() for K in self._fields], level=2
        )

    def algebra(self):
        return self._algebra

    def primitive_element(self):
        return self._theta

    def minimal_polynomial(self):
        return self._minpoly

    def fields(self):
        return self._fields

    def _poly(self, x):
        R = self._minpoly.parent()
        return R(list(self._algebra(x).vector() * self._Pinv))

    def _element(self, h):
        n = self._algebra.degree()
        c = list((h % self._minpoly).list())
        c += [QQ(0)] * (n - len(c))
        return self._algebra(vector(QQ, c) * self._P)

    def to_fields(self, x):
        h = self._poly(x)
        return [K(h(K.gen())) for K in self._fields]

    def from_fields(self, ys):
        R = self._minpoly.parent()
        h = sum(
            (R(K(y).polynomial().list()) * e
             for K, y, e in zip(self._fields, ys, self._idempotent_polys)),
            R(0),
        )
        return self._element(h)

    @cached_method
    def idempotents(self):
        return [self._element(e) for e in self._idempotent_polys]

    def _repr_(self):
        return "Decomposition of %s into %s number fields" % (
            self._algebra,
            len(self._fields),
        )


def integral_group_ring(G):
    r"""
    The order `\ZZ[G]` in the group algebra `\QQ[G]` of a finite group.

    EXAMPLES::

        sage: from algnt.algebras import integral_group_ring
        sage: O = integral_group_ring(CyclicPermutationGroup(4))
        sage: O.algebra().degree(), O.is_maximal()
        (4, False)
    """
    from .orders import AlgebraOrder

    A, _ = group_algebra(G)
    return AlgebraOrder(A, A.gens())
