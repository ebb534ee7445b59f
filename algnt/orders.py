from sage.matrix.all import Matrix, block_matrix, identity_matrix
from sage.misc.cachefunc import cached_method
from sage.misc.verbose import verbose
from sage.modules.free_module import FreeModule
from sage.modules.free_module_element import free_module_element as vector
from sage.rings.all import GF, QQ, ZZ
from sage.structure.sage_object import SageObject

from .algebras import QuotientAlgebra, SemisimpleDecomposition, structure_constant_algebra


class AlgebraOrder(SageObject):
    r"""
    A `\ZZ`-order of full rank in a finite-dimensional `\QQ`-algebra,
    given by a `\ZZ`-basis.

    EXAMPLES::

        sage: from algnt.algebras import structure_constant_algebra
        sage: from algnt.orders import AlgebraOrder
        sage: A = structure_constant_algebra(QQ, [[[1, 0], [0, 1]], [[0, 1], [-1, 0]]])
        sage: one, w = A.gens()
        sage: O = AlgebraOrder(A, [one, 3 * w])
        sage: w in O, 3 * w in O
        (False, True)
        sage: O.discriminant()
        -36
        sage: O.index_in(O.maximal_order())
        3
        sage: AlgebraOrder(A, [one, w / 2])
        Traceback (most recent call last):
        ...
        ValueError: the basis is not closed under multiplication
    """

    def __init__(self, A, basis, check=True):
        self._algebra = A
        self._basis = [A(b) for b in basis]
        n = A.degree()
        if len(self._basis) != n:
            raise ValueError("the basis must have %s elements" % n)
        self._B = Matrix(QQ, [b.vector() for b in self._basis])
        if self._B.determinant() == 0:
            raise ValueError("the elements are linearly dependent")
        self._Binv = self._B.inverse()
        if check:
            if A.one() not in self:
                raise ValueError("the order must contain 1")
            for x in self._basis:
                for y in self._basis:
                    if x * y not in self:
                        raise ValueError("the basis is not closed under multiplication")

    def algebra(self):
        return self._algebra

    def basis(self):
        return list(self._basis)

    def basis_matrix(self):
        return self._B

    def rank(self):
        return len(self._basis)

    def coordinates(self, x):
        return vector(QQ, self._algebra(x).vector()) * self._Binv

    def __contains__(self, x):
        try:
            x = self._algebra(x)
        except (TypeError, ValueError):
            return False
        return all(c in ZZ for c in self.coordinates(x))

    def element(self, coords):
        return self._algebra(vector(QQ, list(coords)) * self._B)

    def is_commutative(self):
        return self._algebra.is_commutative()

    @cached_method
    def multiplication_table(self):
        r"""
        The integral matrices `T_i` whose row `j` holds the coordinates of
        `b_j b_i`.
        """
        return [
            Matrix(ZZ, [self.coordinates(bj * bi) for bj in self._basis])
            for bi in self._basis
        ]

    def right_multiplication_matrix(self, x):
        return Matrix(QQ, [self.coordinates(b * x) for b in self._basis])

    @cached_method
    def discriminant(self):
        G = Matrix(
            QQ,
            [[(x * y).matrix().trace() for y in self._basis] for x in self._basis],
        )
        return ZZ(G.determinant())

    def index_in(self, other):
        r"""
        The index `[other : self]`, for an order ``other`` containing this
        one.
        """
        T = self._B * other._Binv
        if any(c not in ZZ for c in T.list()):
            raise ValueError("the order is not contained in the other one")
        return ZZ(T.determinant()).abs()

    def is_maximal(self):
        return self.index_in(self.maximal_order()) == 1

    @cached_method
    def decomposition(self):
        return SemisimpleDecomposition(self._algebra, self._basis)

    @cached_method
    def maximal_order(self):
        r"""
        The maximal order of the commutative algebra, that is the product
        of the rings of integers of its simple components.
        """
        D = self.decomposition()
        fields = D.fields()
        basis = []
        for i, K in enumerate(fields):
            for w in K.maximal_order().basis():
                ys = [K2(0) for K2 in fields]
                ys[i] = K(w)
                basis.append(D.from_fields(ys))
        return AlgebraOrder(self._algebra, basis)

    def _module(self, vecs):
        return FreeModule(QQ, self.rank()).span(
            [vector(QQ, v) for v in vecs], ZZ
        )

    def ideal(self, gens):
        r"""
        The two-sided ideal generated by ``gens``.

        EXAMPLES::

            sage: from algnt.algebras import integral_group_ring
            sage: O = integral_group_ring(CyclicPermutationGroup(3))
            sage: g = O.algebra().gens()
            sage: I = O.ideal([g[0] - g[1], 3 * g[0]])
            sage: I.index()
            3
        """
        if not isinstance(gens, (list, tuple)):
            gens = [gens]
        vecs = []
        for g in gens:
            g = self._algebra(g)
            if self.is_commutative():
                vecs.extend(self.coordinates(g * b) for b in self._basis)
            else:
                vecs.extend(
                    self.coordinates(a * g * b) for a in self._basis for b in self._basis
                )
        return OrderIdeal(self, self._module(vecs))

    def ideal_from_integer(self, m):
        n = self.rank()
        return OrderIdeal(self, self._module((ZZ(m) * identity_matrix(QQ, n)).rows()))

    def unit_ideal(self):
        return self.ideal_from_integer(1)

    def conductor(self, other):
        r"""
        The ideal `\{x \in O : x O' \subseteq O\}` for an order `O'`
        containing this order `O`.

        EXAMPLES::

            sage: from algnt.algebras import structure_constant_algebra
            sage: from algnt.orders import AlgebraOrder
            sage: A = structure_constant_algebra(QQ, [[[1, 0], [0, 1]], [[0, 1], [-1, 0]]])
            sage: one, w = A.gens()
            sage: O = AlgebraOrder(A, [one, 3 * w])
            sage: F = O.conductor(O.maximal_order())
            sage: F.index()
            3
            sage: 3 * w in F, 3 * one in F, one in F
            (True, True, False)
        """
        n = self.rank()
        M = block_matrix(
            1, [self.right_multiplication_matrix(o) for o in other.basis()]
        )
        d = M.denominator()
        T = block_matrix(
            [[d * M], [d * identity_matrix(QQ, M.ncols())]], subdivide=False
        ).change_ring(ZZ)
        K = T.left_kernel()
        vecs = [v[:n] for v in K.basis()]
        return OrderIdeal(self, self._module(vecs))

    def residue_algebra(self, I, p):
        r"""
        The quotient `O/I` as an algebra over `GF(p)`, for an ideal ``I``
        containing `pO`.
        """
        p = ZZ(p)
        if not self.ideal_from_integer(p) <= I:
            raise ValueError("the ideal must contain %s times the order" % p)
        return ResidueAlgebra(self, I, p)

    def _repr_(self):
        return "Order of rank %s in %s" % (self.rank(), self._algebra)


class ResidueAlgebra(SageObject):
    r"""
    The finite algebra `O/I` over `GF(p)`, with reduction and lifting maps.

    EXAMPLES::

        sage: from algnt.algebras import integral_group_ring
        sage: O = integral_group_ring(CyclicPermutationGroup(4))
        sage: I = O.ideal_from_integer(2)
        sage: R = O.residue_algebra(I, 2)
        sage: R.algebra().degree()
        4
        sage: x = O.algebra().gens()[1]
        sage: R.reduce(x^4) == R.algebra().one()
        True
        sage: R.lift(R.reduce(x)) == x
        True
    """

    def __init__(self, order, I, p):
        self._order = order
        self._ideal = I
        k = GF(p)
        basis = order.basis()
        products = [
            [[k(c) for c in order.coordinates(x * y)] for y in basis] for x in basis
        ]
        self._full = structure_constant_algebra(k, products, names="r")
        W = (k ** order.rank()).subspace(
            [[k(c) for c in v] for v in I.basis_matrix().rows()]
        )
        self._quotient = QuotientAlgebra(self._full, W)

    def algebra(self):
        return self._quotient.algebra()

    def order(self):
        return self._order

    def reduce(self, x):
        k = self._full.base_ring()
        v = self._order.coordinates(x)
        if any(c not in ZZ for c in v):
            raise ValueError("%s is not in the order" % x)
        return self._quotient.project(self._full([k(c) for c in v]))

    def lift(self, y):
        v = self._quotient.lift(y).vector()
        return self._order.element([ZZ(c.lift()) for c in v])


class OrderIdeal(SageObject):
    r"""
    A two-sided ideal of an ``AlgebraOrder``, stored as a `\ZZ`-module of
    coordinate vectors with respect to the basis of the order.

    EXAMPLES::

        sage: from algnt.algebras import integral_group_ring
        sage: O = integral_group_ring(CyclicPermutationGroup(2))
        sage: g = O.algebra().gens()
        sage: I = O.ideal([g[0] + g[1]])
        sage: J = O.ideal([g[0] - g[1]])
        sage: (I + J).index(), (I * J).index()
        (2, +Infinity)
        sage: I.intersection(J) == I * J
        True
        sage: I^2 == O.ideal_from_integer(2) * I
        True
    """

    def __init__(self, order, module):
        self._order = order
        self._module = module

    def order(self):
        return self._order

    def module(self):
        return self._module

    def basis_matrix(self):
        return self._module.basis_matrix()

    def basis(self):
        return [self._order.element(v) for v in self._module.basis()]

    def __contains__(self, x):
        return self._order.coordinates(x) in self._module

    def __add__(self, other):
        return OrderIdeal(self._order, self._module + other._module)

    def __mul__(self, other):
        if not isinstance(other, OrderIdeal):
            other = self._order.ideal_from_integer(other)
        vecs = [
            self._order.coordinates(x * y) for x in self.basis() for y in other.basis()
        ]
        return OrderIdeal(self._order, self._order._module(vecs))

    def __rmul__(self, other):
        return self._order.ideal_from_integer(other) * self

    def __pow__(self, k):
        k = ZZ(k)
        if k < 0:
            raise ValueError("negative powers are not supported")
        ans = self._order.unit_ideal()
        for _ in range(k):
            ans = ans * self
        return ans

    def intersection(self, other):
        return OrderIdeal(self._order, self._module.intersection(other._module))

    def __eq__(self, other):
        if not isinstance(other, OrderIdeal):
            return False
        return self._order is other._order and self._module == other._module

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(tuple(self._module.basis_matrix().list()))

    def __le__(self, other):
        return self._module.is_submodule(other._module)

    def is_zero(self):
        return self._module.rank() == 0

    def index(self):
        r"""
        The index of the ideal in the order, infinite if the ideal does not
        have full rank.
        """
        from sage.rings.infinity import Infinity

        if self._module.rank() < self._order.rank():
            return Infinity
        return QQ(self._module.basis_matrix().determinant()).abs()

    def exponent(self):
        r"""
        The smallest positive integer `m` with `mO \subseteq I`.
        """
        m = ZZ(self._module.basis_matrix().inverse().denominator())
        verbose("exponent %s" % m, level=3)
        return m

    def _repr_(self):
        return "Ideal of index %s in %s" % (self.index(), self._order)
