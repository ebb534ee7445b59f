r"""
Lattices in quadratic and hermitian spaces over number fields.

A lattice is stored both as an echelonized pseudo-basis `\sum a_i v_i` and
as the `\ZZ`-module it spans inside `\QQ^{md}`, obtained by writing every
coordinate in the power basis of the absolute field. Inclusions, equality
and intersections are decided on the `\ZZ`-modules.
"""
from itertools import combinations, product

from sage.matrix.all import Matrix, identity_matrix
from sage.misc.verbose import verbose
from sage.modules.free_module import FreeModule
from sage.modules.free_quadratic_module import FreeQuadraticModule_ambient_pid
from sage.modules.free_module_element import free_module_element as vector
from sage.rings.all import QQ, ZZ
from sage.rings.infinity import Infinity
from sage.rings.number_field.number_field_ideal import NumberFieldFractionalIdeal
from sage.rings.polynomial.polynomial_ring_constructor import PolynomialRing
from sage.structure.sage_object import SageObject

from .pseudo_matrix import PseudoMatrix, pseudo_echelon_form
from .spaces import HermitianSpace, QuadraticSpace, hermitian_space, quadratic_space
from .util import (
    absolute_structure,
    absolute_vector,
    element_valuation,
    from_absolute_vector,
    ideal_of,
    ideal_of_extension,
    integral_basis,
    local_generator,
    prime_below,
    primes_above,
    to_base,
)

BRUTE_FORCE_LIMIT = 2**16


class AbstractLattice(SageObject):
    def __init__(self, V, pmat):
        self._space = V
        self._field = V.base_field()
        self._pmat = pseudo_echelon_form(pmat)
        vecs = []
        _, from_abs, _ = absolute_structure(self._field)
        for a, v in self._pmat.rows():
            for z in a.basis():
                vecs.append(self._flatten(from_abs(z) * v))
        self._zmodule = self._zspan(vecs)

    def _zspan(self, vecs):
        return FreeModule(QQ, self.degree() * self._abs_degree()).span(vecs, ZZ)

    def _abs_degree(self):
        Fabs, _, _ = absolute_structure(self._field)
        return Fabs.degree()

    def _flatten(self, v):
        ans = []
        for c in v:
            ans.extend(absolute_vector(self._field(c)))
        return vector(QQ, ans)

    def _unflatten(self, w):
        d = self._abs_degree()
        w = list(w)
        return vector(
            self._field,
            [from_absolute_vector(self._field, w[i * d:(i + 1) * d]) for i in range(self.degree())],
        )

    def _new(self, pmat):
        return self.__class__(self._space, pmat)

    def _from_zmodule(self, Z):
        gens = [self._unflatten(w) for w in Z.basis()]
        M = Matrix(self._field, len(gens), self.degree(), gens)
        return self._new(PseudoMatrix(M))

    def _absolute_ideal(self, I):
        r"""
        Convert an ideal of the field, of its absolute field, or of the
        fixed field into an ideal of the absolute field.
        """
        Fabs, _, _ = absolute_structure(self._field)
        if not isinstance(I, NumberFieldFractionalIdeal):
            return ideal_of(self._field, I)
        if I.number_field() is Fabs:
            return I
        if I.number_field() is self._field:
            return ideal_of(self._field, list(I.gens()))
        return ideal_of_extension(self._field, I)

    def _check_same_space(self, other):
        if not isinstance(other, AbstractLattice) or other._space is not self._space:
            raise ValueError("the lattices must live in the same ambient space")

    def ambient_space(self):
        return self._space

    def base_field(self):
        return self._field

    def fixed_field(self):
        return self._space.fixed_field()

    def fixed_ring(self):
        return self.fixed_field().maximal_order()

    def pseudo_matrix(self):
        return self._pmat

    def basis_matrix(self):
        return self._pmat.matrix()

    def coefficient_ideals(self):
        return self._pmat.coefficient_ideals()

    def rank(self):
        return self._pmat.nrows()

    def degree(self):
        return self._space.dim()

    def zmodule(self):
        return self._zmodule

    def generators(self, minimal=False):
        r"""
        Generators of the lattice as a module over the ring of integers.
        With ``minimal=True`` a principal coefficient ideal contributes a
        single generator.
        """
        _, from_abs, _ = absolute_structure(self._field)
        ans = []
        for a, v in self._pmat.rows():
            gens = a.gens_reduced() if minimal else a.gens()
            ans.extend(from_abs(g) * v for g in gens)
        return ans

    def gram_matrix_of_rational_span(self):
        return self._space.gram_matrix_of_vectors(self.basis_matrix())

    def rational_span(self):
        return self._space.__class__(self._field, self.gram_matrix_of_rational_span())

    def diagonal_of_rational_span(self):
        return self.rational_span().diagonal()

    def _conjugate_ideal(self, a):
        return a

    def scale(self):
        r"""
        The ideal generated by the inner products of elements of the
        lattice, as an ideal of the absolute field.
        """
        G = self.gram_matrix_of_rational_span()
        ideals = self.coefficient_ideals()
        Fabs, _, _ = absolute_structure(self._field)
        ans = None
        for i, a in enumerate(ideals):
            for j, b in enumerate(ideals):
                if G[i, j] == 0:
                    continue
                I = a * self._conjugate_ideal(b) * ideal_of(self._field, G[i, j])
                ans = I if ans is None else ans + I
        return Fabs.ideal(0) if ans is None else ans

    def dual(self):
        r"""
        The dual lattice inside the rational span.
        """
        Gv = self.gram_matrix_of_rational_span()
        W = Gv.inverse() * self.basis_matrix()
        ideals = [self._conjugate_ideal(a) ** -1 for a in self.coefficient_ideals()]
        return self._new(PseudoMatrix(W, ideals))

    def is_integral(self):
        return self.scale().is_integral()

    def __le__(self, other):
        if not isinstance(other, AbstractLattice) or other._space is not self._space:
            return False
        return self._zmodule.is_submodule(other._zmodule)

    def is_sublattice(self, other):
        r"""
        Whether ``other`` is contained in this lattice.
        """
        return other <= self

    def __eq__(self, other):
        if not isinstance(other, AbstractLattice) or other._space is not self._space:
            return False
        return self._zmodule == other._zmodule

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((id(self._space), self.rank()))

    def __add__(self, other):
        self._check_same_space(other)
        rows = self._pmat.rows() + other._pmat.rows()
        M = Matrix(self._field, len(rows), self.degree(), [v for _, v in rows])
        return self._new(PseudoMatrix(M, [a for a, _ in rows]))

    def __mul__(self, other):
        if isinstance(other, NumberFieldFractionalIdeal):
            I = self._absolute_ideal(other)
            return self._new(
                PseudoMatrix(self.basis_matrix(), [a * I for a in self.coefficient_ideals()])
            )
        c = self._field(other)
        return self._new(PseudoMatrix(c * self.basis_matrix(), self.coefficient_ideals()))

    __rmul__ = __mul__

    def intersect(self, other):
        self._check_same_space(other)
        return self._from_zmodule(self._zmodule.intersection(other._zmodule))

    def _intersect_with_subspace(self, S):
        r"""
        The intersection with the subspace spanned by the rows of ``S``.
        """
        Fabs, from_abs, _ = absolute_structure(self._field)
        if S.nrows() == 0 or self.rank() == 0:
            return self._from_zmodule(self._zspan([]))
        powers = [from_abs(Fabs.gen() ** k) for k in range(Fabs.degree())]
        R = Matrix(QQ, [self._flatten(w * s) for s in S.rows() for w in powers])
        C = R.right_kernel_matrix()
        if C.nrows() == 0:
            return self._from_zmodule(self._zmodule)
        B = self._zmodule.basis_matrix()
        T = B * C.transpose()
        d = T.denominator()
        K = (d * T).change_ring(ZZ).left_kernel()
        vecs = [vector(QQ, k) * B for k in K.basis()]
        return self._from_zmodule(self._zspan(vecs))

    def primitive_closure(self, M):
        r"""
        The intersection of this lattice with the rational span of ``M``.
        """
        self._check_same_space(M)
        return self._intersect_with_subspace(M.basis_matrix())

    saturate = primitive_closure

    def orthogonal_submodule(self, M):
        r"""
        The sublattice of vectors orthogonal to ``M``.
        """
        self._check_same_space(M)
        X = self._space.gram_matrix() * self._space._conjugate_transpose(M.basis_matrix())
        S = X.left_kernel().basis_matrix()
        return self._intersect_with_subspace(S)

    def _local_primes(self, p):
        return [p]

    def local_basis_matrix(self, p):
        r"""
        A matrix whose rows form a basis of the completion of the lattice at
        the prime ``p`` of the fixed field.
        """
        primes = self._local_primes(p)
        _, from_abs, _ = absolute_structure(self._field)
        rows = []
        for a, v in self._pmat.rows():
            rows.append(from_abs(local_generator(a, primes)) * v)
        return Matrix(self._field, len(rows), self.degree(), rows)

    def _diagonal_candidates(self):
        return [self._field(1)]

    def jordan_decomposition(self, p):
        r"""
        A Jordan decomposition of the completion at the prime ``p`` of the
        fixed field: a list of bases, a list of Gram matrices and the list
        of scale valuations, in increasing order.

        For hermitian lattices the valuations are taken at a prime of the
        extension above ``p``.
        """
        P = self._local_primes(p)[0]
        ip = self._space.inner_product

        def val(x):
            return element_valuation(x, P)

        rows = list(self.local_basis_matrix(p).rows())
        pieces = []
        while rows:
            n = len(rows)
            G = [[ip(rows[i], rows[j]) for j in range(n)] for i in range(n)]
            m = min(val(G[i][j]) for i in range(n) for j in range(n))
            if m == Infinity:
                raise ValueError("the lattice is degenerate")
            i = next((i for i in range(n) if val(G[i][i]) == m), None)
            block = None
            if i is None:
                i, j = next(
                    (i, j) for i, j in combinations(range(n), 2) if val(G[i][j]) == m
                )
                for c in self._diagonal_candidates():
                    w = rows[i] + c * rows[j]
                    if val(ip(w, w)) == m:
                        rows[i] = w
                        block = [i]
                        break
                if block is None:
                    block = [i, j]
            else:
                block = [i]
            bvecs = [rows[k] for k in block]
            A = Matrix(self._field, [[ip(x, y) for y in bvecs] for x in bvecs])
            Ainv = A.inverse()
            rest = []
            for k in range(n):
                if k in block:
                    continue
                r = rows[k]
                c = vector(self._field, [ip(r, y) for y in bvecs]) * Ainv
                rest.append(r - sum((ci * y for ci, y in zip(c, bvecs)), 0 * r))
            pieces.append((bvecs, m))
            rows = rest
        bases, grams, exps = [], [], []
        for bvecs, m in pieces:
            if exps and exps[-1] == m:
                bases[-1] = bases[-1] + bvecs
            else:
                bases.append(list(bvecs))
                exps.append(m)
        bases = [Matrix(self._field, b) for b in bases]
        grams = [self._space.gram_matrix_of_vectors(b) for b in bases]
        verbose("Jordan decomposition with scales %s" % exps, level=2)
        return bases, grams, exps

    def is_modular(self, p=None):
        r"""
        Return ``(True, a)`` if the lattice is `a`-modular, globally or at
        the prime ``p``, and ``(False, None)`` otherwise. Locally `a` is
        given by its valuation.
        """
        if p is None:
            s = self.scale()
            if s.is_zero():
                return False, None
            return (self.dual() == self * s**-1), s
        _, _, exps = self.jordan_decomposition(p)
        if len(exps) == 1:
            return True, exps[0]
        return False, None

    def restrict_scalars(self):
        r"""
        The lattice as a `\ZZ`-lattice in the `\QQ`-space with the trace
        form.

        EXAMPLES::

            sage: from algnt.lattices import quadratic_lattice
            sage: K.<a> = QuadraticField(2)
            sage: L = quadratic_lattice(K, [[2, 0], [0, 2]])
            sage: Lres = L.restrict_scalars()
            sage: Lres.base_ring(), Lres.rank()
            (Integer Ring, 4)
            sage: Lres.gram_matrix().determinant() == L.volume().absolute_norm() * K.discriminant()^2
            True
        """
        Vres, _ = self._space.restrict_scalars()
        Zres = FreeQuadraticModule_ambient_pid(
            ZZ, Vres.rank(), inner_product_matrix=Vres.inner_product_matrix()
        )
        return Zres.span(self._zmodule.basis())

    def _integrality_primes(self):
        K = self.fixed_field()
        primes = set(P for P, _ in K.ideal(2).factor())
        vol = self.volume()
        if not vol.is_zero():
            primes.update(P for P, _ in vol.factor())
        return sorted(primes, key=lambda P: (P.absolute_norm(), str(P.gens())))

    def _check_norm(self):
        if not self.norm().is_integral():
            raise ValueError("the norm of the lattice is not integral")

    def _local_uniformizer(self, P, p):
        Fabs, from_abs, _ = absolute_structure(self._field)
        return from_abs(local_generator(P, self._local_primes(p)))

    def _maximal_step(self, p):
        r"""
        A lattice of integral norm strictly containing this one and
        contained in `P^{-1}L` for a prime `P` above ``p``, or ``None``.
        """
        Fabs, from_abs, to_abs = absolute_structure(self._field)
        ip = self._space.inner_product
        B = self.local_basis_matrix(p)
        b = list(B.rows())
        n = len(b)
        for P in self._local_primes(p):
            kP = P.residue_field()
            Pi = self._local_uniformizer(P, p)
            t = self._linear_twist(P, Pi)
            T = Matrix(kP, n, n, [kP(to_abs(t * ip(b[j], b[i]))) for j in range(n) for i in range(n)])
            W = T.left_kernel()
            if W.dimension() == 0:
                continue

            def candidate(c):
                y = sum(
                    (from_abs(Fabs(kP.lift(cj))) * bj for cj, bj in zip(c, b)), 0 * b[0]
                )
                x = y / Pi
                if element_valuation(ip(x, x), P) >= 0:
                    return x
                return None

            x = None
            if kP.order() ** W.dimension() <= BRUTE_FORCE_LIMIT:
                for c in W:
                    if c == 0:
                        continue
                    x = candidate(c)
                    if x is not None:
                        break
            else:
                c = self._large_kernel_vector(W, b, P, p, Pi)
                if c is not None:
                    x = candidate(c)
            if x is None:
                continue
            verbose("enlarging at %s" % P, level=2)
            M = Matrix(self._field, [x])
            bigger = self + self._new(PseudoMatrix(M))
            return bigger.intersect(self * P**-1)
        return None

    def _large_kernel_vector(self, W, b, P, p, Pi):
        r"""
        A nonzero vector of the residue kernel ``W`` whose lift `y` satisfies
        `v_P(h(y, y)) \geq v_P(\Pi \bar\Pi)`, or ``None``.

        Write `k` for the residue field of the fixed field at ``p``. On the
        kernel, `y \mapsto h(y, y)/D` reduces to a quadratic form over `k`
        for a suitable power `D` of a uniformizer at ``p``, and the vectors
        sought are its isotropic vectors. A quadratic form over a finite
        field in three variables is isotropic, so at most three `k`-linearly
        independent vectors are searched.
        """
        Fabs, from_abs, to_abs = absolute_structure(self._field)
        kP = W.base_ring()
        kp = p.residue_field()
        ip = self._space.inner_product
        sigma = self._space.involution()

        def lift(c):
            return sum((from_abs(Fabs(kP.lift(cj))) * bj for cj, bj in zip(c, b)), 0 * b[0])

        vecs = self._residue_kernel(W, lift, P)
        if not vecs:
            return None
        theta = kP.gen()
        f = kP.degree() // kp.degree()
        vecs = [theta**k * v for v in vecs for k in range(f)][:3]
        e = P.ramification_index() // p.ramification_index()
        target = element_valuation(Pi * sigma(Pi), P) // e
        D = self.fixed_field()(local_generator(p, [p])) ** (target - 1)

        def r(c):
            y = lift(c)
            return kp(to_base(ip(y, y)) / D)

        a = [r(v) for v in vecs]
        B = {}
        for i, j in combinations(range(len(vecs)), 2):
            B[i, j] = r(vecs[i] + vecs[j]) - a[i] - a[j]
        c = _isotropic_vector(kp, a, B)
        if c is None:
            return None

        def embed(x):
            return kP(to_abs(self._field(kp.lift(x))))

        verbose("isotropic residue vector %s over %s" % (c, kp), level=2)
        return sum((embed(ci) * v for ci, v in zip(c, vecs)), W.zero())

    def _residue_kernel(self, W, lift, P):
        return list(W.basis())

    def is_maximal_integral(self, p=None):
        r"""
        Return ``(True, None)`` if the lattice is maximal among the lattices
        of integral norm, globally or at ``p``, and ``(False, M)`` with a
        strictly larger lattice ``M`` of integral norm otherwise.
        """
        self._check_norm()
        primes = [p] if p is not None else self._integrality_primes()
        for q in primes:
            M = self._maximal_step(q)
            if M is not None:
                return False, M
        return True, None

    def maximal_integral_lattice(self):
        r"""
        A maximal lattice of integral norm containing this lattice.
        """
        self._check_norm()
        L = self
        for q in self._integrality_primes():
            while True:
                M = L._maximal_step(q)
                if M is None:
                    break
                L = M
        return L


def _isotropic_vector(k, a, B):
    r"""
    Coefficients of a nonzero zero of the quadratic form
    `\sum_i a_i x_i^2 + \sum_{i < j} B_{ij} x_i x_j` in at most three
    variables over the finite field ``k``, or ``None`` if it is anisotropic.

    The projective points `(1 : 0 : 0)`, `(x : 1 : 0)` and `(x : y : 1)` are
    searched in turn, solving for the last free coordinate.

    EXAMPLES::

        sage: from algnt.lattices import _isotropic_vector
        sage: k = GF(7)
        sage: c = _isotropic_vector(k, [k(1), k(1), k(1)], {(0, 1): 0, (0, 2): 0, (1, 2): 0})
        sage: sum(x^2 for x in c), c[2]
        (0, 1)
        sage: _isotropic_vector(k, [k(1), k(1)], {(0, 1): k(0)}) is None
        True
    """
    m = len(a)
    Y = PolynomialRing(k, "Y").gen()

    def value(c):
        ans = sum(c[i] ** 2 * a[i] for i in range(m))
        return ans + sum(c[i] * c[j] * B[i, j] for i, j in B)

    for last in range(m):
        tail = [k(1)] + [k(0)] * (m - last - 1)
        if last == 0:
            if value(tail) == 0:
                return tail
            continue
        for head in product(k, repeat=last - 1):
            g = Y.parent()(value(list(head) + [Y] + tail))
            if g == 0:
                return list(head) + [k(0)] + tail
            roots = g.roots(multiplicities=False)
            if roots:
                return list(head) + [roots[0]] + tail
    return None


class QuadraticLattice(AbstractLattice):
    r"""
    A lattice in a quadratic space over an absolute number field.

    EXAMPLES::

        sage: from algnt.lattices import quadratic_lattice
        sage: K.<a> = QuadraticField(2)
        sage: L = quadratic_lattice(K, [[1, 0], [a, 2], [0, 4]], gram=diagonal_matrix(K, [1, 3]))
        sage: L.rank(), L.degree()
        (2, 2)
        sage: L.scale() == K.ideal(1), L.norm() == K.ideal(1)
        (True, True)
        sage: L.dual().is_sublattice(L)
        True
    """

    def norm(self):
        r"""
        The ideal generated by the values `Q(x)` on the lattice.
        """
        G = self.gram_matrix_of_rational_span()
        K = self._field
        ans = None
        for i, a in enumerate(self.coefficient_ideals()):
            if G[i, i] == 0:
                continue
            I = a**2 * K.ideal(G[i, i])
            ans = I if ans is None else ans + I
        s = self.scale()
        if not s.is_zero():
            T = K.ideal(2) * s
            ans = T if ans is None else ans + T
        return K.ideal(0) if ans is None else ans

    def volume(self):
        G = self.gram_matrix_of_rational_span()
        ans = self._field.ideal(G.determinant())
        for a in self.coefficient_ideals():
            ans = ans * a**2
        return ans

    def _linear_twist(self, P, Pi):
        return self._field(2)

    def _residue_kernel(self, W, lift, P):
        r"""
        At a dyadic prime, the subspace of ``W`` on which `Q(y)` vanishes
        modulo ``P``. There `y \mapsto Q(y) \bmod P` is additive and
        Frobenius semilinear, so it is the square of a linear form.
        """
        if P.smallest_integer() != 2:
            return list(W.basis())
        kP = W.base_ring()
        ip = self._space.inner_product
        half = kP.order() // 2
        roots = [kP(ip(lift(w), lift(w))) ** half for w in W.basis()]
        C = Matrix(kP, len(roots), 1, roots).left_kernel()
        return [sum((ci * w for ci, w in zip(c, W.basis())), W.zero()) for c in C.basis()]

    def _repr_(self):
        return "Quadratic lattice of rank %s in %s" % (self.rank(), self._space)


class HermitianLattice(AbstractLattice):
    r"""
    A lattice in a hermitian space over a quadratic extension `E/K`.

    EXAMPLES::

        sage: from algnt.lattices import hermitian_lattice
        sage: from algnt.spaces import rationals_as_number_field
        sage: K = rationals_as_number_field()
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 + 1)
        sage: L = hermitian_lattice(E, [[1, 0], [0, 1]], gram=Matrix(E, [[2, b], [-b, 2]]))
        sage: L.norm() == K.ideal(2), L.volume() == K.ideal(3)
        (True, True)
        sage: L.is_integral()
        True
    """

    def _conjugate_ideal(self, a):
        E = self._field
        _, from_abs, _ = absolute_structure(E)
        sigma = self._space.involution()
        return ideal_of(E, [sigma(from_abs(g)) for g in a.gens()])

    def _relative_norm_ideal(self, a):
        E = self._field
        K = self.fixed_field()
        ans = K.ideal(1)
        for P, e in a.factor():
            q = prime_below(E, P)
            f = P.residue_class_degree() // q.residue_class_degree()
            ans = ans * q ** (e * f)
        return ans

    def _trace_ideal(self, I):
        E = self._field
        K = self.fixed_field()
        _, from_abs, _ = absolute_structure(E)
        sigma = self._space.involution()
        traces = [to_base(from_abs(z) + sigma(from_abs(z))) for z in I.basis()]
        return K.ideal(traces)

    def _local_primes(self, p):
        return primes_above(self._field, p)

    def _diagonal_candidates(self):
        E = self._field
        return [E(1)] + [E(w) for w in integral_basis(E)]

    def norm(self):
        r"""
        The ideal of the fixed field generated by the values `h(x, x)`.
        """
        G = self.gram_matrix_of_rational_span()
        K = self.fixed_field()
        ans = None
        for i, a in enumerate(self.coefficient_ideals()):
            if G[i, i] == 0:
                continue
            I = self._relative_norm_ideal(a) * K.ideal(to_base(G[i, i]))
            ans = I if ans is None else ans + I
        s = self.scale()
        if not s.is_zero():
            T = self._trace_ideal(s)
            ans = T if ans is None else ans + T
        return K.ideal(0) if ans is None else ans

    def volume(self):
        r"""
        The volume, as an ideal of the fixed field.
        """
        G = self.gram_matrix_of_rational_span()
        K = self.fixed_field()
        ans = K.ideal(to_base(G.determinant()))
        for a in self.coefficient_ideals():
            ans = ans * self._relative_norm_ideal(a)
        return ans

    def _integrality_primes(self):
        primes = set(AbstractLattice._integrality_primes(self))
        primes.update(P for P, _ in self._field.relative_discriminant().factor())
        return sorted(primes, key=lambda P: (P.absolute_norm(), str(P.gens())))

    def _linear_twist(self, P, Pi):
        return Pi ** self._different_valuation(P)

    def _different_valuation(self, P):
        E = self._field
        q = prime_below(E, P)
        disc = E.relative_discriminant().valuation(q)
        e = ideal_of_extension(E, q).valuation(P)
        if e == 1:
            return 0
        return disc

    def _repr_(self):
        return "Hermitian lattice of rank %s in %s" % (self.rank(), self._space)


def _as_pseudo_matrix(F, m, basis, ideals):
    if isinstance(basis, PseudoMatrix):
        return basis
    if basis is None:
        M = identity_matrix(F, m)
    else:
        M = Matrix(F, basis)
        if M.ncols() != m:
            raise ValueError("the basis vectors must have length %s" % m)
    return PseudoMatrix(M, ideals)


def lattice(V, basis=None, ideals=None):
    r"""
    The lattice in the space ``V`` spanned by the rows of ``basis`` (a
    matrix, a list of vectors or a ``PseudoMatrix``) with coefficient ideals
    ``ideals``; by default the standard lattice.

    EXAMPLES::

        sage: from algnt.lattices import lattice
        sage: from algnt.spaces import QuadraticSpace
        sage: K.<a> = QuadraticField(3)
        sage: V = QuadraticSpace(K, identity_matrix(K, 2))
        sage: L = lattice(V)
        sage: L.ambient_space() is V
        True
        sage: L == lattice(V, [[1, 1], [0, 1]])
        True
        sage: lattice(V, [[2, 0], [0, 1]]) <= L
        True
    """
    m = V.dim()
    pmat = _as_pseudo_matrix(V.base_field(), m, basis, ideals)
    if isinstance(V, HermitianSpace):
        return HermitianLattice(V, pmat)
    if isinstance(V, QuadraticSpace):
        return QuadraticLattice(V, pmat)
    raise ValueError("unknown space %s" % V)


def _space_for_generators(F, gens, gram):
    gens = [list(g) for g in gens]
    m = len(gens[0]) if gens else gram.nrows()
    if gram is None:
        gram = identity_matrix(F, m)
    return Matrix(F, len(gens), m, gens), gram


def quadratic_lattice(K, gens, gram=None, cached=True):
    r"""
    The lattice spanned by ``gens`` in the quadratic space with Gram matrix
    ``gram`` (the identity by default). Lattices built from the same field
    and Gram matrix share their ambient space unless ``cached`` is false.

    EXAMPLES::

        sage: from algnt.lattices import quadratic_lattice
        sage: K.<a> = QuadraticField(2)
        sage: L = quadratic_lattice(K, [[2, 0], [0, 2]])
        sage: M = quadratic_lattice(K, [[1, 0], [0, 4]])
        sage: L.ambient_space() is M.ambient_space()
        True
        sage: L.intersect(M) == quadratic_lattice(K, [[2, 0], [0, 4]])
        True
    """
    M, gram = _space_for_generators(K, gens, gram)
    return lattice(quadratic_space(K, gram, cached), M)


def hermitian_lattice(E, gens, gram=None, cached=True):
    r"""
    The lattice spanned by ``gens`` in the hermitian space with Gram matrix
    ``gram`` (the identity by default), with ambient spaces shared as in
    :func:`quadratic_lattice`.
    """
    M, gram = _space_for_generators(E, gens, gram)
    return lattice(hermitian_space(E, gram, cached), M)


def maximal_integral_lattice(V):
    r"""
    A maximal lattice of integral norm in the space ``V``.

    EXAMPLES::

        sage: from algnt.lattices import maximal_integral_lattice
        sage: from algnt.spaces import QuadraticSpace, rationals_as_number_field
        sage: K = rationals_as_number_field()
        sage: V = QuadraticSpace(K, diagonal_matrix(K, [1/2, 1/2, 1/2, 1/2]))
        sage: L = maximal_integral_lattice(V)
        sage: L.norm().is_integral(), L.is_maximal_integral()[0]
        (True, True)
    """
    L = lattice(V)
    _, d = L.norm().integral_split()
    if d != 1:
        L = lattice(V, d * identity_matrix(V.base_field(), V.dim()))
    return L.maximal_integral_lattice()


def is_rationally_isometric(L, M, p=None):
    return L.rational_span().is_isometric(M.rational_span(), p)


def is_locally_isometric(L, M, p):
    r"""
    Whether the completions of ``L`` and ``M`` at ``p`` are isometric,
    decided by comparing local genus symbols.
    """
    from .genus import genus

    if type(L) is not type(M) or L.base_field() is not M.base_field():
        return False
    if L.rank() != M.rank():
        return False
    return genus(L, p) == genus(M, p)
