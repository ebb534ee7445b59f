from copy import copy
from itertools import combinations

from sage.matrix.all import Matrix
from sage.misc.cachefunc import cached_function, cached_method
from sage.misc.verbose import verbose
from sage.modules.free_module_element import free_module_element as vector
from sage.modules.free_quadratic_module import FreeQuadraticModule
from sage.rings.all import QQ
from sage.rings.number_field.number_field import NumberField
from sage.rings.number_field.number_field_ideal import NumberFieldFractionalIdeal
from sage.rings.polynomial.polynomial_ring_constructor import PolynomialRing
from sage.structure.sage_object import SageObject

from .norms import is_local_norm, is_local_square
from .util import (
    absolute_structure,
    absolute_vector,
    from_absolute_vector,
    primes_dividing,
    relative_discriminant_element,
    relative_involution,
    to_base,
)


def rationals_as_number_field(name="a"):
    r"""
    The rationals as a number field of degree one.

    EXAMPLES::

        sage: from algnt.spaces import rationals_as_number_field
        sage: K = rationals_as_number_field()
        sage: K.degree(), K.is_absolute()
        (1, True)
    """
    x = PolynomialRing(QQ, "x").gen()
    return NumberField(x - 1, name)


def _is_finite_prime(p):
    return isinstance(p, NumberFieldFractionalIdeal)


class AbstractSpace(SageObject):
    r"""
    A finite dimensional space `F^m` with a form given by a Gram matrix
    `G` satisfying `\sigma(G)^T = G`.
    """

    def __init__(self, F, G):
        self._field = F
        self._gram = Matrix(F, G)
        if not self._gram.is_square():
            raise ValueError("the Gram matrix must be square")
        if self._conjugate_transpose(self._gram) != self._gram:
            raise ValueError("the Gram matrix is not %s" % self._form_name)

    def _conjugate_transpose(self, B):
        return B.apply_map(self.involution(), self._field).transpose()

    def gram_matrix(self):
        return self._gram

    def dim(self):
        return self._gram.nrows()

    def base_field(self):
        return self._field

    def inner_product(self, v, w):
        v = vector(self._field, v)
        w = vector(self._field, w)
        sigma = self.involution()
        return v * self._gram * vector(self._field, [sigma(c) for c in w])

    def gram_matrix_of_vectors(self, B):
        B = Matrix(self._field, B)
        return B * self._gram * self._conjugate_transpose(B)

    def determinant(self):
        return to_base(self._gram.determinant())

    def is_regular(self):
        return self._gram.determinant() != 0

    @cached_method
    def orthogonal_basis(self):
        r"""
        A basis of pairwise orthogonal vectors, as the rows of a matrix.

        EXAMPLES::

            sage: from algnt.spaces import QuadraticSpace
            sage: K.<a> = QuadraticField(2)
            sage: V = QuadraticSpace(K, Matrix(K, [[0, 1], [1, 0]]))
            sage: B = V.orthogonal_basis()
            sage: G = V.gram_matrix_of_vectors(B)
            sage: G.is_diagonal(), G.determinant() == -B.determinant()^2
            (True, True)
        """
        F = self._field
        vecs = list(Matrix(F, self.dim(), self.dim(), 1).rows())
        result = []
        ip = self.inner_product
        while vecs:
            idx = next((i for i, v in enumerate(vecs) if ip(v, v) != 0), None)
            if idx is None:
                idx = self._make_anisotropic(vecs)
                if idx is None:
                    result.extend(vecs)
                    break
            v = vecs.pop(idx)
            q = ip(v, v)
            vecs = [w - ip(w, v) / q * v for w in vecs]
            result.append(v)
        return Matrix(F, result)

    def _make_anisotropic(self, vecs):
        ip = self.inner_product
        for i, j in combinations(range(len(vecs)), 2):
            if ip(vecs[i], vecs[j]) == 0:
                continue
            for c in [1, self._field.gen()]:
                w = vecs[i] + c * vecs[j]
                if ip(w, w) != 0:
                    vecs[i] = w
                    return i
        return None

    def diagonal(self):
        r"""
        The diagonal entries, in the fixed field, of an orthogonal basis.
        """
        B = self.orthogonal_basis()
        return [to_base(self.inner_product(v, v)) for v in B.rows()]

    def _is_split_place(self, place):
        return False

    def signature(self, place):
        r"""
        The pair ``(positive, negative)`` of diagonal entries at the real
        place ``place`` of the fixed field.
        """
        if self._is_split_place(place):
            raise ValueError("the extension is split at %s" % place)
        d = self.diagonal()
        neg = len([x for x in d if place(x) < 0])
        pos = len([x for x in d if place(x) > 0])
        return (pos, neg)

    def is_positive_definite(self):
        K = self.fixed_field()
        r1, r2 = K.signature()
        if r2 > 0:
            return False
        for place in K.real_places():
            if self._is_split_place(place):
                return False
            if self.signature(place) != (self.dim(), 0):
                return False
        return True

    def real_places(self):
        return self.fixed_field().real_places()

    def restrict_scalars(self):
        r"""
        The `\QQ`-space underlying this space, with the bilinear form
        `\mathrm{Tr}_{F/\QQ}(\langle x, y \rangle)`, together with the
        identification map.

        EXAMPLES::

            sage: from algnt.spaces import QuadraticSpace
            sage: K.<a> = QuadraticField(2)
            sage: V = QuadraticSpace(K, diagonal_matrix(K, [1, a]))
            sage: Vres, f = V.restrict_scalars()
            sage: Vres.dimension()
            4
            sage: v = vector(K, [a, 1 + a])
            sage: f(f.preimage(v)) == v
            True
            sage: w = f.preimage(v)
            sage: w * Vres.inner_product_matrix() * w == V.inner_product(v, v).trace()
            True
        """
        f = RestrictionOfScalarsMap(self)
        basis = f.basis()
        Gres = Matrix(
            QQ,
            [[f.trace(self.inner_product(x, y)) for y in basis] for x in basis],
        )
        Vres = FreeQuadraticModule(QQ, len(basis), inner_product_matrix=Gres)
        verbose("restriction of scalars of dimension %s" % len(basis), level=2)
        return Vres, f


class QuadraticSpace(AbstractSpace):
    r"""
    A quadratic space over an absolute number field.

    EXAMPLES::

        sage: from algnt.spaces import QuadraticSpace
        sage: K.<a> = QuadraticField(2)
        sage: V = QuadraticSpace(K, diagonal_matrix(K, [1, 1, a]))
        sage: V.dim(), V.determinant()
        (3, a)
        sage: V.is_positive_definite()
        False
        sage: sorted(V.signature(s) for s in K.real_places())
        [(2, 1), (3, 0)]
    """
    _form_name = "symmetric"

    def __init__(self, K, G):
        if not K.is_absolute():
            raise ValueError("the base field must be absolute")
        AbstractSpace.__init__(self, K, G)

    def fixed_field(self):
        return self._field

    def involution(self):
        return lambda x: x

    def hasse_invariant(self, p):
        r"""
        The Hasse invariant `\prod_{i < j} (a_i, a_j)_p` of a diagonal form,
        at a finite prime or a real place ``p``.
        """
        K = self._field
        d = self.diagonal()
        ans = 1
        for i, j in combinations(range(len(d)), 2):
            ans *= K.hilbert_symbol(d[i], d[j], p)
        return ans

    def is_isometric(self, other, p=None):
        r"""
        Whether the two spaces are isometric at the finite prime or real
        place ``p``, or globally if ``p`` is ``None``.

        EXAMPLES::

            sage: from algnt.spaces import QuadraticSpace
            sage: K.<a> = QuadraticField(2)
            sage: V = QuadraticSpace(K, diagonal_matrix(K, [1, 1]))
            sage: W = QuadraticSpace(K, Matrix(K, [[2, 1], [1, 1]]))
            sage: U = QuadraticSpace(K, diagonal_matrix(K, [1, 3]))
            sage: V.is_isometric(W), V.is_isometric(U)
            (True, False)
            sage: V.is_isometric(U, K.ideal(5))
            True
            sage: V.is_isometric(U, K.prime_above(3))
            False
        """
        if not isinstance(other, QuadraticSpace) or other._field is not self._field:
            raise ValueError("the spaces must be quadratic spaces over the same field")
        if self.dim() != other.dim():
            return False
        if not self.is_regular() or not other.is_regular():
            raise NotImplementedError("only regular spaces are supported")
        K = self._field
        q = self.determinant() / other.determinant()
        if p is not None:
            if _is_finite_prime(p):
                return is_local_square(q, p) and self.hasse_invariant(
                    p
                ) == other.hasse_invariant(p)
            return self.signature(p) == other.signature(p)
        if not q.is_square():
            return False
        if any(self.signature(s) != other.signature(s) for s in K.real_places()):
            return False
        primes = primes_dividing(K, self.diagonal() + other.diagonal())
        return all(self.hasse_invariant(P) == other.hasse_invariant(P) for P in primes)

    def _repr_(self):
        return "Quadratic space of dimension %s over %s" % (self.dim(), self._field)


class HermitianSpace(AbstractSpace):
    r"""
    A hermitian space over a quadratic extension `E/K` of an absolute
    number field `K`.

    EXAMPLES::

        sage: from algnt.spaces import HermitianSpace, rationals_as_number_field
        sage: K = rationals_as_number_field()
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 + 1)
        sage: V = HermitianSpace(E, Matrix(E, [[1, b], [-b, 3]]))
        sage: V.determinant(), V.diagonal()
        (2, [1, 2])
        sage: V.is_positive_definite()
        True
        sage: HermitianSpace(E, Matrix(E, [[1, b], [b, 3]]))
        Traceback (most recent call last):
        ...
        ValueError: the Gram matrix is not hermitian
    """
    _form_name = "hermitian"

    def __init__(self, E, G):
        if E.is_absolute() or not E.base_field().is_absolute():
            raise ValueError("the field must be a relative extension of an absolute field")
        if E.relative_degree() != 2:
            raise ValueError("the extension must be quadratic")
        AbstractSpace.__init__(self, E, G)

    def fixed_field(self):
        return self._field.base_field()

    def involution(self):
        return relative_involution(self._field)

    def discriminant_element(self):
        return relative_discriminant_element(self._field)

    def _is_split_place(self, place):
        return place(self.discriminant_element()) > 0

    def is_isometric(self, other, p=None):
        r"""
        Whether the two hermitian spaces are isometric at the finite prime
        or real place ``p``, or globally (Landherr) if ``p`` is ``None``.

        EXAMPLES::

            sage: from algnt.spaces import HermitianSpace, rationals_as_number_field
            sage: K = rationals_as_number_field()
            sage: R.<t> = K[]
            sage: E.<b> = K.extension(t^2 + 1)
            sage: V = HermitianSpace(E, identity_matrix(E, 2))
            sage: W = HermitianSpace(E, diagonal_matrix(E, [2, 1]))
            sage: U = HermitianSpace(E, diagonal_matrix(E, [3, 1]))
            sage: V.is_isometric(W), V.is_isometric(U)
            (True, False)
            sage: V.is_isometric(U, K.ideal(5)), V.is_isometric(U, K.ideal(3))
            (True, False)
        """
        if not isinstance(other, HermitianSpace) or other._field is not self._field:
            raise ValueError("the spaces must be hermitian spaces over the same field")
        if self.dim() != other.dim():
            return False
        if not self.is_regular() or not other.is_regular():
            raise NotImplementedError("only regular spaces are supported")
        E = self._field
        K = self.fixed_field()
        q = self.determinant() / other.determinant()
        if p is not None:
            if _is_finite_prime(p):
                return is_local_norm(E, q, p)
            if self._is_split_place(p):
                return True
            return self.signature(p) == other.signature(p)
        for s in K.real_places():
            if not self._is_split_place(s) and self.signature(s) != other.signature(s):
                return False
        primes = primes_dividing(K, [q, self.discriminant_element()])
        return all(is_local_norm(E, q, P) for P in primes)

    def _repr_(self):
        return "Hermitian space of dimension %s over %s" % (self.dim(), self._field)


@cached_function
def _cached_space(cls, F, G):
    return cls(F, G)


def _space(cls, F, G, cached):
    G = copy(Matrix(F, G))
    if not cached:
        return cls(F, G)
    G.set_immutable()
    return _cached_space(cls, F, G)


def quadratic_space(K, G, cached=True):
    r"""
    The quadratic space over ``K`` with Gram matrix ``G``. Repeated calls
    with the same field and Gram matrix return the same space, unless
    ``cached`` is false.

    EXAMPLES::

        sage: from algnt.spaces import quadratic_space
        sage: K.<a> = QuadraticField(2)
        sage: V = quadratic_space(K, diagonal_matrix(K, [1, a]))
        sage: V is quadratic_space(K, diagonal_matrix(K, [1, a]))
        True
        sage: V is quadratic_space(K, diagonal_matrix(K, [1, a]), cached=False)
        False
    """
    return _space(QuadraticSpace, K, G, cached)


def hermitian_space(E, G, cached=True):
    r"""
    The hermitian space over ``E`` with Gram matrix ``G``, cached in the
    same way as :func:`quadratic_space`.
    """
    return _space(HermitianSpace, E, G, cached)


class RestrictionOfScalarsMap(SageObject):
    r"""
    The identification of `\QQ^{md}` with `F^m` used by
    ``restrict_scalars``: coordinate `(i, k)` corresponds to the vector
    `w_k e_i`, where `w_k` is the power basis of the absolute field of `F`.
    """

    def __init__(self, V):
        self._space = V
        F = V.base_field()
        Fabs, from_abs, _ = absolute_structure(F)
        self._field = F
        self._degree = Fabs.degree()
        self._powers = [from_abs(Fabs.gen() ** k) for k in range(self._degree)]

    def domain_dimension(self):
        return self._space.dim() * self._degree

    def codomain(self):
        return self._space

    def basis(self):
        F = self._field
        m = self._space.dim()
        ans = []
        for i in range(m):
            for w in self._powers:
                v = [F(0)] * m
                v[i] = w
                ans.append(vector(F, v))
        return ans

    def trace(self, x):
        _, _, to_abs = absolute_structure(self._field)
        return QQ(to_abs(self._field(x)).trace())

    def __call__(self, v):
        d = self._degree
        m = self._space.dim()
        return vector(
            self._field,
            [from_absolute_vector(self._field, list(v)[i * d:(i + 1) * d]) for i in range(m)],
        )

    def preimage(self, w):
        ans = []
        for c in w:
            ans.extend(absolute_vector(self._field(c)))
        return vector(QQ, ans)

    def _repr_(self):
        return "Restriction of scalars map onto %s" % self._space
