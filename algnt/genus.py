from sage.matrix.all import Matrix, block_diagonal_matrix
from sage.quadratic_forms.genera.genus import Genus
from sage.rings.all import QQ, ZZ
from sage.structure.sage_object import SageObject

from .lattices import HermitianLattice, QuadraticLattice
from .norms import quadratic_defect
from .spaces import QuadraticSpace
from .util import (
    Bunch,
    ideal_of_extension,
    relative_discriminant_element,
    to_base,
)


class LocalGenusSymbol(SageObject):
    r"""
    The local genus symbol of a lattice at a prime ``p`` of the fixed field.

    ``data`` is a list with one entry per Jordan constituent.

    EXAMPLES::

        sage: from algnt.genus import hermitian_local_genus
        sage: from algnt.spaces import rationals_as_number_field
        sage: K = rationals_as_number_field()
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 + 1)
        sage: g = hermitian_local_genus(E, K.ideal(3), [(0, 2, 1), (1, 1, -1)])
        sage: g.rank(), g.data()
        (3, [(0, 2, 1), (1, 1, -1)])
        sage: g == hermitian_local_genus(E, K.ideal(3), [(0, 2, 1), (1, 1, -1)])
        True
    """

    def __init__(self, kind, field, prime, data):
        self._kind = kind
        self._field = field
        self._prime = prime
        self._data = list(data)

    def kind(self):
        return self._kind

    def field(self):
        return self._field

    def prime(self):
        return self._prime

    def data(self):
        return list(self._data)

    def rank(self):
        if self._kind == "quadratic_dyadic":
            return self._data[1].rank()
        return sum(d[1] for d in self._data)

    def __eq__(self, other):
        if not isinstance(other, LocalGenusSymbol):
            return False
        return (
            self._kind == other._kind
            and self._field is other._field
            and self._prime == other._prime
            and self._data == other._data
        )

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self._kind, str(self._prime)))

    def _repr_(self):
        return "Local genus symbol at %s with data %s" % (self._prime, self._data)


def _jordan_invariants(L, p):
    r"""
    Invariants of a Jordan decomposition `L_1 \perp \dots \perp L_t` at a
    dyadic prime ``p``: the scales `s_i`, a norm generator `a_i` and the
    weight `w_i` of each `L^{s_i} = \{x \in L : B(x, L) \subseteq p^{s_i}\}`,
    and the valuations `f_i` bounding the determinants of `L_1 \perp \dots
    \perp L_i`.
    """
    K = L.base_field()
    e = p.ramification_index()
    pi = K.uniformizer(p)
    _, grams, scales = L.jordan_decomposition(p)
    t = len(grams)
    norms, weights = [], []
    for i in range(t):
        diag = []
        for j, G in enumerate(grams):
            c = pi ** (2 * (scales[i] - scales[j])) if j < i else 1
            diag.extend(c * G[k, k] for k in range(G.nrows()))
        m = min(d.valuation(p) for d in diag)
        if e + scales[i] <= m:
            a = pi ** (e + scales[i])
        else:
            a = next(d for d in diag if d.valuation(p) == m)
        u = a.valuation(p)
        w = min([e + scales[i]] + [u + quadratic_defect(d / a, p) for d in diag])
        norms.append(a)
        weights.append(w)
    us = [a.valuation(p) for a in norms]
    fs = []
    for k in range(t - 1):
        v = us[k] + us[k + 1]
        if v % 2 == 0:
            v = min(
                quadratic_defect(norms[k] * norms[k + 1], p),
                us[k] + weights[k + 1],
                us[k + 1] + weights[k],
                e + v // 2 + scales[k],
            )
        fs.append(v - 2 * scales[k])
    return Bunch(grams=grams, scales=scales, norms=norms, weights=weights, fs=fs)


def _represents(X, U, p):
    r"""
    Whether the quadratic space with Gram matrix ``X`` contains a subspace
    isometric to the one with Gram matrix ``U``, one dimension smaller.
    """
    K = X.base_ring()
    c = X.determinant() / U.determinant()
    W = block_diagonal_matrix(U, Matrix(K, [[c]]))
    return QuadraticSpace(K, X).is_isometric(QuadraticSpace(K, W), p)


class DyadicGenusSymbol(LocalGenusSymbol):
    r"""
    The local genus symbol of a quadratic lattice at a dyadic prime of a
    number field. Two symbols compare equal exactly when the lattices are
    locally isometric, decided from the Jordan invariants (O'Meara 93:28).

    EXAMPLES::

        sage: from algnt.genus import genus
        sage: from algnt.lattices import quadratic_lattice
        sage: K.<a> = QuadraticField(5)
        sage: P = K.prime_above(2)
        sage: L = quadratic_lattice(K, [[1, 0], [0, 1]], gram=diagonal_matrix(K, [1, 2]))
        sage: M = quadratic_lattice(K, [[1, 0], [0, 1]], gram=diagonal_matrix(K, [3, 6]))
        sage: N = quadratic_lattice(K, [[1, 0], [0, 1]], gram=diagonal_matrix(K, [1, 6]))
        sage: g = genus(L, P)
        sage: g.data()
        [(0, 1, 0, 1), (1, 1, 1, 2)]
        sage: g == genus(M, P), g == genus(N, P)
        (True, False)
    """

    def __init__(self, field, prime, invariants):
        I = invariants
        data = [
            (s, G.nrows(), a.valuation(prime), w)
            for s, G, a, w in zip(I.scales, I.grams, I.norms, I.weights)
        ]
        LocalGenusSymbol.__init__(self, "quadratic_dyadic_jordan", field, prime, data)
        self._invariants = invariants

    def __eq__(self, other):
        if not LocalGenusSymbol.__eq__(self, other):
            return False
        p = self._prime
        e = p.ramification_index()
        A = self._invariants
        B = other._invariants
        GA = block_diagonal_matrix(A.grams)
        GB = block_diagonal_matrix(B.grams)
        if not QuadraticSpace(self._field, GA).is_isometric(QuadraticSpace(self._field, GB), p):
            return False
        us = [a.valuation(p) for a in A.norms]
        for a, b, w, u in zip(A.norms, B.norms, A.weights, us):
            if quadratic_defect(a / b, p) < w - u:
                return False
        for i, f in enumerate(A.fs):
            DA = block_diagonal_matrix(A.grams[: i + 1])
            DB = block_diagonal_matrix(B.grams[: i + 1])
            d = DA.determinant() / DB.determinant()
            if d.valuation(p) != 0 or quadratic_defect(d, p) < f:
                return False
            for k in (i + 1, i):
                if f > 2 * e + us[k] - B.weights[k]:
                    X = block_diagonal_matrix(DB, Matrix(self._field, [[B.norms[k]]]))
                    if not _represents(X, DA, p):
                        return False
        return True

    def __hash__(self):
        return hash((self._kind, str(self._prime), tuple(self._data)))


def _quadratic_genus(L, p):
    K = L.base_field()
    if p.smallest_integer() == 2:
        if K.degree() != 1:
            return DyadicGenusSymbol(K, p, _jordan_invariants(L, p))
        B = L.local_basis_matrix(p)
        G = L.ambient_space().gram_matrix_of_vectors(B).apply_map(
            lambda x: QQ(x.list()[0]), QQ
        )
        d = G.denominator()
        t = ZZ(d).valuation(2)
        A = (d**2 * G).change_ring(ZZ)
        return LocalGenusSymbol(
            "quadratic_dyadic", K, p, [2 * t, Genus(A).local_symbol(2)]
        )
    kf = K.residue_field(p)
    pi = K.uniformizer(p)
    _, grams, exps = L.jordan_decomposition(p)
    data = []
    for G, s in zip(grams, exps):
        r = G.nrows()
        u = G.determinant() / pi ** (s * r)
        data.append((s, r, 1 if kf(u).is_square() else -1))
    return LocalGenusSymbol("quadratic", K, p, data)


def _hermitian_genus(L, p):
    E = L.base_field()
    K = L.fixed_field()
    e = max(f for _, f in ideal_of_extension(E, p).factor())
    if p.smallest_integer() == 2 and e == 2:
        raise NotImplementedError("ramified dyadic primes are not supported")
    D = relative_discriminant_element(E)
    _, grams, exps = L.jordan_decomposition(p)
    data = []
    for G, s in zip(grams, exps):
        det = to_base(G.determinant())
        data.append((s, G.nrows(), K.hilbert_symbol(det, D, p)))
    return LocalGenusSymbol("hermitian", E, p, data)


def genus(L, p):
    r"""
    The local genus symbol of the lattice ``L`` at the prime ``p`` of the
    fixed field.

    EXAMPLES::

        sage: from algnt.genus import genus
        sage: from algnt.lattices import quadratic_lattice
        sage: K.<a> = QuadraticField(2)
        sage: L = quadratic_lattice(K, identity_matrix(K, 3).rows(), gram=diagonal_matrix(K, [1, 3, 9]))
        sage: genus(L, K.prime_above(3)).data()
        [(0, 1, 1), (1, 1, 1), (2, 1, 1)]
        sage: M = quadratic_lattice(K, identity_matrix(K, 3).rows(), gram=diagonal_matrix(K, [7, 3, 9]))
        sage: genus(L, K.prime_above(7)) == genus(M, K.prime_above(7))
        False
    """
    if isinstance(L, HermitianLattice):
        return _hermitian_genus(L, p)
    if isinstance(L, QuadraticLattice):
        return _quadratic_genus(L, p)
    raise ValueError("unknown lattice %s" % L)


def hermitian_local_genus(E, p, data):
    r"""
    The local genus symbol of hermitian lattices over ``E`` at ``p`` with
    Jordan data ``data``, a list of triples ``(scale, rank, norm class)``.
    """
    return LocalGenusSymbol("hermitian", E, p, [tuple(d) for d in data])
