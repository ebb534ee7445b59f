# Tests for quadratic and hermitian lattices in algnt/lattices.py

import pytest
from sage.all import (
    QQ,
    ZZ,
    CartanMatrix,
    Matrix,
    PolynomialRing,
    QuadraticField,
    diagonal_matrix,
    identity_matrix,
)

from algnt.lattices import (
    hermitian_lattice,
    is_locally_isometric,
    is_rationally_isometric,
    lattice,
    maximal_integral_lattice,
    quadratic_lattice,
)
from algnt.pseudo_matrix import PseudoMatrix
from algnt.spaces import HermitianSpace, QuadraticSpace, hermitian_space, rationals_as_number_field


@pytest.fixture
def rationals():
    return rationals_as_number_field()


@pytest.fixture
def real_quadratic():
    return QuadraticField(2, "a")


@pytest.fixture
def gens_l(real_quadratic):
    a = real_quadratic.gen()
    return [
        [32, 0, 0],
        [944 * a + 704, 0, 0],
        [16, 16, 0],
        [72 * a + 96, 72 * a + 96, 0],
        [4 * a, 4 * a + 8, 8],
        [20 * a + 32, 52 * a + 72, 32 * a + 40],
    ]


@pytest.fixture
def gens_m(real_quadratic):
    a = real_quadratic.gen()
    return [
        [32, 0, 0],
        [720 * a + 448, 0, 0],
        [16, 16, 0],
        [152 * a + 208, 152 * a + 208, 0],
        [4 * a + 24, 4 * a, 8],
        [116 * a + 152, 20 * a + 32, 32 * a + 40],
    ]


def imaginary_quadratic(K, d):
    t = PolynomialRing(K, "t").gen()
    return K.extension(t**2 - d, "b")


class TestQuadraticLattice:
    def test_invariants(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        L = quadratic_lattice(K, [[1, 0], [a, 2], [0, 4]], gram=diagonal_matrix(K, [1, 3]))
        assert L.rank() == 2 and L.degree() == 2
        assert L.scale() == K.ideal(1)
        assert L.norm() == K.ideal(1)
        assert L.volume() == K.ideal(12)

    def test_volume_matches_restriction_of_scalars(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        L = quadratic_lattice(K, [[1, 0], [a, 2], [0, 4]], gram=diagonal_matrix(K, [1, 3]))
        Lres = L.restrict_scalars()
        assert Lres.base_ring() is ZZ
        assert Lres.rank() == 4
        det = Lres.gram_matrix().determinant()
        assert det == L.volume().absolute_norm() * K.discriminant() ** 2

    def test_restriction_of_scalars_of_scaled_lattice(self, real_quadratic):
        K = real_quadratic
        L = quadratic_lattice(K, [[2, 0], [0, 2]])
        Lres = L.restrict_scalars()
        assert Lres.basis_matrix() != identity_matrix(QQ, 4)
        assert Lres.gram_matrix().determinant() == 256 * 64

    def test_volume_of_rational_gram(self, real_quadratic, gens_m):
        K = real_quadratic
        M = quadratic_lattice(K, gens_m, gram=identity_matrix(K, 3) / 64)
        det = M.restrict_scalars().gram_matrix().determinant()
        assert M.volume().absolute_norm() * K.discriminant() ** M.rank() == abs(det)

    def test_dual(self, real_quadratic):
        K = real_quadratic
        L = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [1, 3]))
        D = L.dual()
        assert D.is_sublattice(L)
        assert not L.is_sublattice(D)
        assert D.dual() == L
        assert D.volume() == K.ideal(3) ** -1

    def test_integrality(self, real_quadratic):
        K = real_quadratic
        L = quadratic_lattice(K, identity_matrix(K, 2).rows())
        assert L.is_integral()
        assert not (L * (K(1) / 2)).is_integral()
        assert L.norm() == K.ideal(1)

    def test_sum_and_intersection(self, real_quadratic):
        K = real_quadratic
        V = QuadraticSpace(K, identity_matrix(K, 2))
        L1 = lattice(V, 2 * identity_matrix(K, 2))
        L2 = lattice(V, [[1, 0], [0, 2]])
        assert L1 <= L2
        assert not L2 <= L1
        assert L1 + L2 == L2
        assert L1.intersect(L2) == L1
        assert lattice(V) * K.ideal(2) == L1

    def test_different_spaces(self, real_quadratic):
        K = real_quadratic
        L = lattice(QuadraticSpace(K, identity_matrix(K, 2)))
        M = lattice(QuadraticSpace(K, identity_matrix(K, 2)))
        assert L != M
        with pytest.raises(ValueError):
            L + M

    def test_orthogonal_submodule(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 3))
        L = lattice(V)
        M = lattice(V, [[1, 1, 0]])
        N = L.orthogonal_submodule(M)
        assert N.rank() == 2
        assert N == lattice(V, [[1, -1, 0], [0, 0, 1]])

    def test_primitive_closure(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 3))
        L = lattice(V)
        M = lattice(V, [[2, 2, 0], [0, 0, 6]])
        assert L.primitive_closure(M) == lattice(V, [[1, 1, 0], [0, 0, 1]])

    def test_jordan_decomposition_unimodular(self, rationals):
        K = rationals
        G = Matrix(K, [[3, 2, 1], [2, 3, 1], [1, 1, 1]])
        L = quadratic_lattice(K, identity_matrix(K, 3).rows(), gram=G)
        bases, grams, exps = L.jordan_decomposition(K.ideal(2))
        assert exps == [0]
        assert bases[0].nrows() == 3
        assert L.is_modular(K.ideal(2)) == (True, 0)

    def test_jordan_decomposition_scales(self, rationals):
        K = rationals
        L = quadratic_lattice(K, identity_matrix(K, 3).rows(), gram=diagonal_matrix(K, [1, 2, 4]))
        _, grams, exps = L.jordan_decomposition(K.ideal(2))
        assert exps == [0, 1, 2]
        assert [G.nrows() for G in grams] == [1, 1, 1]
        assert L.is_modular(K.ideal(2)) == (False, None)
        assert L.is_modular(K.ideal(3)) == (True, 0)

    def test_global_modularity(self, rationals):
        K = rationals
        L = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [3, 3]))
        ok, s = L.is_modular()
        assert ok and s == K.ideal(3)

    def test_maximal_integral_lattice(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 3))
        L = lattice(V, 2 * identity_matrix(K, 3))
        assert not L.is_maximal_integral()[0]
        M = L.maximal_integral_lattice()
        assert L <= M
        assert M.norm().is_integral()
        assert M.is_maximal_integral()[0]
        assert M.volume() == K.ideal(1)

    def test_maximal_integral_lattice_of_space(self, rationals):
        K = rationals
        V = QuadraticSpace(K, diagonal_matrix(K, [K(1) / 2] * 4))
        L = maximal_integral_lattice(V)
        assert L.norm().is_integral()
        assert L.is_maximal_integral()[0]

    def test_maximal_by_successive_enlargement(self, real_quadratic, gens_m):
        K = real_quadratic
        L = quadratic_lattice(K, gens_m, gram=72 * identity_matrix(K, 3))
        done = False
        while not done and L.norm().is_integral():
            done, bigger = L.is_maximal_integral()
            if not done:
                assert bigger.ambient_space() is L.ambient_space()
                assert L <= bigger
                L = bigger
        assert L.is_maximal_integral(K.prime_above(2))[0]
        assert not L.is_modular()[0]
        assert L.is_modular(K.prime_above(3))[0]
        det = L.restrict_scalars().gram_matrix().determinant()
        assert L.volume().absolute_norm() * K.discriminant() ** L.rank() == abs(det)

    def test_maximal_at_large_odd_residue_field(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 3))
        L = lattice(V, 257 * identity_matrix(K, 3))
        M = L.maximal_integral_lattice()
        assert L <= M
        assert M.norm().is_integral()
        assert M.is_maximal_integral(K.ideal(257))[0]
        assert M.volume().valuation(K.ideal(257)) == 0

    def test_jordan_decomposition_of_lower_rank_lattice(self, rationals):
        K = rationals
        G = Matrix(K, [[3, 2, 1], [2, 3, 1], [1, 1, 1]])
        gens = [[1, -1, 0], [1, -1, 0], [0, 1, -1], [0, 1, -1]]
        L = quadratic_lattice(K, gens, gram=G)
        assert L.rank() == 2
        _, _, exps = L.jordan_decomposition(K.ideal(2))
        assert len(exps) == 1

    def test_e8_is_unimodular(self, rationals):
        K = rationals
        G = Matrix(K, CartanMatrix(["E", 8]))
        L = quadratic_lattice(K, identity_matrix(K, 8).rows(), gram=G)
        assert L == L.dual()
        assert L.volume() == K.ideal(1)

    def test_non_integral_norm_is_rejected(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 2))
        L = lattice(V, identity_matrix(K, 2) / 2)
        with pytest.raises(ValueError):
            L.is_maximal_integral()


class TestHermitianLattice:
    def test_norm_and_volume(self, rationals):
        E = imaginary_quadratic(rationals, -1)
        b = E.gen()
        L = hermitian_lattice(E, [[1, 0], [0, 1]], gram=Matrix(E, [[2, b], [-b, 2]]))
        assert L.norm() == rationals.ideal(2)
        assert L.volume() == rationals.ideal(3)
        assert L.is_integral()

    def test_dual(self, rationals):
        E = imaginary_quadratic(rationals, -1)
        L = hermitian_lattice(E, identity_matrix(E, 2).rows(), gram=diagonal_matrix(E, [1, 5]))
        D = L.dual()
        assert D.is_sublattice(L)
        assert D.dual() == L
        assert D.volume() == rationals.ideal(5) ** -1

    def test_maximal_at_odd_ramified_prime(self, rationals):
        K = rationals
        E = imaginary_quadratic(K, -3)
        V = HermitianSpace(E, identity_matrix(E, 2))
        L = lattice(V, 3 * identity_matrix(E, 2))
        M = L.maximal_integral_lattice()
        assert L <= M
        assert M.norm().is_integral()
        assert M.is_maximal_integral()[0]
        assert lattice(V).is_maximal_integral(K.ideal(3))[0]

    def test_maximal_at_large_split_prime(self, rationals):
        K = rationals
        E = imaginary_quadratic(K, -1)
        V = hermitian_space(E, identity_matrix(E, 2))
        L = lattice(V, 257 * identity_matrix(E, 2))
        M = L.maximal_integral_lattice()
        assert L <= M
        assert M.norm().is_integral()
        assert M.is_maximal_integral(K.ideal(257))[0]
        assert M.volume().valuation(K.ideal(257)) == 0

    def test_e8_over_cm_extension_is_unimodular(self, real_quadratic):
        K = real_quadratic
        t = PolynomialRing(K, "t").gen()
        E = K.extension(t**2 - K.gen() * t + 1, "b")
        V = hermitian_space(E, Matrix(E, CartanMatrix(["E", 8])))
        L = lattice(V)
        assert L == L.dual()


class TestIntersections:
    @pytest.fixture
    def gaussian(self, rationals):
        return imaginary_quadratic(rationals, -1)

    @pytest.fixture
    def lattices(self, gaussian):
        E = gaussian
        b = E.gen()
        D = identity_matrix(E, 3)
        gens = [
            [-6, -10 * b + 10, 0],
            [-6 * b + 7, (37 * b + 21) / 2, (-3 * b + 5) / 2],
            [-46 * b + 71, (363 * b + 145) / 2, (-21 * b + 49) / 2],
        ]
        gens3 = [gens[1], [4 + 2 * b, 2, 0]]
        L1 = hermitian_lattice(E, gens, gram=D)
        L3 = hermitian_lattice(E, gens3, gram=D)
        L4 = hermitian_lattice(E, gens, gram=2 * D)
        return L1, L3, L4

    def test_intersection_of_lower_rank_lattice(self, lattices):
        L1, L3, L4 = lattices
        L13 = L1.intersect(L3)
        assert L1.is_sublattice(L13) and L3.is_sublattice(L13)
        with pytest.raises(ValueError):
            L1.intersect(L4)

    def test_primitive_closure(self, lattices):
        L1, L3, _ = lattices
        L13 = L1.intersect(L3)
        closure1 = L1.primitive_closure(L13)
        closure3 = L3.saturate(L13)
        assert closure1 == L13
        assert closure3 != L13 and closure3.is_sublattice(L13)
        assert closure1.intersect(closure3) == L13
        orth = L1.orthogonal_submodule(L13)
        assert closure1.intersect(orth).rank() == 0

    def test_uncached_space_gives_other_lattice(self, gaussian):
        E = gaussian
        gens = [[1, 0, 0], [0, 1, 0]]
        L = hermitian_lattice(E, gens)
        assert L == hermitian_lattice(E, gens)
        LL = hermitian_lattice(E, gens, cached=False)
        assert L != LL
        assert not LL <= L


class TestIsometry:
    def test_rational_isometry(self, rationals):
        K = rationals
        L = quadratic_lattice(K, identity_matrix(K, 2).rows())
        M = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [2, 2]))
        N = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [3, 3]))
        assert is_rationally_isometric(L, M)
        assert not is_rationally_isometric(L, N)

    def test_local_isometry(self, rationals):
        K = rationals
        L = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [1, 2]))
        M = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [2, 1]))
        N = quadratic_lattice(K, identity_matrix(K, 2).rows(), gram=diagonal_matrix(K, [1, 1]))
        assert is_locally_isometric(L, M, K.ideal(3))
        assert not is_locally_isometric(L, N, K.ideal(3))

    def test_dyadic_local_isometry(self, real_quadratic, gens_l, gens_m):
        K = real_quadratic
        D = identity_matrix(K, 3) / 64
        L = quadratic_lattice(K, gens_l, gram=D)
        M = quadratic_lattice(K, gens_m, gram=D)
        p = K.prime_above(2)
        assert is_locally_isometric(L, M, p)
        assert is_rationally_isometric(L, M)

    def test_dyadic_local_isometry_with_ideal_coefficients(self, real_quadratic):
        K = real_quadratic
        p = K.prime_above(2)
        V = QuadraticSpace(K, 2 * identity_matrix(K, 3))
        H = lattice(V, PseudoMatrix(identity_matrix(K, 3), [p, p, p]))
        assert is_locally_isometric(H, H, p)
        N = lattice(V)
        assert not is_locally_isometric(H, N, p)
