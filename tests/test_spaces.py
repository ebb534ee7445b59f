# Tests for quadratic and hermitian spaces in algnt/spaces.py

import pytest
from sage.all import Matrix, PolynomialRing, QuadraticField, diagonal_matrix, identity_matrix, vector

from algnt.spaces import (
    HermitianSpace,
    QuadraticSpace,
    hermitian_space,
    quadratic_space,
    rationals_as_number_field,
)


@pytest.fixture
def rationals():
    return rationals_as_number_field()


@pytest.fixture
def gaussian(rationals):
    t = PolynomialRing(rationals, "t").gen()
    return rationals.extension(t**2 + 1, "b")


class TestQuadraticSpace:
    def test_orthogonal_basis_of_hyperbolic_plane(self, rationals):
        K = rationals
        V = QuadraticSpace(K, Matrix(K, [[0, 1], [1, 0]]))
        B = V.orthogonal_basis()
        G = V.gram_matrix_of_vectors(B)
        assert G.is_diagonal()
        assert G.determinant() == -B.determinant() ** 2

    def test_diagonal_matches_determinant(self, rationals):
        K = rationals
        V = QuadraticSpace(K, Matrix(K, [[2, 1, 0], [1, 2, 1], [0, 1, 2]]))
        d = V.diagonal()
        assert len(d) == 3
        assert (d[0] * d[1] * d[2] / V.determinant()).is_square()

    def test_non_symmetric_gram(self, rationals):
        with pytest.raises(ValueError):
            QuadraticSpace(rationals, Matrix(rationals, [[1, 1], [0, 1]]))

    def test_hasse_invariant(self, rationals):
        K = rationals
        V = QuadraticSpace(K, diagonal_matrix(K, [-1, -1]))
        assert V.hasse_invariant(K.ideal(2)) == -1
        assert V.hasse_invariant(K.ideal(3)) == 1

    def test_isometry(self, rationals):
        K = rationals
        V = QuadraticSpace(K, identity_matrix(K, 2))
        assert V.is_isometric(QuadraticSpace(K, diagonal_matrix(K, [2, 2])))
        assert not V.is_isometric(QuadraticSpace(K, diagonal_matrix(K, [3, 3])))
        assert not V.is_isometric(QuadraticSpace(K, diagonal_matrix(K, [1, -1])))
        assert not V.is_isometric(QuadraticSpace(K, identity_matrix(K, 3)))

    def test_signature(self):
        K = QuadraticField(2, "a")
        a = K.gen()
        V = QuadraticSpace(K, diagonal_matrix(K, [1, 1, a]))
        assert sorted(V.signature(s) for s in K.real_places()) == [(2, 1), (3, 0)]
        assert not V.is_positive_definite()
        assert QuadraticSpace(K, diagonal_matrix(K, [1, 2 + a])).is_positive_definite()


class TestHermitianSpace:
    def test_determinant_and_diagonal(self, gaussian):
        E = gaussian
        b = E.gen()
        V = HermitianSpace(E, Matrix(E, [[1, b], [-b, 3]]))
        assert V.determinant() == 2
        assert V.is_positive_definite()

    def test_non_hermitian_gram(self, gaussian):
        b = gaussian.gen()
        with pytest.raises(ValueError):
            HermitianSpace(gaussian, Matrix(gaussian, [[1, b], [b, 3]]))

    def test_isometry(self, gaussian, rationals):
        E = gaussian
        K = rationals
        V = HermitianSpace(E, identity_matrix(E, 2))
        W = HermitianSpace(E, diagonal_matrix(E, [2, 1]))
        U = HermitianSpace(E, diagonal_matrix(E, [3, 1]))
        assert V.is_isometric(W)
        assert not V.is_isometric(U)
        assert V.is_isometric(U, K.ideal(5))
        assert not V.is_isometric(U, K.ideal(3))

    def test_restrict_scalars(self, gaussian):
        E = gaussian
        b = E.gen()
        V = HermitianSpace(E, diagonal_matrix(E, [1, 2]))
        Vres, f = V.restrict_scalars()
        assert Vres.dimension() == 4
        v = vector(E, [1 + b, 3])
        w = f.preimage(v)
        assert f(w) == v
        assert w * Vres.inner_product_matrix() * w == 2 * V.inner_product(v, v)


class TestCachedSpaces:
    def test_same_gram_gives_same_space(self):
        K = QuadraticField(2, "a")
        a = K.gen()
        V = quadratic_space(K, diagonal_matrix(K, [1, a]))
        assert quadratic_space(K, [[1, 0], [0, a]]) is V
        assert quadratic_space(K, diagonal_matrix(K, [1, 2])) is not V

    def test_uncached_space_is_distinct(self, gaussian):
        E = gaussian
        V = hermitian_space(E, identity_matrix(E, 3))
        assert hermitian_space(E, identity_matrix(E, 3)) is V
        W = hermitian_space(E, identity_matrix(E, 3), cached=False)
        assert W is not V
        assert W.gram_matrix() == V.gram_matrix()

    def test_mutating_the_input_leaves_the_space_alone(self, rationals):
        K = rationals
        G = identity_matrix(K, 2)
        V = quadratic_space(K, G)
        G[0, 0] = 5
        assert V.gram_matrix() == identity_matrix(K, 2)
