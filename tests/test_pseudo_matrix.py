# Tests for pseudo-matrices in algnt/pseudo_matrix.py

import pytest
from sage.all import Matrix, QuadraticField, identity_matrix

from algnt.pseudo_matrix import PseudoMatrix, pseudo_echelon_form


@pytest.fixture
def field():
    return QuadraticField(-5, "a")


def module_ideal_product(pm):
    ans = None
    for I in pm.coefficient_ideals():
        ans = I if ans is None else ans * I
    return ans


class TestPseudoMatrix:
    def test_default_ideals(self, field):
        P = PseudoMatrix(identity_matrix(field, 3))
        assert all(I == field.ideal(1) for I in P.coefficient_ideals())
        assert P.nrows() == 3 and P.ncols() == 3

    def test_one_ideal_per_row(self, field):
        with pytest.raises(ValueError):
            PseudoMatrix(identity_matrix(field, 2), [field.ideal(1)])


class TestEchelonForm:
    def test_non_principal_module(self, field):
        a = field.gen()
        E = pseudo_echelon_form(PseudoMatrix(Matrix(field, [[2], [1 + a]])))
        assert E.nrows() == 1
        assert E.matrix()[0, 0] == 1
        assert E.coefficient_ideals()[0] == field.ideal(2, 1 + a)

    def test_drops_dependent_rows(self, field):
        a = field.gen()
        M = Matrix(field, [[1, a], [2, 0], [0, 2 * a]])
        E = pseudo_echelon_form(PseudoMatrix(M))
        assert E.nrows() == 2
        assert E.matrix()[0, 0] == 1 and E.matrix()[1, 0] == 0 and E.matrix()[1, 1] == 1

    def test_steinitz_class_is_kept(self, field):
        a = field.gen()
        P = field.ideal(2, 1 + a)
        M = Matrix(field, [[1, 0], [0, 1], [1, 1]])
        pm = PseudoMatrix(M, [P, field.ideal(1), P**2])
        E = pseudo_echelon_form(pm)
        # the module is P e_1 + O e_2
        assert E.nrows() == 2
        assert module_ideal_product(E) == P

    def test_triangular_input_is_unchanged(self, field):
        M = Matrix(field, [[1, 3], [0, 1]])
        E = pseudo_echelon_form(PseudoMatrix(M, [field.ideal(2), field.ideal(3)]))
        assert E.matrix() == M
        assert E.coefficient_ideals() == [field.ideal(2), field.ideal(3)]
