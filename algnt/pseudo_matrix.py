from sage.matrix.all import Matrix
from sage.rings.number_field.number_field_ideal import NumberFieldFractionalIdeal
from sage.structure.sage_object import SageObject

from .util import absolute_structure, ideal_of


def _absolute_ideal(F, I):
    Fabs, _, _ = absolute_structure(F)
    if isinstance(I, NumberFieldFractionalIdeal):
        if I.number_field() is Fabs:
            return I
        return ideal_of(F, list(I.gens()))
    return ideal_of(F, I)


class PseudoMatrix(SageObject):
    r"""
    A pseudo-matrix `(M, (a_i))` over a number field `F`: it describes the
    module `\sum_i a_i M_i` spanned by the rows `M_i` of ``matrix`` with
    coefficients in the fractional ideals `a_i` of the absolute field of
    `F`.

    EXAMPLES::

        sage: from algnt.pseudo_matrix import PseudoMatrix
        sage: K.<a> = QuadraticField(-5)
        sage: P = PseudoMatrix(identity_matrix(K, 2), [K.ideal(2, a + 1), K.ideal(1)])
        sage: P
        Pseudo-matrix with 2 rows over Number Field in a with defining polynomial x^2 + 5 with a = 2.236067977499790?*I
        sage: P.coefficient_ideals()[0].norm()
        2
    """

    def __init__(self, matrix, ideals=None):
        F = matrix.base_ring()
        Fabs, _, _ = absolute_structure(F)
        self._matrix = matrix
        if ideals is None:
            ideals = [Fabs.ideal(1) for _ in range(matrix.nrows())]
        ideals = list(ideals)
        if len(ideals) != matrix.nrows():
            raise ValueError("there must be one ideal per row")
        self._ideals = [_absolute_ideal(F, I) for I in ideals]

    def matrix(self):
        return self._matrix

    def coefficient_ideals(self):
        return list(self._ideals)

    def base_field(self):
        return self._matrix.base_ring()

    def nrows(self):
        return self._matrix.nrows()

    def ncols(self):
        return self._matrix.ncols()

    def rows(self):
        return list(zip(self._ideals, self._matrix.rows()))

    def _repr_(self):
        return "Pseudo-matrix with %s rows over %s" % (self.nrows(), self.base_field())


def pseudo_echelon_form(pm):
    r"""
    An echelon pseudo-basis of the module described by ``pm``, with all
    pivots equal to `1` and without zero rows.

    Two rows `(a, v)` and `(b, w)`, where `v` has pivot `1` and `w` has
    entry `\beta` in the pivot column, are replaced by
    `(d, uv + (v'/\beta)w)` and `(abd^{-1}, w - \beta v)`, where
    `d = a + \beta b` and `u + v' = 1` with `u \in ad^{-1}` and
    `v' \in \beta b d^{-1}`.

    EXAMPLES::

        sage: from algnt.pseudo_matrix import PseudoMatrix, pseudo_echelon_form
        sage: K.<a> = QuadraticField(-5)
        sage: E = pseudo_echelon_form(PseudoMatrix(Matrix(K, [[2], [1 + a]])))
        sage: E.matrix()
        [1]
        sage: E.coefficient_ideals()[0] == K.ideal(2, 1 + a)
        True

    ::

        sage: M = Matrix(K, [[1, a], [2, 0], [0, 2 * a]])
        sage: E = pseudo_echelon_form(PseudoMatrix(M))
        sage: E.nrows(), E.matrix()[0, 0], E.matrix()[1, 0], E.matrix()[1, 1]
        (2, 1, 0, 1)
    """
    F = pm.base_field()
    _, from_abs, to_abs = absolute_structure(F)
    rows = [list(r) for r in pm.matrix().rows()]
    ideals = pm.coefficient_ideals()
    m = len(rows)
    n = pm.ncols()
    i = 0
    for j in range(n):
        if i == m:
            break
        k = next((k for k in range(i, m) if rows[k][j] != 0), None)
        if k is None:
            continue
        rows[i], rows[k] = rows[k], rows[i]
        ideals[i], ideals[k] = ideals[k], ideals[i]
        c = rows[i][j]
        rows[i] = [x / c for x in rows[i]]
        ideals[i] = ideals[i] * ideal_of(F, c)
        for k in range(i + 1, m):
            beta = rows[k][j]
            if beta == 0:
                continue
            a = ideals[i]
            b = ideals[k]
            bb = b * ideal_of(F, beta)
            d = a + bb
            u = from_abs((a / d).element_1_mod(bb / d))
            v = 1 - u
            new_i = [u * x + (v / beta) * y for x, y in zip(rows[i], rows[k])]
            new_k = [y - beta * x for x, y in zip(rows[i], rows[k])]
            rows[i], rows[k] = new_i, new_k
            ideals[i], ideals[k] = d, a * b / d
        i += 1
    keep = [t for t in range(m) if any(x != 0 for x in rows[t])]
    return PseudoMatrix(
        Matrix(F, len(keep), n, [rows[t] for t in keep]), [ideals[t] for t in keep]
    )
