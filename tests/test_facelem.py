# Tests for factored elements in algnt/facelem.py

import pytest
from sage.all import QQ, RR, NumberField, PolynomialRing, QuadraticField

from algnt.facelem import FactoredElements


@pytest.fixture
def real_quadratic():
    return QuadraticField(7, "a")


class TestFactoredElement:
    def test_evaluate(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        FK = FactoredElements(K)
        x = FK([(a + 3, 4), (a, -2)])
        assert x.evaluate() == (a + 3) ** 4 / a**2

    def test_group_operations(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        FK = FactoredElements(K)
        x = FK(a + 1) ** 5
        y = FK(2 * a - 1) ** -3
        assert (x * y).evaluate() == x.evaluate() * y.evaluate()
        assert (x / y).evaluate() == x.evaluate() / y.evaluate()
        assert (~x * x).is_one()
        assert (x * ~x).evaluate() == 1

    def test_equal_bases_merge(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        FK = FactoredElements(K)
        x = FK(a + 1) ** 3 * FK(a + 1) ** 4
        assert len(x) == 1
        assert x.exponents() == [7]

    def test_huge_exponent_norm(self, real_quadratic):
        K = real_quadratic
        a = K.gen()
        FK = FactoredElements(K)
        x = FK(8 + 3 * a) ** (10**30) * FK(a + 5) ** 2
        assert x.factored_norm().value() == QQ((a + 5).norm()) ** 2

    def test_parent_is_unique(self, real_quadratic):
        assert FactoredElements(real_quadratic) is FactoredElements(real_quadratic)

    def test_conjugates_log_sum(self):
        K = NumberField(PolynomialRing(QQ, "x").gen() ** 3 - 2, "a")
        a = K.gen()
        FK = FactoredElements(K)
        v = FK([(a + 1, 3), (a, -1)]).conjugates_log(prec=80)
        r1, r2 = K.signature()
        assert len(v) == r1 + r2
        assert (a + 1).norm() == 3
        total = v[0] + v[1]
        expected = 3 * RR(3).log() - RR(2).log()
        assert abs(total.center() - expected) < 1e-10
