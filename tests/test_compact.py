# Tests for compact presentations in algnt/compact.py

import pytest
from sage.all import QQ, NumberField, PolynomialRing, QuadraticField, prod

from algnt.compact import (
    compact_presentation,
    coprime_base,
    evaluate_mod,
    factor_coprime,
    is_power,
    reduce_ideal,
)
from algnt.facelem import FactoredElements


@pytest.fixture
def field():
    return QuadraticField(7, "a")


class TestIdeals:
    def test_coprime_base(self):
        K = QuadraticField(-5, "a")
        a = K.gen()
        P = K.ideal(2, a + 1)
        Q = K.ideal(3, a + 1)
        B = coprime_base([P**3 * Q, Q**2 * K.ideal(11)])
        for i, I in enumerate(B):
            for J in B[i + 1:]:
                assert (I + J).is_one()

    def test_factor_coprime(self, field):
        a = field.gen()
        FK = FactoredElements(field)
        x = FK([(a + 3, 5), (a - 1, -2), (6, 1)])
        D = factor_coprime(x)
        assert prod((I**e for I, e in D.items()), field.ideal(1)) == field.ideal(x.evaluate())

    def test_reduce_ideal(self):
        K = QuadraticField(-23, "a")
        P = K.primes_above(3)[0]
        J, alpha = reduce_ideal(P**11)
        assert J.is_integral()
        assert alpha * J == P**11


class TestCompactPresentation:
    def test_value_is_preserved(self, field):
        a = field.gen()
        FK = FactoredElements(field)
        x = FK(8 + 3 * a) ** (2**10) * FK(a + 5) ** 3 * FK(a - 2) ** -7
        c = compact_presentation(x, 2)
        assert c.evaluate() == x.evaluate()

    def test_bases_are_small(self, field):
        a = field.gen()
        FK = FactoredElements(field)
        x = FK(8 + 3 * a) ** (2**12)
        c = compact_presentation(x, 2)
        assert c.evaluate() == x.evaluate()
        assert all(abs(QQ(b.norm())).numerator() < 10**6 for b in c.support())

    def test_cubic(self):
        K = NumberField(PolynomialRing(QQ, "x").gen() ** 3 - 2, "a")
        a = K.gen()
        FK = FactoredElements(K)
        y = FK(a - 1) ** 100 * FK(a**2 + 1) ** -2
        assert compact_presentation(y, 3).evaluate() == y.evaluate()

    def test_small_n_rejected(self, field):
        FK = FactoredElements(field)
        with pytest.raises(ValueError):
            compact_presentation(FK(field.gen()), 1)


class TestEvaluation:
    def test_evaluate_mod(self):
        K = NumberField(PolynomialRing(QQ, "x").gen() ** 3 - 3 * PolynomialRing(QQ, "x").gen() + 1, "a")
        a = K.gen()
        FK = FactoredElements(K)
        y = FK([(a + 2, 4), (a - 5, 1), (3 * a + 1, -2)])
        assert evaluate_mod(y, K.ideal(y.evaluate())) == y.evaluate()

    def test_is_power(self, field):
        a = field.gen()
        FK = FactoredElements(field)
        x = FK(8 + 3 * a) ** (2**8) * FK(a + 5) ** 6
        ok, r = is_power(x, 2)
        assert ok
        assert r.evaluate() ** 2 == x.evaluate()

    def test_not_a_power(self, field):
        FK = FactoredElements(field)
        assert is_power(FK(field.gen() + 5), 2) == (False, None)

    def test_first_power(self, field):
        FK = FactoredElements(field)
        x = FK(field.gen() + 5) ** 3
        ok, r = is_power(x, 1)
        assert ok
        assert r.evaluate() == x.evaluate()
