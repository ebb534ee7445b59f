# Tests for the number field helpers and the parameter reader in algnt/util.py

import pytest
from sage.all import QQ, NumberField, PolynomialRing, QuadraticField

from algnt.util import (
    absolute_structure,
    absolute_vector,
    from_absolute_vector,
    primes_above,
    read_parameters,
    relative_discriminant_element,
    relative_involution,
    to_base,
)


@pytest.fixture
def gaussian():
    K = NumberField(PolynomialRing(QQ, "x").gen() - 1, "a")
    t = PolynomialRing(K, "t").gen()
    return K.extension(t**2 + 1, "b")


class TestReadParameters:
    def test_defaults(self, tmp_path):
        P = read_parameters("Missing", {"prec": 53}, filename=str(tmp_path / "none.ini"))
        assert P.prec == 53
        assert P.get("other", 7) == 7

    def test_file_overrides_defaults(self, tmp_path):
        f = tmp_path / "config.ini"
        f.write_text("[General]\nprec = 60\n\n[Section]\ntries = 2**3\n")
        P = read_parameters("Section", {"prec": 53, "tries": 1}, filename=str(f))
        assert P.prec == 60
        assert P.tries == 8

    def test_keywords_win(self, tmp_path):
        f = tmp_path / "config.ini"
        f.write_text("[Section]\nprec = 60\n")
        P = read_parameters("Section", {"prec": 53}, filename=str(f), prec=100)
        assert P.prec == 100
        P = read_parameters("Section", {"prec": 53}, filename=str(f), prec=None)
        assert P.prec == 60


class TestRelativeFields:
    def test_absolute_round_trip(self, gaussian):
        E = gaussian
        b = E.gen()
        x = 3 + 2 * b
        v = absolute_vector(x)
        assert len(v) == 2
        assert from_absolute_vector(E, v) == x
        Fabs, from_abs, to_abs = absolute_structure(E)
        assert from_abs(to_abs(x)) == x

    def test_involution(self, gaussian):
        E = gaussian
        b = E.gen()
        sigma = relative_involution(E)
        assert sigma(b) == -b
        assert sigma(sigma(1 + 5 * b)) == 1 + 5 * b
        assert to_base((1 + b) * sigma(1 + b)) == 2

    def test_discriminant_element(self, gaussian):
        assert relative_discriminant_element(gaussian) == -4

    def test_splitting(self, gaussian):
        K = gaussian.base_field()
        assert len(primes_above(gaussian, K.ideal(5))) == 2
        assert len(primes_above(gaussian, K.ideal(3))) == 1
        assert len(primes_above(gaussian, K.ideal(2))) == 1

    def test_absolute_field_is_itself(self):
        K = QuadraticField(3, "a")
        Fabs, from_abs, to_abs = absolute_structure(K)
        assert Fabs is K
