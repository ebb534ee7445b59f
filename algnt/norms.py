r"""
Local squares and local norms.

All primes are prime ideals of an absolute number field `K`; a quadratic
extension `E/K` is a relative number field with a monic defining
polynomial of degree `2`.
"""
from sage.rings.infinity import Infinity
from sage.rings.polynomial.polynomial_ring_constructor import PolynomialRing

from .util import primes_above, relative_discriminant_element


def _is_dyadic(p):
    return p.smallest_integer() == 2


def quadratic_defect(a, p):
    r"""
    The quadratic defect of ``a`` at the prime ``p``: the largest valuation
    of `a - s^2` for `s` in the completion, which is infinite exactly when
    ``a`` is a square there.

    EXAMPLES::

        sage: from algnt.norms import quadratic_defect
        sage: K.<a> = NumberField(x - 1)
        sage: p2 = K.ideal(2)
        sage: quadratic_defect(K(17), p2), quadratic_defect(K(5), p2), quadratic_defect(K(3), p2)
        (+Infinity, 2, 1)
        sage: quadratic_defect(K(12), p2), quadratic_defect(K(2), p2)
        (3, 1)
        sage: quadratic_defect(K(2), K.ideal(7)), quadratic_defect(K(3), K.ideal(7))
        (+Infinity, 0)
    """
    K = p.number_field()
    a = K(a)
    if a == 0:
        return Infinity
    v = a.valuation(p)
    if v % 2 == 1:
        return v
    pi = K.uniformizer(p)
    u = a / pi**v
    kf = K.residue_field(p)
    if not _is_dyadic(p):
        return Infinity if kf(u).is_square() else v
    e = p.ramification_index()
    s = kf.lift(kf(u).sqrt())
    u = u / K(s) ** 2
    w = (u - 1).valuation(p)
    while w < 2 * e:
        if w % 2 == 1:
            return v + w
        t = (u - 1) / pi**w
        s = K(kf.lift(kf(t).sqrt()))
        u = u / (1 + pi ** (w // 2) * s) ** 2
        w = (u - 1).valuation(p)
    if w > 2 * e:
        return Infinity
    c = kf((u - 1) / 4)
    X = PolynomialRing(kf, "X").gen()
    if len((X**2 + X - c).roots()) > 0:
        return Infinity
    return v + w


def is_local_square(a, p):
    return quadratic_defect(a, p) == Infinity


def is_local_norm(E, a, p):
    r"""
    Whether the element ``a`` of the base field of the quadratic extension
    ``E`` is a norm from the completion of ``E`` at ``p``.

    EXAMPLES::

        sage: from algnt.norms import is_local_norm
        sage: K.<a> = NumberField(x - 1)
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 + 1)
        sage: is_local_norm(E, K(2), K.ideal(2)), is_local_norm(E, K(3), K.ideal(2))
        (True, False)
        sage: is_local_norm(E, K(3), K.ideal(3)), is_local_norm(E, K(3), K.ideal(5))
        (False, True)
    """
    K = E.base_field()
    a = K(a)
    if a == 0:
        raise ValueError("the element must be nonzero")
    D = relative_discriminant_element(E)
    return K.hilbert_symbol(a, D, p) == 1


def _discriminant_valuation(E, p):
    return E.relative_discriminant().valuation(p)


def normic_defect(E, a, p):
    r"""
    Infinity if ``a`` is a local norm from ``E`` at ``p``, and
    `v_p(a) + v_p(d_{E/K}) - 1` otherwise.

    EXAMPLES::

        sage: from algnt.norms import normic_defect
        sage: K.<a> = NumberField(x - 1)
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 - 2)
        sage: normic_defect(E, K(5), K.ideal(2)), normic_defect(E, K(7), K.ideal(2))
        (2, +Infinity)
    """
    K = E.base_field()
    a = K(a)
    if a == 0 or is_local_norm(E, a, p):
        return Infinity
    return a.valuation(p) + _discriminant_valuation(E, p) - 1


def non_norm_representative(E, p):
    r"""
    An element of the base field that is not a local norm from ``E`` at
    ``p``: a unit `u` with `v_p(u - 1)` equal to its normic defect if ``p``
    ramifies in ``E``, a uniformiser if ``p`` is inert.

    EXAMPLES::

        sage: from algnt.norms import non_norm_representative, is_local_norm, normic_defect
        sage: K.<a> = NumberField(x - 1)
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 - 2)
        sage: p = K.ideal(2)
        sage: u = non_norm_representative(E, p)
        sage: u.parent() is K, is_local_norm(E, u, p)
        (True, False)
        sage: (u - 1).valuation(p) == normic_defect(E, u, p)
        True
        sage: non_norm_representative(E, K.ideal(7))
        Traceback (most recent call last):
        ...
        ValueError: the prime splits in the extension
    """
    K = E.base_field()
    if len(primes_above(E, p)) == 2:
        raise ValueError("the prime splits in the extension")
    d = _discriminant_valuation(E, p)
    if d == 0:
        return K(K.uniformizer(p))
    pi = K.uniformizer(p)
    kf = K.residue_field(p)
    delta = d - 1
    for c in kf:
        if c == 0:
            continue
        u = 1 + K(kf.lift(c)) * pi**delta
        if u.valuation(p) != 0 or (u - 1).valuation(p) != delta:
            continue
        if is_local_norm(E, u, p):
            continue
        return u
    raise RuntimeError("no unit non-norm found at %s" % p)
