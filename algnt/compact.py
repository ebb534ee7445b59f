r"""
Compact presentations of factored elements.

Any nonzero `a` in a number field `K` can be written as a product
`\prod b_i^{n^i}` with small `b_i` (Biasse-Fieker). Such a presentation is
computed without ever evaluating `a`, which makes it possible to work with
units and `S`-units whose coefficients would not fit in memory.
"""
from sage.arith.misc import crt, next_prime
from sage.matrix.all import Matrix, block_matrix, identity_matrix
from sage.misc.misc_c import prod
from sage.misc.verbose import verbose
from sage.rings.all import GF, QQ, ZZ, RealField, RealIntervalField
from sage.rings.polynomial.polynomial_ring_constructor import PolynomialRing

from .facelem import FactoredElement, FactoredElements, _embedded_roots
from .util import read_parameters


def _as_factored(a):
    if isinstance(a, FactoredElement):
        return a
    return FactoredElements(a.parent())(a)


def _tdiv(a, b):
    q = abs(a) // b
    return q if a >= 0 else -q


def _digit(e, nk, n):
    q = _tdiv(e, nk)
    return q - n * _tdiv(q, n)


def coprime_base(ideals):
    r"""
    Return pairwise coprime integral ideals such that every ideal in
    ``ideals`` is a product of them.

    EXAMPLES::

        sage: from algnt.compact import coprime_base
        sage: K.<a> = QuadraticField(-5)
        sage: P = K.ideal(2, a + 1); Q = K.ideal(3, a + 1)
        sage: B = coprime_base([P^2 * Q, Q^3, K.ideal(7)])
        sage: sorted(I.norm() for I in B)
        [3, 4, 49]
    """
    base = []
    for I in ideals:
        stack = [I]
        while stack:
            I = stack.pop()
            if I.absolute_norm() == 1:
                continue
            for J in base:
                if I == J:
                    break
                G = I + J
                if G.absolute_norm() != 1:
                    base.remove(J)
                    stack.extend([G, I * G**-1, J * G**-1])
                    break
            else:
                base.append(I)
    return base


def _multiplicity(X, c):
    k = 0
    cinv = c**-1
    while (X * cinv).is_integral():
        X = X * cinv
        k += 1
    return k


def factor_coprime(a):
    r"""
    Factor the principal ideal of the factored element ``a`` over a coprime
    base, without factoring any norm.

    EXAMPLES::

        sage: from algnt.facelem import FactoredElements
        sage: from algnt.compact import factor_coprime
        sage: K.<a> = QuadraticField(-5)
        sage: FK = FactoredElements(K)
        sage: x = FK([(a + 1, 3), (6, -1)])
        sage: D = factor_coprime(x)
        sage: prod(I^e for I, e in D.items()) == K.ideal(x.evaluate())
        True
    """
    a = _as_factored(a)
    K = a.parent().base()
    pieces = []
    for b, e in a:
        J, d = K.ideal(b).integral_split()
        pieces.append((J, K.ideal(d), e))
    base = coprime_base(sum(([J, D] for J, D, _ in pieces), []))
    ans = {}
    for c in base:
        v = sum(e * (_multiplicity(J, c) - _multiplicity(D, c)) for J, D, e in pieces)
        if v != 0:
            ans[c] = v
    return ans


def short_element(I, weights=None, prec=128):
    r"""
    Return a nonzero element of the fractional ideal ``I`` which is short
    with respect to the Minkowski embedding, each coordinate scaled by
    ``2^w`` for the corresponding entry ``w`` of ``weights``.

    ``weights`` has one entry per real embedding and two (usually equal)
    entries per pair of complex embeddings.

    EXAMPLES::

        sage: from algnt.compact import short_element
        sage: K.<a> = QuadraticField(7)
        sage: I = K.ideal(1000 + 378*a)
        sage: b = short_element(I)
        sage: b in I and b != 0
        True
        sage: abs(b.norm()) <= 5 * I.norm()
        True
    """
    K = I.number_field()
    n = K.absolute_degree()
    r1, r2 = K.signature()
    if weights is None:
        weights = [0] * n
    if len(weights) != n:
        raise ValueError("there must be one weight per embedding")
    real_roots, complex_roots = _embedded_roots(K, prec)
    RF = RealField(prec)
    B = I.basis()
    s = ZZ(prec // 4)
    rows = []
    for b in B:
        f = b.polynomial()
        row = []
        for i, z in enumerate(real_roots):
            row.append(RF(2) ** (weights[i] + s) * f(z.center()))
        for j, z in enumerate(complex_roots):
            w = f(z.center())
            row.append(RF(2) ** (weights[r1 + 2 * j] + s) * w.real())
            row.append(RF(2) ** (weights[r1 + 2 * j + 1] + s) * w.imag())
        rows.append([x.round() for x in row])
    M = Matrix(ZZ, rows)
    L = block_matrix(ZZ, [[identity_matrix(ZZ, n), M]], subdivide=False).LLL()
    for row in L.rows():
        c = row[:n]
        if any(ci != 0 for ci in c):
            return sum(ci * bi for ci, bi in zip(c, B))
    raise RuntimeError("LLL returned no nonzero vector")


def reduce_ideal(I, prec=128):
    r"""
    Return ``(J, alpha)`` with ``I = alpha J`` and ``J`` integral of small
    norm.

    EXAMPLES::

        sage: from algnt.compact import reduce_ideal
        sage: K.<a> = QuadraticField(-23)
        sage: P = K.primes_above(2)[0]
        sage: J, alpha = reduce_ideal(P^15)
        sage: J.is_integral() and alpha * J == P^15
        True
        sage: J.norm() < 100
        True
    """
    b = short_element(I**-1, prec=prec)
    return b * I, ~b


def _power_reduced(P, e, prec):
    FK = FactoredElements(P.number_field())
    if e < 0:
        P = P**-1
        e = -e
    R = P.number_field().ideal(1)
    coeff = FK.one()
    base = P
    base_coeff = FK.one()
    while e:
        if e & 1:
            R, g = reduce_ideal(R * base, prec)
            coeff = coeff * base_coeff * FK(g)
        e >>= 1
        if e:
            base, g = reduce_ideal(base * base, prec)
            base_coeff = base_coeff**2 * FK(g)
    return R, coeff


def reduce_factored_ideal(fac, prec=128):
    r"""
    Return ``(A, alpha)`` with ``prod(P^e) = alpha * A``, ``A`` integral and
    small and ``alpha`` a factored element.

    EXAMPLES::

        sage: from algnt.compact import reduce_factored_ideal
        sage: K.<a> = NumberField(x^3 - x - 1)
        sage: P = K.primes_above(5)[0]; Q = K.primes_above(7)[0]
        sage: A, alpha = reduce_factored_ideal({P: 20, Q: -13})
        sage: A.is_integral() and alpha.evaluate() * A == P^20 * Q^-13
        True
    """
    K = next(iter(fac)).number_field() if fac else None
    if K is None:
        raise ValueError("empty product")
    FK = FactoredElements(K)
    A = K.ideal(1)
    alpha = FK.one()
    for P, e in fac.items():
        if e == 0:
            continue
        Q, beta = _power_reduced(P, ZZ(e), prec)
        A, gamma = reduce_ideal(A * Q, prec)
        alpha = alpha * beta * FK(gamma)
    return A, alpha


def compact_presentation(
    a, n=2, decom=None, arb_prec=None, short_prec=None, start_prime=None
):
    r"""
    Return a compact presentation of the factored element ``a``.

    The result is a factored element with the same value as ``a`` whose
    bases are small and whose exponents are, up to sign, powers of ``n``
    (equal bases coming from different steps are merged).

    INPUT:

    - ``a`` -- a factored element (or an element of an absolute number field)

    - ``n`` -- an integer at least 2

    - ``decom`` -- (optional) a dictionary ``{ideal: exponent}`` with
      pairwise coprime ideals whose product is the ideal of ``a``

    - ``arb_prec``, ``short_prec`` -- starting precisions for the interval
      logarithms and the lattice reductions. Defaults are read from the
      ``[CompactPresentation]`` section of ``config.ini``, if present.

    EXAMPLES::

        sage: from algnt.facelem import FactoredElements
        sage: from algnt.compact import compact_presentation
        sage: K.<a> = QuadraticField(7)
        sage: FK = FactoredElements(K)
        sage: z = FK(8 + 3*a)^(2^12) * FK(a + 5)^3
        sage: c = compact_presentation(z, 2)
        sage: c.evaluate() == z.evaluate()
        True

    A cubic field with a complex place::

        sage: K.<a> = NumberField(x^3 - 2)
        sage: FK = FactoredElements(K)
        sage: y = FK(a - 1)^300 * FK(a^2 + 1)^-2
        sage: compact_presentation(y, 3).evaluate() == y.evaluate()
        True
    """
    a = _as_factored(a)
    FK = a.parent()
    K = FK.base()
    n = ZZ(n)
    if n < 2:
        raise ValueError("n must be at least 2")
    params = read_parameters(
        "CompactPresentation",
        {"arb_prec": 100, "short_prec": 128, "start_prime": 2**20},
        arb_prec=arb_prec,
        short_prec=short_prec,
        start_prime=start_prime,
    )
    arb_prec = params.arb_prec
    short_prec = params.short_prec
    if decom is None:
        decom = factor_coprime(a)
    de = {P: ZZ(e) for P, e in decom.items() if e != 0}
    m = max([e.abs() for e in de.values()] + [ZZ(1)])
    k = 0
    while n ** (k + 1) <= m:
        k += 1

    # Step 1: make the ideal of a * be small, digit by digit
    A = K.ideal(1)
    be = FK.one()
    for j in range(k, -1, -1):
        nj = n**j
        B = {P: _digit(e, nj, n) for P, e in de.items()}
        B[A] = B.get(A, 0) + n
        A, alpha = reduce_factored_ideal(B, short_prec)
        be = be * alpha ** (-nj)
        verbose("step 1, k = %s, norm of A = %s" % (j, A.norm()), level=2)

    # Step 2: make the logarithmic embedding of a * be small
    r1, r2 = K.signature()
    de = {P: ZZ(e) for P, e in A.factor()}
    v = (a * be).conjugates_log(arb_prec, normalise=True)
    vmax = max([x.abs().upper() for x in v] + [1])
    k = 0
    while n**k < vmax:
        k += 1
    while k >= 1:
        verbose("k now: %s" % k, level=1)
        nk = n**k
        D = {P: e // nk for P, e in de.items() if e >= nk}
        I = prod((P**e for P, e in D.items()), K.ideal(1))
        while True:
            vv = [x / nk for x in v]
            if all(x.absolute_diameter() < 2**-5 for x in vv):
                break
            arb_prec *= 2
            if arb_prec > 2**16:
                raise RuntimeError("precision too large in compact_presentation")
            verbose("increasing precision to %s" % arb_prec, level=2)
            v = (a * be).conjugates_log(arb_prec, normalise=True)
        log2 = RealIntervalField(arb_prec)(2).log().center()
        weights = []
        for i, x in enumerate(vv):
            if i < r1:
                weights.append(ZZ((x.center() / log2).round()))
            else:
                w = ZZ((x.center() / log2 / 2).round())
                weights.extend([w, w])
        if abs(sum(weights)) > K.absolute_degree():
            verbose("unbalanced weights %s" % weights, level=2)
        b = short_element(I**-1, weights, short_prec)
        vals = {P: b.valuation(P) for P in de}
        rest = K.ideal(b) * prod((P ** (-e) for P, e in vals.items()), K.ideal(1))
        for P, e in vals.items():
            de[P] += nk * e
        for P, e in rest.factor():
            de[P] = de.get(P, 0) + nk * e
        de = {P: e for P, e in de.items() if e != 0}
        fb = FK(b)
        v = [x + nk * y for x, y in zip(v, fb.conjugates_log(arb_prec, normalise=True))]
        be = be * fb**nk
        k -= 1

    A = prod((P**e for P, e in de.items()), K.ideal(1))
    b = evaluate_mod(a * be, A, start_prime=params.start_prime)
    return ~be * FK(b)


def evaluate_mod(a, B, start_prime=2**20, max_primes=10000):
    r"""
    Evaluate the factored element ``a``, knowing that its principal ideal
    is the fractional ideal ``B``.

    The coefficients of ``d a`` in the power basis are integers bounded in
    terms of the size of the element, where ``d`` is the denominator of
    ``B`` times the index of the equation order. They are recovered by CRT
    from the images modulo unramified primes.

    EXAMPLES::

        sage: from algnt.facelem import FactoredElements
        sage: from algnt.compact import evaluate_mod
        sage: K.<a> = NumberField(x^3 - 3*x + 1)
        sage: FK = FactoredElements(K)
        sage: y = FK([(a + 2, 3), (a - 5, 2), (2*a + 1, -1)])
        sage: evaluate_mod(y, K.ideal(y.evaluate())) == y.evaluate()
        True
    """
    a = _as_factored(a)
    K = a.parent().base()
    f = K.polynomial()
    if not f.is_monic() or any(c not in ZZ for c in f.list()):
        raise NotImplementedError("the defining polynomial must be monic and integral")
    fZ = f.change_ring(ZZ)
    deg = f.degree()
    idx = ZZ((f.discriminant() / K.discriminant()).sqrt())
    _, d = B.integral_split()
    D = d * idx
    disc = fZ.discriminant()
    support = a.support()
    p = ZZ(start_prime)
    res = None
    last = None
    modulus = ZZ(1)
    for _ in range(max_primes):
        p = next_prime(p)
        if disc % p == 0:
            continue
        if any(
            b.denominator() % p == 0 or QQ(b.norm()).numerator() % p == 0
            for b in support
        ):
            continue
        F = GF(p)
        R = PolynomialRing(F, "t")
        Rq = R.quotient(fZ.change_ring(F))
        val = Rq(D)
        for b, e in a:
            bb = Rq(R([F(c) for c in b.polynomial().list()]))
            if e < 0:
                bb = ~bb
            val *= bb ** abs(e)
        coeffs = [ZZ(c) for c in val.lift().list()]
        coeffs += [ZZ(0)] * (deg - len(coeffs))
        if res is None:
            res = coeffs
        else:
            res = [crt(r, c, modulus, p) for r, c in zip(res, coeffs)]
        modulus *= p
        sym = [c - modulus if c > modulus // 2 else c for c in res]
        if sym == last:
            x = K(sym) / D
            if K.ideal(x) == B:
                return x
        last = sym
    raise RuntimeError("evaluate_mod did not stabilise")


def is_power(a, n, decom=None):
    r"""
    Decide whether the factored element ``a`` is an ``n``-th power.

    OUTPUT: ``(True, r)`` with ``r`` a factored element such that
    ``r^n == a`` after evaluation, or ``(False, None)``.

    EXAMPLES::

        sage: from algnt.facelem import FactoredElements
        sage: from algnt.compact import is_power
        sage: K.<a> = QuadraticField(7)
        sage: FK = FactoredElements(K)
        sage: x = FK(8 + 3*a)^(2^10) * FK(a + 5)^4
        sage: fl, r = is_power(x, 2)
        sage: fl, r.evaluate()^2 == x.evaluate()
        (True, True)
        sage: is_power(FK(a + 5), 2)
        (False, None)
        sage: fl, r = is_power(FK(a + 5), 1)
        sage: fl, r.evaluate()
        (True, a + 5)
    """
    a = _as_factored(a)
    FK = a.parent()
    K = FK.base()
    n = ZZ(n)
    if n == 1:
        return True, a
    c = compact_presentation(a, n, decom=decom)
    root = FK.one()
    rest = K(1)
    for b, e in c:
        q, r = divmod(ZZ(e), n)
        root = root * FK(b) ** q
        rest *= b**r
    if not rest.is_nth_power(n):
        return False, None
    return True, root * FK(rest.nth_root(n))
