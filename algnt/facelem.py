from collections import defaultdict

from sage.misc.cachefunc import cached_method
from sage.misc.misc_c import prod
from sage.rings.all import QQ, ZZ, ComplexIntervalField, RealIntervalField
from sage.structure.element import MultiplicativeGroupElement
from sage.structure.factorization import Factorization
from sage.structure.parent import Parent
from sage.structure.richcmp import op_EQ, op_NE
from sage.structure.unique_representation import CachedRepresentation


class FactoredElement(MultiplicativeGroupElement):
    def __init__(self, parent, data):
        r"""
        A formal product of powers of nonzero elements of a number field.

        The product is never evaluated unless asked for, so exponents can be
        huge.

        TESTS::

            sage: from algnt.facelem import FactoredElements
            sage: K.<a> = QuadraticField(5)
            sage: FK = FactoredElements(K)
            sage: x = FK(a + 2)^1000 * FK(a)^-3
            sage: x
            Factored element with 2 bases
            sage: x.support() == [a + 2, a] or x.support() == [a, a + 2]
            True
            sage: (x / x).evaluate()
            1
            sage: (FK([(a, 4), (3, -1)]) * FK(a)^-4).evaluate()
            1/3
        """
        MultiplicativeGroupElement.__init__(self, parent)
        K = parent.base()
        self._data = defaultdict(ZZ)
        if isinstance(data, FactoredElement):
            self._data.update(data._data)
        elif isinstance(data, dict):
            for b, e in data.items():
                self._add_base(K(b), ZZ(e))
        elif isinstance(data, (list, tuple)):
            for b, e in data:
                self._add_base(K(b), ZZ(e))
        else:
            self._add_base(K(data), ZZ(1))

    def _add_base(self, b, e):
        if b == 0:
            raise ValueError("bases must be nonzero")
        if e == 0 or b == 1:
            return
        self._data[b] += e
        if self._data[b] == 0:
            del self._data[b]

    def __iter__(self):
        return iter(list(self._data.items()))

    def __len__(self):
        return len(self._data)

    def __hash__(self):
        return hash(tuple(sorted((str(b), e) for b, e in self._data.items())))

    def _repr_(self):
        return "Factored element with %s bases" % len(self._data)

    def value(self):
        if len(self._data) == 0:
            return "1"
        return " * ".join("(%s)^%s" % (b, e) for b, e in self._data.items())

    def support(self):
        return list(self._data.keys())

    def exponents(self):
        return list(self._data.values())

    def _richcmp_(self, right, op):
        if op == op_EQ:
            return dict(self._data) == dict(right._data)
        if op == op_NE:
            return dict(self._data) != dict(right._data)
        return NotImplemented

    def _mul_(self, right):
        newdict = defaultdict(ZZ)
        newdict.update(self._data)
        for b, e in right._data.items():
            newdict[b] += e
            if newdict[b] == 0:
                del newdict[b]
        return self.__class__(self.parent(), dict(newdict))

    def _div_(self, right):
        return self * ~right

    def __invert__(self):
        return self.__class__(self.parent(), {b: -e for b, e in self._data.items()})

    def _pow_int(self, n):
        n = ZZ(n)
        if n == 0:
            return self.parent().one()
        return self.__class__(self.parent(), {b: n * e for b, e in self._data.items()})

    def __pow__(self, n, modulus=None):
        return self._pow_int(n)

    def is_one(self):
        return len(self._data) == 0

    def simplify(self):
        r"""
        Merge bases that differ by a sign and remove trivial factors.

        EXAMPLES::

            sage: from algnt.facelem import FactoredElements
            sage: K.<a> = QuadraticField(2)
            sage: FK = FactoredElements(K)
            sage: y = FK([(a, 2), (-a, 3)]).simplify()
            sage: len(y), y.evaluate() == -a^5
            (1, True)
        """
        K = self.parent().base()
        newdict = defaultdict(ZZ)
        sign = ZZ(0)
        for b, e in self._data.items():
            if -b in self._data and str(-b) < str(b):
                b = -b
                sign += e
            newdict[b] += e
        ans = {b: e for b, e in newdict.items() if e != 0}
        if sign % 2 == 1:
            ans[K(-1)] = (ans.get(K(-1), 0) + 1) % 2
        return self.__class__(self.parent(), ans)

    def evaluate(self):
        r"""
        Multiply out the product.
        """
        K = self.parent().base()
        return prod((b**e for b, e in self._data.items()), K(1))

    def factored_norm(self):
        r"""
        The absolute norm, as a factorization into rational primes.

        EXAMPLES::

            sage: from algnt.facelem import FactoredElements
            sage: K.<a> = NumberField(x^2 - 3)
            sage: FK = FactoredElements(K)
            sage: FK([(a + 1, 10**20), (6, -1)]).factored_norm()
            2^99999999999999999998 * 3^-2
        """
        exps = defaultdict(ZZ)
        sign = ZZ(1)
        for b, e in self._data.items():
            nb = QQ(b.absolute_norm())
            if nb < 0 and e % 2 == 1:
                sign = -sign
            for p, f in nb.abs().factor():
                exps[p] += e * f
        return Factorization(
            sorted([(p, f) for p, f in exps.items() if f != 0]), unit=sign
        )

    def conjugates_log(self, prec=100, normalise=False):
        r"""
        Interval enclosures of ``log|s(a)|`` for the real embeddings ``s``
        and of ``2 log|s(a)|`` for one embedding of each complex pair.

        With ``normalise=True`` the share ``log|N(a)|/n`` is subtracted from
        every entry (twice for complex ones), so that the entries add up to
        zero.

        EXAMPLES::

            sage: from algnt.facelem import FactoredElements
            sage: K.<a> = NumberField(x^3 - 2)
            sage: FK = FactoredElements(K)
            sage: v = (FK(a)^5).conjugates_log(prec=60)
            sage: len(v)
            2
            sage: abs(v[0].center() - 5 * RR(2).log() / 3) < 1e-10
            True
            sage: w = FK([(a + 1, 7), (a, -2)]).conjugates_log(normalise=True)
            sage: abs(sum(w).center()) < 1e-10
            True
        """
        K = self.parent().base()
        r1, r2 = K.signature()
        real_roots, complex_roots = _embedded_roots(K, prec)
        RIF = RealIntervalField(prec)
        ans = [RIF(0) for _ in range(r1 + r2)]
        lognorm = RIF(0)
        for b, e in self._data.items():
            f = b.polynomial()
            for i, z in enumerate(real_roots):
                ans[i] += e * abs(f(z)).log()
            for j, z in enumerate(complex_roots):
                ans[r1 + j] += 2 * e * RIF(abs(f(z))).log()
            if normalise:
                lognorm += e * RIF(QQ(b.absolute_norm()).abs()).log()
        if normalise:
            n = K.absolute_degree()
            ans = [
                v - (1 if i < r1 else 2) * lognorm / n for i, v in enumerate(ans)
            ]
        return ans


def _embedded_roots(K, prec):
    r"""
    Real roots and upper half plane roots of the defining polynomial of the
    absolute field ``K``, as intervals.
    """
    f = K.polynomial()
    r1, r2 = K.signature()
    real_roots = f.roots(RealIntervalField(prec), multiplicities=False)
    complex_roots = [
        z
        for z in f.roots(ComplexIntervalField(prec), multiplicities=False)
        if z.imag() > 0
    ]
    if len(real_roots) != r1 or len(complex_roots) != r2:
        raise RuntimeError("could not isolate the roots of %s" % f)
    return real_roots, complex_roots


class FactoredElements(Parent, CachedRepresentation):
    r"""
    The multiplicative group of factored elements of a number field.

    EXAMPLES::

        sage: from algnt.facelem import FactoredElements
        sage: K.<a> = QuadraticField(-1)
        sage: FactoredElements(K)
        Group of factored elements over Number Field in a with defining polynomial x^2 + 1 with a = 1*I
        sage: FactoredElements(K) is FactoredElements(K)
        True
    """
    Element = FactoredElement

    def __init__(self, base):
        if not base.is_absolute():
            raise NotImplementedError("only absolute number fields are supported")
        self._base = base
        Parent.__init__(self)

    def _an_element_(self):
        return self.element_class(self, self._base.gen())

    def _element_constructor_(self, data):
        return self.element_class(self, data)

    def _coerce_map_from_(self, S):
        if self._base.has_coerce_map_from(S):
            return True
        return False

    @cached_method
    def one(self):
        return self.element_class(self, {})

    def base(self):
        return self._base

    def _repr_(self):
        return "Group of factored elements over " + repr(self._base)
