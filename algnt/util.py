import configparser
from functools import wraps
from itertools import product

from sage.misc.cachefunc import cached_function
from sage.misc.sage_eval import sage_eval
from sage.misc.verbose import get_verbose, set_verbose, verbose
from sage.rings.infinity import Infinity


class Bunch:
    def __init__(self, **kwds):
        self.__dict__.update(kwds)

    def update(self, **v):
        self.__dict__.update(**v)

    def get(self, name, default=None):
        try:
            return self.__dict__[name]
        except KeyError:
            return default


def config_section_map(config, section):
    dict1 = {}
    try:
        options = config.options(section)
    except configparser.NoSectionError:
        return dict1
    for option in options:
        try:
            dict1[option] = sage_eval(config.get(section, option))
        except NameError:
            verbose("could not parse option %s" % option)
            dict1[option] = None
    return dict1


def read_parameters(section, defaults=None, filename="config.ini", **kwargs):
    r"""
    Return a ``Bunch`` with the parameters for ``section``.

    Built-in ``defaults`` are overridden by the ``[General]`` section of
    ``filename``, which in turn is overridden by ``[section]``; keyword
    arguments that are not ``None`` win over everything.

    EXAMPLES::

        sage: from algnt.util import read_parameters
        sage: P = read_parameters("Nonexistent", {"prec": 53}, filename="/nonexistent.ini", prec=None)
        sage: P.prec
        53
        sage: read_parameters("Nonexistent", {"prec": 53}, filename="/nonexistent.ini", prec=100).prec
        100
    """
    param_dict = dict(defaults or {})
    config = configparser.ConfigParser()
    config.read(filename)
    param_dict.update(config_section_map(config, "General"))
    param_dict.update(config_section_map(config, section))
    param_dict.update({k: v for k, v in kwargs.items() if v is not None})
    return Bunch(**param_dict)


def muted(func):
    r"""
    Run ``func`` with verbosity turned off.
    """

    @wraps(func)
    def mute_func(*args, **kwargs):
        verb_lev = get_verbose()
        set_verbose(0)
        try:
            return func(*args, **kwargs)
        finally:
            set_verbose(verb_lev)

    return mute_func


@cached_function
def absolute_structure(F):
    r"""
    Return ``(Fabs, from_abs, to_abs)`` for a number field ``F``.

    For an absolute field the maps are the identity and ``Fabs`` is ``F``
    itself. Ideals of ``F`` are always handled as ideals of ``Fabs``.

    EXAMPLES::

        sage: from algnt.util import absolute_structure
        sage: K.<a> = QuadraticField(2)
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 + 1)
        sage: Eabs, from_abs, to_abs = absolute_structure(E)
        sage: Eabs.degree()
        4
        sage: from_abs(to_abs(a + b)) == a + b
        True
    """
    if F.is_absolute():
        return F, F.hom([F.gen()]), F.hom([F.gen()])
    Fabs = F.absolute_field(str(F.gen()) + "_abs")
    from_abs, to_abs = Fabs.structure()
    return Fabs, from_abs, to_abs


def absolute_vector(x):
    F = x.parent()
    _, _, to_abs = absolute_structure(F)
    return to_abs(x).vector()


def from_absolute_vector(F, v):
    Fabs, from_abs, _ = absolute_structure(F)
    return from_abs(Fabs(list(v)))


@cached_function
def integral_basis(F):
    r"""
    Z-basis of the maximal order of ``F``, as elements of ``F``.
    """
    Fabs, from_abs, _ = absolute_structure(F)
    return tuple(from_abs(Fabs(o)) for o in Fabs.maximal_order().basis())


def ideal_of(F, gens):
    r"""
    The fractional ideal of the absolute field of ``F`` generated by ``gens``.
    """
    Fabs, _, to_abs = absolute_structure(F)
    if not isinstance(gens, (list, tuple)):
        gens = [gens]
    return Fabs.ideal([to_abs(F(g)) for g in gens])


def element_valuation(x, P):
    if x == 0:
        return Infinity
    _, _, to_abs = absolute_structure(x.parent())
    return to_abs(x).valuation(P)


def base_coefficients(x):
    r"""
    Coefficients of ``x`` in a quadratic extension ``E/K`` with respect to
    the relative power basis ``1, E.gen()``.
    """
    E = x.parent()
    if E.is_absolute():
        return [x, E(0)]
    coeffs = list(x.list())
    return coeffs + [E.base_field()(0)] * (2 - len(coeffs))


def to_base(x):
    r"""
    Return ``x`` as an element of the base field, failing if ``x`` is not
    fixed by the involution.
    """
    E = x.parent()
    if E.is_absolute():
        return x
    a, b = base_coefficients(x)
    if b != 0:
        raise ValueError("%s is not in the base field" % x)
    return a


@cached_function
def relative_involution(E):
    r"""
    The non-trivial automorphism of a quadratic extension ``E/K``, or the
    identity if ``E`` is an absolute field.

    EXAMPLES::

        sage: from algnt.util import relative_involution
        sage: K.<a> = QuadraticField(3)
        sage: R.<t> = K[]
        sage: E.<b> = K.extension(t^2 - t + 1)
        sage: s = relative_involution(E)
        sage: s(b) == 1 - b
        True
        sage: s(s(a*b + 2)) == a*b + 2
        True
    """
    if E.is_absolute():
        return lambda x: x
    f = E.relative_polynomial()
    if f.degree() != 2:
        raise ValueError("the extension must be quadratic")
    if not f.is_monic():
        raise ValueError("the relative polynomial must be monic")
    c1 = f[1]
    gen = E.gen()

    def sigma(x):
        a, b = base_coefficients(E(x))
        return E(a) + E(b) * (-c1 - gen)

    return sigma


def relative_discriminant_element(E):
    r"""
    An element ``D`` of the base field with ``E = K(sqrt(D))``.
    """
    f = E.relative_polynomial()
    return f[1] ** 2 - 4 * f[0]


def local_generator(I, primes, bound=3):
    r"""
    Return an element ``x`` of the fractional ideal ``I`` (of an absolute
    field) with ``v_P(x) = v_P(I)`` for every prime ``P`` in ``primes``.

    EXAMPLES::

        sage: from algnt.util import local_generator
        sage: K.<a> = NumberField(x^2 + 5)
        sage: P = K.ideal(2, a + 1)
        sage: x = local_generator(P^3, [P])
        sage: x in P^3 and x.valuation(P) == 3
        True
    """
    target = [I.valuation(P) for P in primes]
    B = I.basis()
    for b in B:
        if [b.valuation(P) for P in primes] == target:
            return b
    for c in product(range(-bound, bound + 1), repeat=len(B)):
        if all(o == 0 for o in c):
            continue
        x = sum(ci * bi for ci, bi in zip(c, B))
        if [x.valuation(P) for P in primes] == target:
            return x
    raise RuntimeError("no local generator found, increase the bound")


def ideal_of_extension(E, q):
    r"""
    The extension of an ideal ``q`` of the base field to the absolute field
    of ``E``.
    """
    Eabs, _, to_abs = absolute_structure(E)
    return Eabs.ideal([to_abs(E(g)) for g in q.gens()])


def prime_below(E, P):
    r"""
    The prime of the base field of ``E`` below the prime ``P`` of the
    absolute field of ``E``.
    """
    if E.is_absolute():
        return P
    for q in E.base_field().primes_above(P.smallest_integer()):
        if ideal_of_extension(E, q).valuation(P) > 0:
            return q
    raise RuntimeError("no prime below %s" % P)


def primes_above(E, q):
    r"""
    The primes of the absolute field of ``E`` above the prime ``q`` of its
    base field (or ``[q]`` itself, when ``E`` is absolute).
    """
    if E.is_absolute():
        return [q]
    return [P for P, _ in ideal_of_extension(E, q).factor()]


def primes_dividing(K, elements, dyadic=True):
    r"""
    The primes of the absolute field ``K`` dividing any numerator or
    denominator of the given elements, together with the dyadic primes.
    """
    ans = set(P for P, _ in K.ideal(2).factor()) if dyadic else set()
    for x in elements:
        if x == 0:
            continue
        for P, _ in K.ideal(x).factor():
            ans.add(P)
    return sorted(ans, key=lambda P: (P.absolute_norm(), str(P.gens())))
