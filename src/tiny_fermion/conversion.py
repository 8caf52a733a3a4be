"""
Orbital integrals → Hermitian fermion terms.

Each orbital integral stands for every index permutation in its symmetry
class, and each permutation for every allowed spin assignment. Many of the
resulting spin-orbital strings are the same operator (up to sign) or each
other's Hermitian conjugates. The classifiers below keep exactly one
canonical string per operator and fold the multiplicity into its
coefficient.

Pipeline per integral:
    OrbitalIntegral → symmetry partners → spin-orbital tuples → terms

One-body rule for a spin-orbital pair (p, q):
    p == q  →  (p, q)  ×1
    p <  q  →  (p, q)  ×2     (stands in for the conjugate (q, p))
    p >  q  →  nothing

Two-body rule: see classify_two_body() and _TWO_BODY_EMITTERS.

Example:
    >>> from tiny_fermion import OrbitalIntegral, to_hermitian_fermion_terms
    >>> to_hermitian_fermion_terms(OrbitalIntegral((0, 1), 1.5))
    [(HermitianFermionTerm((0, 2)), 3.0), (HermitianFermionTerm((1, 3)), 3.0)]
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .hamiltonian import FermionHamiltonian, OrbitalIntegralHamiltonian
from .integrals import OrbitalIntegral, UnsupportedArityError
from .spin_orbital import IndexConvention, SpinOrbitalExpander, make_expander
from .terms import HermitianFermionTerm

logger = logging.getLogger(__name__)

FermionTermList = List[Tuple[HermitianFermionTerm, float]]
ConventionLike = Union[IndexConvention, SpinOrbitalExpander]


# ─── One-body ───────────────────────────────────────────────────────────

def one_body_terms(spin_orbital_pairs: Iterable[Tuple[int, int]],
                   coefficient: float) -> FermionTermList:
    """Canonical terms for the spin-orbital pairs of one one-body integral."""
    terms = []
    for p, q in spin_orbital_pairs:
        if p == q:
            terms.append((HermitianFermionTerm((p, q)), coefficient))
        elif p < q:
            terms.append((HermitianFermionTerm((p, q)), 2.0 * coefficient))
    return terms


# ─── Two-body ───────────────────────────────────────────────────────────

class TwoBodyCase(Enum):
    """Index patterns of a spin-orbital quadruple (p, q, r, s)."""
    PQQP = "PQQP"
    PQPQ = "PQPQ"
    PQQR = "PQQR"
    PQRQ = "PQRQ"
    PQRS = "PQRS"
    NONE = "NONE"


# Checked in order; the first match wins. The patterns are mutually exclusive.
_TWO_BODY_PREDICATES: List[Tuple[TwoBodyCase, Callable[[int, int, int, int], bool]]] = [
    (TwoBodyCase.PQQP,
     lambda p, q, r, s: p == s and q == r and p < q),
    (TwoBodyCase.PQPQ,
     lambda p, q, r, s: p == r and q == s and p < q),
    (TwoBodyCase.PQQR,
     lambda p, q, r, s: q == r and p < s and r != s and p != q),
    (TwoBodyCase.PQRQ,
     lambda p, q, r, s: q == s and p < r and r != s and p != s),
    (TwoBodyCase.PQRS,
     lambda p, q, r, s: (p < q and p < r and p < s
                         and q != r and q != s and r != s)),
]


def classify_two_body(p: int, q: int, r: int, s: int) -> TwoBodyCase:
    """
    Which canonical pattern the quadruple (p, q, r, s) falls into.

    NONE means the quadruple is a conjugate or exchange partner of one
    that does match, or the operator vanishes.
    """
    for case, predicate in _TWO_BODY_PREDICATES:
        if predicate(p, q, r, s):
            return case
    return TwoBodyCase.NONE


def _emit_pqqp(p, q, r, s):
    return (p, q, r, s), 1.0


def _emit_pqpq(p, q, r, s):
    return (p, q, s, r), -1.0


def _emit_pqqr(p, q, r, s):
    # [i;j;j;k] generates PQQR ~ RQQP ~ QPRQ ~ QRPQ
    if r < s:
        if p < q:
            return (p, q, s, r), -2.0
        return (q, p, s, r), 2.0
    if p < q:
        return (p, q, r, s), 2.0
    return (q, p, r, s), -2.0


def _emit_pqrq(p, q, r, s):
    # [i;j;k;j] generates PQRQ ~ QRQP ~ QPQR ~ RQPQ
    if p < q:
        if r > q:
            return (p, q, r, s), 2.0
        return (p, q, s, r), -2.0
    return (q, p, r, s), -2.0


def _emit_pqrs(p, q, r, s):
    # Four exchange/conjugate partners per class; p is the smallest index
    # in exactly one of them.
    if r < s:
        return (p, q, s, r), -2.0
    return (p, q, r, s), 2.0


_TWO_BODY_EMITTERS = {
    TwoBodyCase.PQQP: _emit_pqqp,
    TwoBodyCase.PQPQ: _emit_pqpq,
    TwoBodyCase.PQQR: _emit_pqqr,
    TwoBodyCase.PQRQ: _emit_pqrq,
    TwoBodyCase.PQRS: _emit_pqrs,
}


def canonical_two_body(p: int, q: int, r: int, s: int) -> Optional[Tuple[Tuple[int, ...], float]]:
    """
    Canonical index order and coefficient multiplier for a quadruple.

    Returns None for quadruples that emit nothing.
    """
    case = classify_two_body(p, q, r, s)
    if case is TwoBodyCase.NONE:
        return None
    return _TWO_BODY_EMITTERS[case](p, q, r, s)


def two_body_terms(spin_orbital_quadruples: Iterable[Tuple[int, int, int, int]],
                   coefficient: float) -> FermionTermList:
    """Canonical terms for the spin-orbital quadruples of one two-body integral."""
    terms = []
    for p, q, r, s in spin_orbital_quadruples:
        emitted = canonical_two_body(p, q, r, s)
        if emitted is None:
            continue
        sequence, multiplier = emitted
        terms.append((HermitianFermionTerm(sequence), multiplier * coefficient))
    return terms


# ─── Integral / Hamiltonian conversion ──────────────────────────────────

def to_hermitian_fermion_terms(integral: OrbitalIntegral,
                               index_convention: ConventionLike = IndexConvention.UP_DOWN,
                               n_orbitals: Optional[int] = None) -> FermionTermList:
    """
    All canonical fermion terms generated by one orbital integral.

    Parameters
    ----------
    integral : OrbitalIntegral
        One- or two-body integral.
    index_convention : IndexConvention or callable
        Spin-orbital numbering, or a function mapping spatial-orbital
        indices to spin-orbital index tuples.
    n_orbitals : int or None
        Number of spatial orbitals (needed by IndexConvention.HALF_UP).

    Returns
    -------
    list of (HermitianFermionTerm, float)

    Raises
    ------
    UnsupportedArityError
        If the integral is neither one- nor two-body.
    """
    expander = make_expander(index_convention, n_orbitals)
    return _convert_integral(integral, expander)


def _convert_integral(integral: OrbitalIntegral,
                      expander: SpinOrbitalExpander) -> FermionTermList:
    if integral.arity == 2:
        classify = one_body_terms
    elif integral.arity == 4:
        classify = two_body_terms
    else:
        raise UnsupportedArityError(integral.indices)

    spin_tuples = [
        spin_tuple
        for partner in integral.enumerate_orbital_symmetries()
        for spin_tuple in expander(partner.indices)
    ]
    terms = classify(spin_tuples, integral.coefficient)
    logger.debug("%s -> %d spin-orbital tuples, %d terms",
                 list(integral.indices), len(spin_tuples), len(terms))
    return terms


def to_fermion_hamiltonian(source: OrbitalIntegralHamiltonian,
                           index_convention: ConventionLike = IndexConvention.UP_DOWN,
                           n_orbitals: Optional[int] = None) -> FermionHamiltonian:
    """
    Expand an orbital integral Hamiltonian into a fermion Hamiltonian.

    Parameters
    ----------
    source : OrbitalIntegralHamiltonian
        Integrals grouped by TermType, plus ``energy_offset``.
    index_convention : IndexConvention or callable
        Spin-orbital numbering. Default: UP_DOWN (interleaved spins).
    n_orbitals : int or None
        Number of spatial orbitals for HALF_UP. Defaults to
        ``source.n_orbitals``.

    Returns
    -------
    FermionHamiltonian
        New container; the energy offset becomes the identity term.

    Raises
    ------
    UnsupportedArityError
        On the first integral that is neither one- nor two-body. No
        partial result is returned.
    """
    if n_orbitals is None and index_convention is IndexConvention.HALF_UP:
        n_orbitals = max(source.n_orbitals, 1)
    expander = make_expander(index_convention, n_orbitals)

    hamiltonian = FermionHamiltonian()
    if source.energy_offset != 0.0:
        hamiltonian.add_term(HermitianFermionTerm(()), source.energy_offset)

    n_integrals = 0
    for integral in source.integrals():
        hamiltonian.add_terms(_convert_integral(integral, expander))
        n_integrals += 1

    logger.info("Converted %d orbital integrals into %d fermion terms",
                n_integrals, hamiltonian.n_terms)
    return hamiltonian
