"""
Hermitian fermion terms.

A Hermitian fermion term is a normal-ordered string of ladder operators
together with its Hermitian conjugate:

    (p, q)        ↔  a†_p a_q           + h.c.
    (p, q, r, s)  ↔  a†_p a†_q a_r a_s  + h.c.

The first half of the index sequence are creation operators, the second
half annihilation operators. Terms are stored in a canonical order so that
equal operators compare and hash equal:

    - creation indices ascending, annihilation indices descending
    - of the sequence and its conjugate (the reversed sequence), the
      lexicographically smaller one is kept

The constructor applies only sign-preserving reorderings; a sequence that
needs an odd number of swaps to reach normal order is rejected so that a
coefficient is never silently attached to the negated operator. Use
HermitianFermionTerm.with_sign() to normal order any sequence and get the
sign of the reordering back:

    >>> HermitianFermionTerm.with_sign([1, 0, 3, 2])
    (HermitianFermionTerm((0, 1, 3, 2)), -1)
"""

from __future__ import annotations

from enum import Enum
from numbers import Integral
from typing import Iterable, Tuple


class TermConstructionError(ValueError):
    """Raised for an index sequence that is not a valid Hermitian fermion term."""


class FermionTermType(Enum):
    """Structural categories of Hermitian fermion terms."""
    IDENTITY = "identity"
    PP = "PP"        # number operator a†_p a_p
    PQ = "PQ"        # hopping a†_p a_q + h.c.
    PQQP = "PQQP"    # density-density a†_p a†_q a_q a_p
    PQQR = "PQQR"    # one shared index
    PQRS = "PQRS"    # four distinct indices


class HermitianFermionTerm:
    """
    Canonical Hermitian fermion term.

    Parameters
    ----------
    indices : iterable of int
        Spin-orbital indices: empty (identity), 2 (one-body) or 4
        (two-body). The first half are creation operators.

    Raises
    ------
    TermConstructionError
        For unsupported lengths, negative or non-integer indices, a
        repeated creation or annihilation index in a two-body term, or an
        ordering that can only be normalized by flipping the sign.

    Example:
        >>> HermitianFermionTerm([2, 0])
        HermitianFermionTerm((0, 2))
        >>> HermitianFermionTerm([1, 0, 2, 3])
        HermitianFermionTerm((0, 1, 3, 2))
    """

    __slots__ = ("_sequence",)

    def __init__(self, indices: Iterable[int]):
        indices = tuple(indices)
        sequence, sign = _normalize(indices)
        if sign < 0:
            raise TermConstructionError(
                f"Term {indices} is not normal ordered: reordering it to "
                f"{sequence} flips the operator sign"
            )
        conjugate = sequence[::-1]
        self._sequence = min(sequence, conjugate)

    @classmethod
    def with_sign(cls, indices: Iterable[int]) -> Tuple["HermitianFermionTerm", int]:
        """
        Normal order any index sequence.

        Returns the canonical term and the sign (+1 or -1) picked up by
        anticommuting the operators into normal order.
        """
        sequence, sign = _normalize(indices)
        return cls(sequence), sign

    @property
    def sequence(self) -> Tuple[int, ...]:
        """Canonical index sequence."""
        return self._sequence

    @property
    def n_operators(self) -> int:
        return len(self._sequence)

    @property
    def is_self_adjoint(self) -> bool:
        """True if the operator string equals its own Hermitian conjugate."""
        return self._sequence == self._sequence[::-1]

    @property
    def term_type(self) -> FermionTermType:
        seq = self._sequence
        if not seq:
            return FermionTermType.IDENTITY
        n_distinct = len(set(seq))
        if len(seq) == 2:
            return FermionTermType.PP if n_distinct == 1 else FermionTermType.PQ
        return {
            2: FermionTermType.PQQP,
            3: FermionTermType.PQQR,
            4: FermionTermType.PQRS,
        }[n_distinct]

    @property
    def max_index(self) -> int:
        """Largest spin-orbital index, -1 for the identity."""
        return max(self._sequence, default=-1)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HermitianFermionTerm):
            return NotImplemented
        return self._sequence == other._sequence

    def __lt__(self, other: "HermitianFermionTerm") -> bool:
        if not isinstance(other, HermitianFermionTerm):
            return NotImplemented
        return (len(self._sequence), self._sequence) < (len(other._sequence), other._sequence)

    def __hash__(self) -> int:
        return hash(self._sequence)

    def __iter__(self):
        return iter(self._sequence)

    def __len__(self) -> int:
        return len(self._sequence)

    def __repr__(self) -> str:
        return f"HermitianFermionTerm({self._sequence})"

    def __str__(self) -> str:
        if not self._sequence:
            return "I"
        half = len(self._sequence) // 2
        ops = [f"a†{i}" for i in self._sequence[:half]]
        ops += [f"a{i}" for i in self._sequence[half:]]
        suffix = "" if self.is_self_adjoint else " + h.c."
        return " ".join(ops) + suffix


def _normalize(indices: Iterable[int]) -> Tuple[Tuple[int, ...], int]:
    """Validate a sequence and normal order it; returns (sequence, sign)."""
    sequence = tuple(indices)
    for idx in sequence:
        if isinstance(idx, bool) or not isinstance(idx, Integral):
            raise TermConstructionError(
                f"Term indices must be integers, got {idx!r} in {sequence}"
            )
        if idx < 0:
            raise TermConstructionError(
                f"Term indices must be non-negative, got {sequence}"
            )
    sequence = tuple(int(i) for i in sequence)

    if len(sequence) not in (0, 2, 4):
        raise TermConstructionError(
            f"Hermitian fermion term needs 0, 2 or 4 indices, "
            f"got {len(sequence)}: {sequence}"
        )
    if len(sequence) == 4:
        return _normal_order_two_body(sequence)
    return sequence, 1


def _normal_order_two_body(sequence: Tuple[int, ...]) -> Tuple[Tuple[int, ...], int]:
    """Sort creation ascending and annihilation descending, tracking the sign."""
    p, q, r, s = sequence
    if p == q or r == s:
        raise TermConstructionError(
            f"Term {sequence} repeats a creation or annihilation index "
            "and vanishes identically"
        )
    sign = 1
    if p > q:
        p, q = q, p
        sign = -sign
    if r < s:
        r, s = s, r
        sign = -sign
    return (p, q, r, s), sign
