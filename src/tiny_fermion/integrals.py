"""
Orbital integrals and their index symmetries.

An orbital integral is a single entry of the one- or two-electron integral
tensor over spatial molecular orbitals:

    one-body:  h_{pq}       -> indices (p, q)
    two-body:  h_{ijkl}     -> indices (i, j, k, l)

For real orbitals every stored integral stands for a whole family of
tensor entries with the same value:

    h_{ij}   = h_{ji}
    h_{ijkl} = h_{lkji} = h_{jilk} = h_{klij}
             = h_{ikjl} = h_{ljki} = h_{kilj} = h_{jlik}

Example:
    >>> from tiny_fermion.integrals import OrbitalIntegral
    >>> OrbitalIntegral((0, 1), 0.25).enumerate_orbital_symmetries()
    [OrbitalIntegral(indices=(0, 1), coefficient=0.25),
     OrbitalIntegral(indices=(1, 0), coefficient=0.25)]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from enum import Enum
from typing import List, Tuple


class UnsupportedArityError(ValueError):
    """Raised for an orbital integral that is neither one- nor two-body."""

    def __init__(self, indices: Tuple[int, ...]):
        self.indices = tuple(indices)
        super().__init__(
            f"Unsupported orbital integral {self.indices}: expected 2 "
            f"(one-body) or 4 (two-body) indices, got {len(self.indices)}"
        )


class TermType(Enum):
    """Orbital integral categories, valued by their number of indices."""
    ONE_BODY = 2
    TWO_BODY = 4


def term_type_of(indices: Tuple[int, ...]) -> TermType:
    """Map an index tuple to its TermType, or raise UnsupportedArityError."""
    try:
        return TermType(len(indices))
    except ValueError:
        raise UnsupportedArityError(indices) from None


# ─── Symmetry tables ────────────────────────────────────────────────────

# Positions of (i, j) for each one-body symmetry partner.
_ONE_BODY_SYMMETRIES = (
    (0, 1),  # ij
    (1, 0),  # ji
)

# Positions of (i, j, k, l) for each two-body symmetry partner.
_TWO_BODY_SYMMETRIES = (
    (0, 1, 2, 3),  # ijkl
    (3, 2, 1, 0),  # lkji
    (1, 0, 3, 2),  # jilk
    (2, 3, 0, 1),  # klij
    (0, 2, 1, 3),  # ikjl
    (3, 1, 2, 0),  # ljki
    (2, 0, 3, 1),  # kilj
    (1, 3, 0, 2),  # jlik
)

_SYMMETRIES = {
    TermType.ONE_BODY: _ONE_BODY_SYMMETRIES,
    TermType.TWO_BODY: _TWO_BODY_SYMMETRIES,
}


@dataclass(frozen=True)
class OrbitalIntegral:
    """
    A single orbital integral: spatial-orbital indices and a coefficient.

    Parameters
    ----------
    indices : tuple of int
        Non-negative spatial-orbital indices, 2 for one-body and 4 for
        two-body integrals. Other lengths can be constructed but are
        rejected wherever the integral is converted.
    coefficient : float
        Value of the integral. Default: 1.0. Not part of equality or
        hashing: two integrals with the same indices are the same key.
    """
    indices: Tuple[int, ...]
    coefficient: float = field(default=1.0, compare=False)

    def __post_init__(self):
        indices = tuple(self.indices)
        for idx in indices:
            if isinstance(idx, bool) or not isinstance(idx, Integral):
                raise ValueError(
                    f"Orbital indices must be integers, got {idx!r} in {indices}"
                )
            if idx < 0:
                raise ValueError(
                    f"Orbital indices must be non-negative, got {indices}"
                )
        object.__setattr__(self, "indices", tuple(int(i) for i in indices))
        object.__setattr__(self, "coefficient", float(self.coefficient))

    @property
    def arity(self) -> int:
        """Number of orbital indices."""
        return len(self.indices)

    @property
    def term_type(self) -> TermType:
        """ONE_BODY or TWO_BODY; raises UnsupportedArityError otherwise."""
        return term_type_of(self.indices)

    def enumerate_orbital_symmetries(self) -> List["OrbitalIntegral"]:
        """
        List every distinct index permutation equivalent to this integral.

        Each returned integral carries this integral's coefficient. Repeated
        permutations (from repeated indices) appear once, in the order of
        the symmetry table.
        """
        seen = set()
        partners = []
        for positions in _SYMMETRIES[self.term_type]:
            permuted = tuple(self.indices[i] for i in positions)
            if permuted in seen:
                continue
            seen.add(permuted)
            partners.append(OrbitalIntegral(permuted, self.coefficient))
        return partners

    def to_canonical_form(self) -> "OrbitalIntegral":
        """The lexicographically smallest symmetry partner."""
        return min(self.enumerate_orbital_symmetries(), key=lambda o: o.indices)

    def with_coefficient(self, coefficient: float) -> "OrbitalIntegral":
        return OrbitalIntegral(self.indices, coefficient)

    def __str__(self) -> str:
        return f"{self.coefficient:+.6f} {list(self.indices)}"
