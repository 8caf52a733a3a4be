"""
Spin-orbitals and the conventions that number them.

A spin-orbital is a spatial orbital paired with a spin label. Qubit
encodings need a single integer per spin-orbital; two orderings are in
common use:

    UP_DOWN  (interleaved):  0↑ 0↓ 1↑ 1↓ 2↑ 2↓ ...   index = 2k + s
    HALF_UP  (block):        0↑ 1↑ 2↑ ... 0↓ 1↓ 2↓   index = k + s·n_orbitals

Spin expansion of orbital indices follows the spin structure of the
electronic Hamiltonian:

    one-body  (p, q)        → (pσ, qσ)              σ ∈ {↑, ↓}
    two-body  (i, j, k, l)  → (iσ, jτ, kτ, lσ)      σ, τ ∈ {↑, ↓}
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .integrals import UnsupportedArityError


class Spin(Enum):
    UP = 0
    DOWN = 1


class IndexConvention(Enum):
    """Numbering of spin-orbitals by integers."""
    UP_DOWN = "up_down"
    HALF_UP = "half_up"


# A custom convention: spatial-orbital indices → spin-orbital index tuples
SpinOrbitalExpander = Callable[[Tuple[int, ...]], Iterable[Tuple[int, ...]]]


@dataclass(frozen=True)
class SpinOrbital:
    """A (spatial orbital, spin) pair."""
    orbital: int
    spin: Spin = Spin.UP

    def __post_init__(self):
        if self.orbital < 0:
            raise ValueError(f"Orbital index must be non-negative, got {self.orbital}")

    def to_int(self, convention: IndexConvention = IndexConvention.UP_DOWN,
               n_orbitals: Optional[int] = None) -> int:
        """
        Integer index of this spin-orbital.

        Parameters
        ----------
        convention : IndexConvention
            Numbering scheme. Default: UP_DOWN.
        n_orbitals : int or None
            Number of spatial orbitals. Required by HALF_UP.
        """
        if convention is IndexConvention.UP_DOWN:
            return 2 * self.orbital + self.spin.value
        if convention is IndexConvention.HALF_UP:
            n = _require_n_orbitals(n_orbitals)
            if self.orbital >= n:
                raise ValueError(
                    f"Orbital {self.orbital} out of range for {n} orbitals"
                )
            return self.orbital + self.spin.value * n
        raise ValueError(f"Unknown index convention: {convention!r}")

    @classmethod
    def from_int(cls, index: int,
                 convention: IndexConvention = IndexConvention.UP_DOWN,
                 n_orbitals: Optional[int] = None) -> "SpinOrbital":
        """Inverse of to_int()."""
        if index < 0:
            raise ValueError(f"Spin-orbital index must be non-negative, got {index}")
        if convention is IndexConvention.UP_DOWN:
            return cls(index // 2, Spin(index % 2))
        if convention is IndexConvention.HALF_UP:
            n = _require_n_orbitals(n_orbitals)
            if index >= 2 * n:
                raise ValueError(
                    f"Spin-orbital {index} out of range for {n} orbitals"
                )
            return cls(index % n, Spin(index // n))
        raise ValueError(f"Unknown index convention: {convention!r}")

    def __str__(self) -> str:
        arrow = "↑" if self.spin is Spin.UP else "↓"
        return f"{self.orbital}{arrow}"


def _require_n_orbitals(n_orbitals: Optional[int]) -> int:
    if n_orbitals is None:
        raise ValueError("HALF_UP index convention requires n_orbitals")
    if n_orbitals <= 0:
        raise ValueError(f"n_orbitals must be positive, got {n_orbitals}")
    return n_orbitals


# ─── Spin expansion ─────────────────────────────────────────────────────

def enumerate_spin_orbitals(indices: Sequence[int]) -> List[Tuple[SpinOrbital, ...]]:
    """
    Attach spins to a tuple of spatial-orbital indices.

    Returns one SpinOrbital tuple per spin assignment allowed by the
    Hamiltonian: 2 for one-body and 4 for two-body indices.
    """
    indices = tuple(indices)
    if len(indices) == 2:
        p, q = indices
        return [(SpinOrbital(p, s), SpinOrbital(q, s)) for s in Spin]
    if len(indices) == 4:
        i, j, k, l = indices
        return [
            (SpinOrbital(i, s1), SpinOrbital(j, s2),
             SpinOrbital(k, s2), SpinOrbital(l, s1))
            for s1, s2 in itertools.product(Spin, Spin)
        ]
    raise UnsupportedArityError(indices)


def expand_spin_orbitals(indices: Sequence[int],
                         convention: IndexConvention = IndexConvention.UP_DOWN,
                         n_orbitals: Optional[int] = None) -> List[Tuple[int, ...]]:
    """
    Spin-expand spatial-orbital indices straight to integer tuples.

    Example:
        >>> expand_spin_orbitals((0, 1))
        [(0, 2), (1, 3)]
    """
    return [
        tuple(so.to_int(convention, n_orbitals) for so in spin_orbitals)
        for spin_orbitals in enumerate_spin_orbitals(indices)
    ]


def make_expander(convention: Union[IndexConvention, SpinOrbitalExpander] = IndexConvention.UP_DOWN,
                  n_orbitals: Optional[int] = None) -> SpinOrbitalExpander:
    """
    Build the index-convention function used by the converter.

    An IndexConvention member is bound to ``n_orbitals``; any other
    callable is assumed to already map orbital indices to integer tuples
    and is returned unchanged.
    """
    if isinstance(convention, IndexConvention):
        if convention is IndexConvention.HALF_UP:
            _require_n_orbitals(n_orbitals)

        def expander(indices: Tuple[int, ...]) -> List[Tuple[int, ...]]:
            return expand_spin_orbitals(indices, convention, n_orbitals)

        return expander
    if callable(convention):
        return convention
    raise TypeError(
        f"Index convention must be an IndexConvention or a callable, "
        f"got {type(convention).__name__}"
    )
