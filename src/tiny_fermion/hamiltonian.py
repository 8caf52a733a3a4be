"""
Hamiltonian containers.

OrbitalIntegralHamiltonian holds the compact input: one- and two-body
integrals over spatial orbitals, one entry per symmetry class, plus a
constant energy offset (e.g. nuclear repulsion):

    H = E₀ + Σ_{pq} h_{pq} a†_p a_q + ½ Σ_{ijkl} h_{ijkl} a†_i a†_j a_k a_l

FermionHamiltonian holds the expanded output: Hermitian fermion terms on
spin-orbitals with real coefficients. Adding a term that is already
present sums the coefficients.

Usage:
    >>> H = OrbitalIntegralHamiltonian()
    >>> H.add_term(OrbitalIntegral((0, 0), -1.25))
    >>> H.add_term(OrbitalIntegral((0, 0, 0, 0), 0.67))
    >>> H.n_terms
    2
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

import numpy as np

from .integrals import OrbitalIntegral, TermType, term_type_of
from .terms import FermionTermType, HermitianFermionTerm

logger = logging.getLogger(__name__)

# Integrals with |value| below this are dropped by from_arrays()
DEFAULT_THRESHOLD = 1e-12


class OrbitalIntegralHamiltonian:
    """
    Orbital integral Hamiltonian.

    Integrals are stored in canonical form (smallest symmetry partner), so
    adding two symmetry-equivalent integrals accumulates into a single
    entry.

    Parameters
    ----------
    integrals : iterable of OrbitalIntegral, optional
        Initial integrals.
    energy_offset : float
        Constant term of the Hamiltonian. Default: 0.0.

    Attributes
    ----------
    n_orbitals : int
        Number of spatial orbitals spanned (largest index + 1).
    n_terms : int
        Number of stored integrals.
    """

    def __init__(self, integrals: Optional[Iterable[OrbitalIntegral]] = None,
                 energy_offset: float = 0.0):
        self._terms: Dict[TermType, Dict[OrbitalIntegral, float]] = {}
        self.energy_offset = float(energy_offset)
        if integrals is not None:
            self.add_terms(integrals)

    def add_term(self, integral: OrbitalIntegral) -> None:
        """Add an integral, summing into its symmetry class if present."""
        term_type = term_type_of(integral.indices)
        key = integral.to_canonical_form()
        bucket = self._terms.setdefault(term_type, {})
        total = bucket.pop(key, 0.0) + integral.coefficient
        # Re-key so the stored integral carries the accumulated value
        bucket[key.with_coefficient(total)] = total

    def add_terms(self, integrals: Iterable[OrbitalIntegral]) -> None:
        for integral in integrals:
            self.add_term(integral)

    @property
    def terms(self) -> Dict[TermType, Dict[OrbitalIntegral, float]]:
        """TermType → {integral: coefficient} (copy), keyed by canonical indices."""
        return {t: dict(bucket) for t, bucket in self._terms.items()}

    def integrals(self) -> Iterator[OrbitalIntegral]:
        """Iterate over stored integrals with their accumulated coefficients."""
        for bucket in self._terms.values():
            yield from bucket

    def coefficient(self, indices: Tuple[int, ...]) -> float:
        """Coefficient of the symmetry class containing ``indices``."""
        key = OrbitalIntegral(tuple(indices)).to_canonical_form()
        return self._terms.get(key.term_type, {}).get(key, 0.0)

    @property
    def n_terms(self) -> int:
        return sum(len(bucket) for bucket in self._terms.values())

    @property
    def n_orbitals(self) -> int:
        largest = -1
        for bucket in self._terms.values():
            for key in bucket:
                largest = max(largest, max(key.indices))
        return largest + 1

    def norm(self, order: float = 1.0) -> float:
        """p-norm of the integral coefficients (energy offset excluded)."""
        coeffs = [c for bucket in self._terms.values() for c in bucket.values()]
        if not coeffs:
            return 0.0
        return float(np.linalg.norm(np.asarray(coeffs), ord=order))

    @classmethod
    def from_arrays(cls, one_body: np.ndarray, two_body: Optional[np.ndarray] = None,
                    energy_offset: float = 0.0,
                    threshold: float = DEFAULT_THRESHOLD) -> "OrbitalIntegralHamiltonian":
        """
        Build from dense integral arrays over spatial orbitals.

        Parameters
        ----------
        one_body : np.ndarray
            One-electron integrals h_{pq}, shape (n, n). Assumed symmetric.
        two_body : np.ndarray or None
            Two-electron integrals in chemist notation (pq|rs), shape
            (n, n, n, n), with the 8-fold symmetry of real orbitals.
        energy_offset : float
            Constant energy (e.g. nuclear repulsion).
        threshold : float
            Drop integrals with |value| < threshold.

        Returns
        -------
        OrbitalIntegralHamiltonian
            One entry per symmetry class, h_{ijkl} = (il|jk).
        """
        one_body = np.asarray(one_body, dtype=float)
        if one_body.ndim != 2 or one_body.shape[0] != one_body.shape[1]:
            raise ValueError(
                f"one_body must be a square matrix, got shape {one_body.shape}"
            )
        n = one_body.shape[0]
        if not np.allclose(one_body, one_body.T):
            logger.warning("one_body is not symmetric; using upper triangle")

        hamiltonian = cls(energy_offset=energy_offset)
        for p in range(n):
            for q in range(p, n):
                value = one_body[p, q]
                if abs(value) >= threshold:
                    hamiltonian.add_term(OrbitalIntegral((p, q), value))

        if two_body is not None:
            two_body = np.asarray(two_body, dtype=float)
            if two_body.shape != (n, n, n, n):
                raise ValueError(
                    f"two_body must have shape {(n, n, n, n)}, got {two_body.shape}"
                )
            if not (np.allclose(two_body, two_body.transpose(1, 0, 2, 3))
                    and np.allclose(two_body, two_body.transpose(2, 3, 0, 1))):
                logger.warning(
                    "two_body lacks 8-fold symmetry; one entry per class is used"
                )
            seen = set()
            for idx in np.ndindex(n, n, n, n):
                canonical = OrbitalIntegral(idx).to_canonical_form().indices
                if canonical in seen:
                    continue
                seen.add(canonical)
                i, j, k, l = canonical
                value = two_body[i, l, j, k]
                if abs(value) >= threshold:
                    hamiltonian.add_term(OrbitalIntegral(canonical, value))

        logger.debug("Built orbital integral Hamiltonian: %d orbitals, %d integrals",
                     n, hamiltonian.n_terms)
        return hamiltonian

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{t.name}={len(bucket)}" for t, bucket in self._terms.items()
        )
        return f"OrbitalIntegralHamiltonian({self.n_orbitals} orbitals; {counts})"

    def __str__(self) -> str:
        lines = [f"Orbital integral Hamiltonian on {self.n_orbitals} orbitals "
                 f"({self.n_terms} integrals):"]
        lines.append(f"  {self.energy_offset:+10.6f}  I")
        for term_type in TermType:
            for key, coeff in sorted(self._terms.get(term_type, {}).items(),
                                     key=lambda kv: kv[0].indices):
                lines.append(f"  {coeff:+10.6f}  {list(key.indices)}")
        return "\n".join(lines)


class FermionHamiltonian:
    """
    Hamiltonian as a sum of Hermitian fermion terms on spin-orbitals.

    Terms are grouped by FermionTermType. The identity term holds the
    constant energy offset.

    A coefficient d on a self-adjoint term O stands for d·O; on any other
    term it stands for (d/2)·(O + O†).
    """

    def __init__(self):
        self._terms: Dict[FermionTermType, Dict[HermitianFermionTerm, float]] = {}

    def add_term(self, term: Union[HermitianFermionTerm, Iterable[int]],
                 coefficient: float) -> None:
        """
        Add ``coefficient`` to ``term``, creating it if absent.

        A raw index sequence is normal ordered first; if that takes an odd
        number of swaps the coefficient is negated.
        """
        term, sign = _as_term(term)
        bucket = self._terms.setdefault(term.term_type, {})
        bucket[term] = bucket.get(term, 0.0) + sign * float(coefficient)

    def add_terms(self, terms: Iterable[Tuple[HermitianFermionTerm, float]]) -> None:
        for term, coefficient in terms:
            self.add_term(term, coefficient)

    @property
    def terms(self) -> Dict[FermionTermType, Dict[HermitianFermionTerm, float]]:
        """FermionTermType → {term: coefficient} (copy)."""
        return {t: dict(bucket) for t, bucket in self._terms.items()}

    def items(self) -> Iterator[Tuple[HermitianFermionTerm, float]]:
        """Iterate over (term, coefficient) in canonical term order."""
        for term_type in FermionTermType:
            bucket = self._terms.get(term_type, {})
            for term in sorted(bucket):
                yield term, bucket[term]

    def to_dict(self) -> Dict[Tuple[int, ...], float]:
        """Flatten to {index sequence: coefficient}."""
        return {term.sequence: coeff for term, coeff in self.items()}

    def coefficient(self, term: Union[HermitianFermionTerm, Iterable[int]]) -> float:
        """Coefficient of ``term``, signed for the given index order."""
        term, sign = _as_term(term)
        return sign * self._terms.get(term.term_type, {}).get(term, 0.0)

    @property
    def energy_offset(self) -> float:
        return self.coefficient(HermitianFermionTerm(()))

    @property
    def n_terms(self) -> int:
        """Number of terms, identity included."""
        return sum(len(bucket) for bucket in self._terms.values())

    @property
    def n_spin_orbitals(self) -> int:
        largest = -1
        for bucket in self._terms.values():
            for term in bucket:
                largest = max(largest, term.max_index)
        return largest + 1

    def norm(self, order: float = 1.0) -> float:
        """p-norm of the non-identity coefficients."""
        coeffs = [
            c for t, bucket in self._terms.items()
            if t is not FermionTermType.IDENTITY
            for c in bucket.values()
        ]
        if not coeffs:
            return 0.0
        return float(np.linalg.norm(np.asarray(coeffs), ord=order))

    def __eq__(self, other) -> bool:
        if not isinstance(other, FermionHamiltonian):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"FermionHamiltonian({self.n_spin_orbitals} spin-orbitals, "
                f"{self.n_terms} terms)")

    def __str__(self) -> str:
        lines = [f"Fermion Hamiltonian on {self.n_spin_orbitals} spin-orbitals "
                 f"({self.n_terms} terms):"]
        for term, coeff in self.items():
            lines.append(f"  {coeff:+10.6f}  {term}")
        return "\n".join(lines)


def _as_term(term: Union[HermitianFermionTerm, Iterable[int]]) -> Tuple[HermitianFermionTerm, int]:
    if isinstance(term, HermitianFermionTerm):
        return term, 1
    return HermitianFermionTerm.with_sign(term)
