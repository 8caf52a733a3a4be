"""
tiny-fermion: orbital integrals to Hermitian fermion terms.

Features:
- Orbital integral symmetries (2-fold one-body, 8-fold two-body)
- Spin-orbital numbering: interleaved (UP_DOWN) or block (HALF_UP)
- Canonical Hermitian fermion terms with summed coefficients
- Hamiltonian containers that accumulate equal terms

Quick Start:
    >>> import numpy as np
    >>> from tiny_fermion import OrbitalIntegralHamiltonian, to_fermion_hamiltonian
    >>> h1 = np.array([[-1.25, 0.0], [0.0, -0.47]])
    >>> H = OrbitalIntegralHamiltonian.from_arrays(h1, energy_offset=0.71)
    >>> F = to_fermion_hamiltonian(H)
    >>> print(F.n_spin_orbitals, F.n_terms)  # 4 5
"""
__version__ = "1.0.0"

from .integrals import OrbitalIntegral, TermType, UnsupportedArityError
from .spin_orbital import (
    Spin,
    SpinOrbital,
    IndexConvention,
    enumerate_spin_orbitals,
    expand_spin_orbitals,
    make_expander,
)
from .terms import HermitianFermionTerm, FermionTermType, TermConstructionError
from .hamiltonian import OrbitalIntegralHamiltonian, FermionHamiltonian
from .conversion import (
    TwoBodyCase,
    classify_two_body,
    canonical_two_body,
    one_body_terms,
    two_body_terms,
    to_hermitian_fermion_terms,
    to_fermion_hamiltonian,
)

__all__ = [
    # Integrals
    'OrbitalIntegral',
    'TermType',
    'UnsupportedArityError',
    # Spin-orbitals
    'Spin',
    'SpinOrbital',
    'IndexConvention',
    'enumerate_spin_orbitals',
    'expand_spin_orbitals',
    'make_expander',
    # Terms
    'HermitianFermionTerm',
    'FermionTermType',
    'TermConstructionError',
    # Containers
    'OrbitalIntegralHamiltonian',
    'FermionHamiltonian',
    # Conversion
    'TwoBodyCase',
    'classify_two_body',
    'canonical_two_body',
    'one_body_terms',
    'two_body_terms',
    'to_hermitian_fermion_terms',
    'to_fermion_hamiltonian',
]
