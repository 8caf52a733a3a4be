"""
Tests for orbital integral → Hermitian fermion term conversion.

Tests cover:
- One-body classifier and conservation of the summed coefficient
- Two-body case table, exhaustively over small index ranges
- Mutual exclusivity of the two-body patterns
- Symmetry closure and absence of duplicate terms
- Full Hamiltonian conversion, energy offset and error handling
- Fock-space equivalence with the brute-force second-quantized operator
"""

import itertools
import logging
import os
import sys
from types import SimpleNamespace

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from tiny_fermion.conversion import (
    TwoBodyCase,
    _TWO_BODY_PREDICATES,
    canonical_two_body,
    classify_two_body,
    one_body_terms,
    to_fermion_hamiltonian,
    to_hermitian_fermion_terms,
    two_body_terms,
)
from tiny_fermion.hamiltonian import FermionHamiltonian, OrbitalIntegralHamiltonian
from tiny_fermion.integrals import OrbitalIntegral, UnsupportedArityError
from tiny_fermion.spin_orbital import (
    IndexConvention,
    SpinOrbital,
    enumerate_spin_orbitals,
    expand_spin_orbitals,
)
from tiny_fermion.terms import HermitianFermionTerm, TermConstructionError


def _as_dict(terms):
    """Accumulate (term, coeff) pairs into {sequence: coeff}."""
    result = {}
    for term, coeff in terms:
        result[term.sequence] = result.get(term.sequence, 0.0) + coeff
    return result


# ═══════════════════════════════════════════════════════════════════════
# ONE-BODY CLASSIFIER
# ═══════════════════════════════════════════════════════════════════════

class TestOneBody:
    """Tests for one-body canonicalization."""

    def test_diagonal_not_doubled(self):
        terms = one_body_terms([(3, 3)], 0.7)
        assert terms == [(HermitianFermionTerm((3, 3)), 0.7)]

    def test_off_diagonal_doubled(self):
        terms = one_body_terms([(1, 4)], 0.7)
        assert terms == [(HermitianFermionTerm((1, 4)), 1.4)]

    def test_mirror_skipped(self):
        assert one_body_terms([(4, 1)], 0.7) == []

    def test_off_diagonal_integral_interleaved(self):
        """(0,1) with c=1.5 → (0,2) and (1,3), each 3.0."""
        terms = to_hermitian_fermion_terms(OrbitalIntegral((0, 1), 1.5))
        assert _as_dict(terms) == {(0, 2): 3.0, (1, 3): 3.0}

    def test_diagonal_integral(self):
        terms = to_hermitian_fermion_terms(OrbitalIntegral((2, 2), -0.4))
        assert _as_dict(terms) == {(4, 4): -0.4, (5, 5): -0.4}

    @pytest.mark.parametrize("p,q", [(0, 0), (0, 1), (2, 1), (3, 3), (1, 5)])
    def test_conservation(self, p, q):
        """Emitted coefficients sum to c × number of spin-orbital tuples."""
        c = 0.37
        integral = OrbitalIntegral((p, q), c)
        n_tuples = sum(
            len(expand_spin_orbitals(o.indices))
            for o in integral.enumerate_orbital_symmetries()
        )
        terms = to_hermitian_fermion_terms(integral)
        assert np.isclose(sum(coeff for _, coeff in terms), c * n_tuples)

    def test_half_up_convention(self):
        terms = to_hermitian_fermion_terms(
            OrbitalIntegral((0, 1), 1.0), IndexConvention.HALF_UP, n_orbitals=3
        )
        assert _as_dict(terms) == {(0, 1): 2.0, (3, 4): 2.0}


# ═══════════════════════════════════════════════════════════════════════
# TWO-BODY CASE TABLE
# ═══════════════════════════════════════════════════════════════════════

class TestTwoBodyCases:
    """Tests for classify_two_body() and the emitted index/sign table."""

    def test_pqqp(self):
        assert classify_two_body(0, 2, 2, 0) is TwoBodyCase.PQQP
        assert canonical_two_body(0, 2, 2, 0) == ((0, 2, 2, 0), 1.0)

    def test_pqpq(self):
        """(0,2,0,2) → (0,2,2,0) with -c."""
        assert classify_two_body(0, 2, 0, 2) is TwoBodyCase.PQPQ
        terms = two_body_terms([(0, 2, 0, 2)], 0.5)
        assert terms == [(HermitianFermionTerm((0, 2, 2, 0)), -0.5)]

    @pytest.mark.parametrize("quad,expected", [
        ((0, 1, 1, 2), ((0, 1, 2, 1), -2.0)),   # r < s, p < q
        ((2, 1, 1, 3), ((1, 2, 3, 1), 2.0)),    # r < s, p > q
        ((0, 3, 3, 1), ((0, 3, 3, 1), 2.0)),    # r > s, p < q
    ])
    def test_pqqr(self, quad, expected):
        assert classify_two_body(*quad) is TwoBodyCase.PQQR
        assert canonical_two_body(*quad) == expected

    @pytest.mark.parametrize("quad,expected", [
        ((0, 1, 2, 1), ((0, 1, 2, 1), 2.0)),    # p < q, r > q
        ((0, 2, 1, 2), ((0, 2, 2, 1), -2.0)),   # p < q, r < q
        ((1, 0, 2, 0), ((0, 1, 2, 0), -2.0)),   # p > q
    ])
    def test_pqrq(self, quad, expected):
        assert classify_two_body(*quad) is TwoBodyCase.PQRQ
        assert canonical_two_body(*quad) == expected

    def test_pqrs(self):
        assert classify_two_body(0, 1, 2, 3) is TwoBodyCase.PQRS
        assert canonical_two_body(0, 1, 2, 3) == ((0, 1, 3, 2), -2.0)
        assert canonical_two_body(0, 1, 3, 2) == ((0, 1, 3, 2), 2.0)

    def test_pqrs_requires_smallest_first(self):
        assert classify_two_body(1, 0, 2, 3) is TwoBodyCase.NONE
        assert canonical_two_body(3, 2, 1, 0) is None

    def test_mirror_cases_skipped(self):
        assert classify_two_body(2, 0, 0, 2) is TwoBodyCase.NONE
        assert classify_two_body(2, 0, 2, 0) is TwoBodyCase.NONE

    def test_patterns_mutually_exclusive(self):
        """No quadruple over {0..3} satisfies two patterns at once."""
        for quad in itertools.product(range(4), repeat=4):
            matches = [case for case, pred in _TWO_BODY_PREDICATES if pred(*quad)]
            assert len(matches) <= 1, f"{quad} matches {matches}"

    def test_exhaustive_classification(self):
        """Every quadruple gets exactly one case, consistent with the table."""
        for quad in itertools.product(range(4), repeat=4):
            case = classify_two_body(*quad)
            emitted = canonical_two_body(*quad)
            if case is TwoBodyCase.NONE:
                assert emitted is None
            else:
                sequence, multiplier = emitted
                assert sorted(sequence) == sorted(quad)
                assert abs(multiplier) in (1.0, 2.0)

    def test_vanishing_operators_never_emitted(self):
        for p, q, r, s in itertools.product(range(4), repeat=4):
            if p == q or r == s:
                assert canonical_two_body(p, q, r, s) is None

    def test_emitted_sequences_already_canonical(self):
        """The term constructor never has to reorder what is emitted."""
        for quad in itertools.product(range(5), repeat=4):
            emitted = canonical_two_body(*quad)
            if emitted is None:
                continue
            sequence, _ = emitted
            assert HermitianFermionTerm(sequence).sequence == sequence


# ═══════════════════════════════════════════════════════════════════════
# SINGLE-INTEGRAL PROPERTIES
# ═══════════════════════════════════════════════════════════════════════

class TestIntegralConversion:
    """Tests for to_hermitian_fermion_terms() on two-body integrals."""

    def test_coulomb_exchange_integral_0011(self):
        terms = to_hermitian_fermion_terms(OrbitalIntegral((0, 0, 1, 1), 0.5))
        assert _as_dict(terms) == {
            (0, 2, 2, 0): -0.5,
            (1, 3, 3, 1): -0.5,
            (0, 3, 2, 1): -1.0,
            (0, 1, 3, 2): 1.0,
        }

    def test_on_site_repulsion(self):
        """(0,0,0,0) only couples opposite spins."""
        terms = to_hermitian_fermion_terms(OrbitalIntegral((0, 0, 0, 0), 0.6))
        assert _as_dict(terms) == {(0, 1, 1, 0): 0.6}

    def test_no_duplicate_terms(self):
        for idx in itertools.product(range(3), repeat=4):
            terms = to_hermitian_fermion_terms(OrbitalIntegral(idx, 1.0))
            sequences = [t.sequence for t, _ in terms]
            assert len(sequences) == len(set(sequences)), f"duplicates for {idx}"

    def test_symmetry_closure(self):
        """Every symmetry partner of an integral yields the same terms."""
        for idx in [(0, 1, 2, 3), (0, 1, 1, 2), (0, 0, 1, 1), (1, 0, 0, 1), (2, 0, 1, 0)]:
            reference = _as_dict(to_hermitian_fermion_terms(OrbitalIntegral(idx, 0.3)))
            for partner in OrbitalIntegral(idx, 0.3).enumerate_orbital_symmetries():
                assert _as_dict(to_hermitian_fermion_terms(partner)) == reference

    def test_emission_order_irrelevant(self):
        integral = OrbitalIntegral((0, 1, 2, 1), 0.9)
        tuples = [
            t for o in integral.enumerate_orbital_symmetries()
            for t in expand_spin_orbitals(o.indices)
        ]
        forward = _as_dict(two_body_terms(tuples, 0.9))
        backward = _as_dict(two_body_terms(reversed(tuples), 0.9))
        assert forward == backward

    def test_custom_expander(self):
        """A callable convention is used as-is."""
        def spinless(indices):
            return [tuple(indices)]

        terms = to_hermitian_fermion_terms(OrbitalIntegral((0, 1), 1.0), spinless)
        assert _as_dict(terms) == {(0, 1): 2.0}

    def test_unsupported_arity(self):
        with pytest.raises(UnsupportedArityError):
            to_hermitian_fermion_terms(OrbitalIntegral((0, 1, 2), 1.0))

    def test_half_up_needs_n_orbitals(self):
        with pytest.raises(ValueError):
            to_hermitian_fermion_terms(OrbitalIntegral((0, 1), 1.0),
                                       IndexConvention.HALF_UP)

    def test_malformed_term_propagates(self):
        """Term construction errors from a bad expander are not swallowed."""
        def negative_expander(indices):
            return [(-1, 0)]

        with pytest.raises(TermConstructionError):
            to_hermitian_fermion_terms(OrbitalIntegral((0, 1), 1.0), negative_expander)


# ═══════════════════════════════════════════════════════════════════════
# HAMILTONIAN CONVERSION
# ═══════════════════════════════════════════════════════════════════════

class TestHamiltonianConversion:
    """Tests for to_fermion_hamiltonian()."""

    def _h2_like(self):
        H = OrbitalIntegralHamiltonian(energy_offset=0.71)
        H.add_terms([
            OrbitalIntegral((0, 0), -1.25),
            OrbitalIntegral((1, 1), -0.47),
            OrbitalIntegral((0, 0, 0, 0), 0.67),
            OrbitalIntegral((1, 1, 1, 1), 0.70),
            OrbitalIntegral((0, 0, 1, 1), 0.66),
            OrbitalIntegral((0, 1, 1, 0), 0.18),
        ])
        return H

    def test_returns_fermion_hamiltonian(self):
        F = to_fermion_hamiltonian(self._h2_like())
        assert isinstance(F, FermionHamiltonian)
        assert F.n_spin_orbitals == 4

    def test_energy_offset_carried(self):
        F = to_fermion_hamiltonian(self._h2_like())
        assert np.isclose(F.energy_offset, 0.71)

    def test_number_terms(self):
        F = to_fermion_hamiltonian(self._h2_like())
        assert np.isclose(F.coefficient((0, 0)), -1.25)
        assert np.isclose(F.coefficient((1, 1)), -1.25)
        assert np.isclose(F.coefficient((3, 3)), -0.47)

    def test_cross_integral_accumulation(self):
        """(0,0,1,1) and (0,1,1,0) both land on (0,2,2,0)."""
        F = to_fermion_hamiltonian(self._h2_like())
        assert np.isclose(F.coefficient((0, 2, 2, 0)), -0.66 + 0.18)

    def test_idempotent(self):
        H = self._h2_like()
        assert to_fermion_hamiltonian(H) == to_fermion_hamiltonian(H)

    def test_half_up_uses_source_orbitals(self):
        F = to_fermion_hamiltonian(self._h2_like(), IndexConvention.HALF_UP)
        # 0↑=0, 1↑=1, 0↓=2, 1↓=3
        assert np.isclose(F.coefficient((1, 1)), -0.47)
        assert np.isclose(F.coefficient((0, 2, 2, 0)), 0.67)

    def test_empty_source(self):
        F = to_fermion_hamiltonian(OrbitalIntegralHamiltonian())
        assert F.n_terms == 0

    def test_unsupported_arity_aborts(self):
        source = SimpleNamespace(
            integrals=lambda: iter([OrbitalIntegral((0, 1), 1.0),
                                    OrbitalIntegral((0, 1, 2), 1.0)]),
            energy_offset=0.0,
            n_orbitals=3,
        )
        with pytest.raises(UnsupportedArityError):
            to_fermion_hamiltonian(source)

    def test_logs_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="tiny_fermion.conversion"):
            to_fermion_hamiltonian(self._h2_like())
        assert "Converted 6 orbital integrals" in caplog.text


# ═══════════════════════════════════════════════════════════════════════
# FOCK-SPACE EQUIVALENCE
# ═══════════════════════════════════════════════════════════════════════

def _annihilators(n_modes):
    """Dense a_p matrices with (-1)^(# occupied modes below p) phases."""
    dim = 2 ** n_modes
    ops = []
    for p in range(n_modes):
        a = np.zeros((dim, dim))
        for state in range(dim):
            if (state >> p) & 1:
                sign = -1.0 if bin(state & ((1 << p) - 1)).count("1") % 2 else 1.0
                a[state ^ (1 << p), state] = sign
        ops.append(a)
    return ops


def _reference_operator(h1, g, offset, to_int, n_modes):
    """E₀ + Σ h_pq a†a + ½ Σ (il|jk) a†_iσ a†_jτ a_kτ a_lσ."""
    a = _annihilators(n_modes)
    n = h1.shape[0]
    H = offset * np.eye(2 ** n_modes)
    for p, q in itertools.product(range(n), repeat=2):
        for (sp, sq) in enumerate_spin_orbitals((p, q)):
            H += h1[p, q] * a[to_int(sp)].T @ a[to_int(sq)]
    for i, j, k, l in itertools.product(range(n), repeat=4):
        value = 0.5 * g[i, l, j, k]
        for si, sj, sk, sl in enumerate_spin_orbitals((i, j, k, l)):
            H += value * (a[to_int(si)].T @ a[to_int(sj)].T
                          @ a[to_int(sk)] @ a[to_int(sl)])
    return H


def _fermion_operator(F, n_modes):
    a = _annihilators(n_modes)
    H = np.zeros((2 ** n_modes, 2 ** n_modes))
    for term, coeff in F.items():
        seq = term.sequence
        half = len(seq) // 2
        op = np.eye(2 ** n_modes)
        for idx in seq[:half]:
            op = op @ a[idx].T
        for idx in seq[half:]:
            op = op @ a[idx]
        if term.is_self_adjoint:
            H += coeff * op
        else:
            H += 0.5 * coeff * (op + op.T)
    return H


def _random_integrals(n, seed):
    rng = np.random.default_rng(seed)
    h1 = rng.normal(size=(n, n))
    h1 = h1 + h1.T
    A = rng.normal(size=(n, n, n, n))
    g = A + A.transpose(1, 0, 2, 3) + A.transpose(0, 1, 3, 2) + A.transpose(1, 0, 3, 2)
    g = g + g.transpose(2, 3, 0, 1)
    return h1, g


class TestFockSpace:
    """The converted terms reproduce the second-quantized Hamiltonian."""

    @pytest.mark.parametrize("n_orbitals,seed", [(2, 0), (2, 1), (3, 2)])
    def test_up_down(self, n_orbitals, seed):
        h1, g = _random_integrals(n_orbitals, seed)
        source = OrbitalIntegralHamiltonian.from_arrays(h1, g, energy_offset=0.3,
                                                        threshold=0.0)
        F = to_fermion_hamiltonian(source, IndexConvention.UP_DOWN)
        n_modes = 2 * n_orbitals

        def to_int(so):
            return so.to_int(IndexConvention.UP_DOWN)

        expected = _reference_operator(h1, g, 0.3, to_int, n_modes)
        assert np.allclose(_fermion_operator(F, n_modes), expected, atol=1e-10)

    def test_half_up(self):
        n_orbitals = 3
        h1, g = _random_integrals(n_orbitals, 11)
        source = OrbitalIntegralHamiltonian.from_arrays(h1, g, threshold=0.0)
        F = to_fermion_hamiltonian(source, IndexConvention.HALF_UP)
        n_modes = 2 * n_orbitals

        def to_int(so):
            return so.to_int(IndexConvention.HALF_UP, n_orbitals)

        expected = _reference_operator(h1, g, 0.0, to_int, n_modes)
        assert np.allclose(_fermion_operator(F, n_modes), expected, atol=1e-10)

    def test_hermitian(self):
        h1, g = _random_integrals(2, 5)
        F = to_fermion_hamiltonian(OrbitalIntegralHamiltonian.from_arrays(h1, g))
        M = _fermion_operator(F, 4)
        assert np.allclose(M, M.T)

    def test_spin_orbital_round_trip(self):
        so = SpinOrbital.from_int(5, IndexConvention.HALF_UP, 3)
        assert so.to_int(IndexConvention.HALF_UP, 3) == 5
