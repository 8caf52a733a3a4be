"""Example: expand H2 (STO-3G) orbital integrals into fermion terms."""
import sys
sys.path.insert(0, 'src')

import numpy as np

from tiny_fermion import IndexConvention, OrbitalIntegralHamiltonian, to_fermion_hamiltonian

print("=" * 50)
print("tiny-fermion: H2 Fermion Terms Example")
print("=" * 50)

# MO integrals at 0.74 Å, chemist notation (pq|rs)
h1 = np.array([[-1.2525, 0.0], [0.0, -0.4759]])
g = np.zeros((2, 2, 2, 2))
g[0, 0, 0, 0] = 0.6746
g[1, 1, 1, 1] = 0.6975
g[0, 0, 1, 1] = g[1, 1, 0, 0] = 0.6636
for idx in [(0, 1, 0, 1), (1, 0, 1, 0), (0, 1, 1, 0), (1, 0, 0, 1)]:
    g[idx] = 0.1813

source = OrbitalIntegralHamiltonian.from_arrays(h1, g, energy_offset=0.7151)
print(f"\n{source}")

for convention in IndexConvention:
    fermion = to_fermion_hamiltonian(source, convention)
    print(f"\n[{convention.name}]")
    print(fermion)
