# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the Kind enumeration with its cyclic dominance rule
and the ParticleSystem class, which stores particle data (id, position,
velocity, kind) in NumPy arrays and creates the random initial population.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

import numpy as np

from constants import MAX_VELOCITY, PARTICLE_SIZE

# --- Data Contracts ---
#
# class Kind(IntEnum): ROCK = 0, PAPER = 1, SCISSORS = 2
#   - beats(self, other) -> bool:
#     - Rock beats Scissors, Scissors beats Paper, Paper beats Rock.
#     - Invariant: for integer codes a, b: a beats b <=> (a - b) % 3 == 1.
#
# class ParticleSystem:
#   - __init__(self, positions, velocities, kinds):
#     - Inputs: array-likes of shape (N, 2), (N, 2) and (N,).
#     - Side Effects: Copies the data into owned arrays and assigns ids 0..N-1.
#     - Invariants:
#       - self.ids is a NumPy array of shape (N,) of dtype int64.
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.kinds is a NumPy array of shape (N,) of dtype int32.
#
#   - random(count, width, height, rng, ...) -> ParticleSystem:
#     - Positions uniform in [0, width - size) x [0, height - size).
#     - Velocities uniform in [-max_velocity / 2, max_velocity / 2) per axis.
#     - Kinds uniform over the three kinds.
#     - Raises ValueError for a non-positive count or a viewport not larger
#       than the particle size.


class Kind(IntEnum):
    """The three cyclic particle kinds."""
    ROCK = 0
    PAPER = 1
    SCISSORS = 2

    def beats(self, other: "Kind") -> bool:
        return (int(self) - int(other)) % len(Kind) == 1

    @property
    def prey(self) -> "Kind":
        return Kind((int(self) - 1) % len(Kind))

    @property
    def predator(self) -> "Kind":
        return Kind((int(self) + 1) % len(Kind))

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Particle:
    """A read-only view of a single particle."""
    id: int
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    kind: Kind


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, positions, velocities, kinds):
        """
        Wraps existing particle data.

        Args:
            positions: (N, 2) array-like of top-left glyph coordinates.
            velocities: (N, 2) array-like of per-frame displacements.
            kinds: (N,) array-like of Kind values.
        """
        self.positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.velocities = np.array(velocities, dtype=np.float64).reshape(-1, 2)
        self.kinds = np.array(kinds, dtype=np.int32).reshape(-1)

        count = self.positions.shape[0]
        if self.velocities.shape[0] != count or self.kinds.shape[0] != count:
            msg = (
                f"Particle arrays disagree on population size: "
                f"{count} positions, {self.velocities.shape[0]} velocities, "
                f"{self.kinds.shape[0]} kinds."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if count and (self.kinds.min() < 0 or self.kinds.max() >= len(Kind)):
            msg = f"Particle kinds must be in [0, {len(Kind)}), got {np.unique(self.kinds)}."
            logging.critical(msg)
            raise ValueError(msg)

        self.ids = np.arange(count, dtype=np.int64)

    @classmethod
    def random(
        cls,
        count: int,
        width: float,
        height: float,
        rng: np.random.Generator,
        particle_size: float = PARTICLE_SIZE,
        max_velocity: float = MAX_VELOCITY,
    ) -> "ParticleSystem":
        """
        Creates a uniformly random population that fits inside the viewport.

        Args:
            count (int): Number of particles to create.
            width (float): The width of the simulation area.
            height (float): The height of the simulation area.
            rng (np.random.Generator): The single source of randomness.
            particle_size (float): Glyph size, kept fully on-canvas.
            max_velocity (float): Per-axis velocity bound.
        """
        if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count <= 0:
            msg = f"Configuration error: particle_count must be a positive integer, got {count!r}."
            logging.critical(msg)
            raise ValueError(msg)
        if width <= particle_size or height <= particle_size:
            msg = (
                f"Configuration error: viewport {width}x{height} must be larger "
                f"than the particle size ({particle_size}) on both axes."
            )
            logging.critical(msg)
            raise ValueError(msg)

        positions = rng.uniform(
            low=[0.0, 0.0],
            high=[width - particle_size, height - particle_size],
            size=(count, 2)
        )
        velocities = rng.uniform(
            low=-max_velocity / 2,
            high=max_velocity / 2,
            size=(count, 2)
        )
        kinds = rng.integers(low=0, high=len(Kind), size=count, dtype=np.int32)

        system = cls(positions, velocities, kinds)
        logging.info(
            f"ParticleSystem created with {count} particles "
            f"in a {width}x{height} viewport."
        )
        logging.debug(f"Initial kind counts: {system.counts()}")
        return system

    def __len__(self) -> int:
        return self.kinds.shape[0]

    def particle(self, index: int) -> Particle:
        """Returns a read-only view of the particle at the given index."""
        return Particle(
            id=int(self.ids[index]),
            position=(float(self.positions[index, 0]), float(self.positions[index, 1])),
            velocity=(float(self.velocities[index, 0]), float(self.velocities[index, 1])),
            kind=Kind(int(self.kinds[index])),
        )

    def counts(self) -> dict:
        """Returns the number of particles of each kind, in Kind order."""
        totals = np.bincount(self.kinds, minlength=len(Kind))
        return {kind: int(totals[kind]) for kind in Kind}

    def distinct_kinds(self) -> set:
        return {Kind(int(k)) for k in np.unique(self.kinds)}

    def copy(self) -> "ParticleSystem":
        return ParticleSystem(self.positions, self.velocities, self.kinds)
