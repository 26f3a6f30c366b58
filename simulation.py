# simulation.py
"""
Handles the core simulation logic.

This module defines the Simulation class, the driver that owns the particle
population and advances it by one tick per frame. A tick runs, in order:
kinematics (move and bounce), interaction (chase prey, flee predators),
collision (predators convert prey on contact) and convergence detection
(halt once a single kind remains).
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np
from numba import jit

from constants import (
    COLLISION_DISTANCE, DETECTION_RADIUS, MAX_VELOCITY, NUM_PARTICLES,
    PARTICLE_SIZE, STEERING_GAIN
)
from particle import Kind, ParticleSystem
from scheduler import FrameScheduler

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, params, width=None, height=None, rng=None, particles=None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "particle_count": int
#         - "seed": Optional[int]
#         - "max_velocity": float
#         - "detection_radius": float
#         - "collision_distance": float
#         - "steering_gain": float
#         - "particle_size": float
#         - "simultaneous_collisions": bool
#       - width, height: viewport size. When omitted the simulation stays
#         UNINITIALIZED until reset() is called.
#       - rng: Optional numpy Generator. Built from "seed" when omitted.
#       - particles: Optional explicit initial population.
#     - Side Effects: Validates parameters, creates the population.
#
#   - step(self) -> bool:
#     - Outputs: True if a tick ran, False if the simulation is complete.
#     - Side Effects: Mutates positions, velocities and kinds in place.
#     - Invariants: Particle count remains constant. Positions stay within
#       [0, width - size] x [0, height - size]. Each velocity component stays
#       within [-max_velocity, max_velocity]. Once complete, nothing changes.
#
#   - start(scheduler) / stop(): register and revoke the per-frame callback.
#
#   - snapshot(self) -> Snapshot: immutable copy for the render and status
#     collaborators.


@jit(nopython=True)
def _move_numba(positions, velocities, max_x, max_y):
    """
    Numba-jitted kinematics update.

    Advances every particle by its velocity. A coordinate leaving
    [0, max] on an axis is clamped back and that velocity component is
    reflected. Axes are handled independently.
    """
    for i in range(positions.shape[0]):
        x = positions[i, 0] + velocities[i, 0]
        y = positions[i, 1] + velocities[i, 1]

        if x < 0.0 or x > max_x:
            velocities[i, 0] = -velocities[i, 0]
            x = min(max(x, 0.0), max_x)
        if y < 0.0 or y > max_y:
            velocities[i, 1] = -velocities[i, 1]
            y = min(max(y, 0.0), max_y)

        positions[i, 0] = x
        positions[i, 1] = y


@jit(nopython=True)
def _steer_numba(positions, kinds, velocities, radius_sq, gain, max_velocity, kind_count):
    """
    Numba-jitted chase/flee steering.

    `positions` is the snapshot taken before this tick's move. Each particle
    accelerates toward prey and away from predators inside the detection
    radius, then has each velocity component clamped to +-max_velocity.
    """
    particle_count = positions.shape[0]
    for i in range(particle_count):
        kind_i = kinds[i]
        for j in range(particle_count):
            if i == j:
                continue

            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            if dx * dx + dy * dy >= radius_sq:
                continue

            kind_j = kinds[j]
            if (kind_i - kind_j + kind_count) % kind_count == 1:
                # Chase prey
                velocities[i, 0] += dx * gain
                velocities[i, 1] += dy * gain
            elif (kind_j - kind_i + kind_count) % kind_count == 1:
                # Flee predator
                velocities[i, 0] -= dx * gain
                velocities[i, 1] -= dy * gain

        velocities[i, 0] = min(max_velocity, max(-max_velocity, velocities[i, 0]))
        velocities[i, 1] = min(max_velocity, max(-max_velocity, velocities[i, 1]))


@jit(nopython=True)
def _resolve_collisions_numba(positions, source_kinds, kinds, collision_sq, kind_count):
    """
    Numba-jitted collision pass.

    For every ordered pair (i, j) closer than the collision distance where
    source_kinds[i] beats source_kinds[j], j takes the kind of i. Passing the
    same array as source_kinds and kinds resolves collisions in one ordered
    pass over the live data, so conversions can cascade within a tick.
    Passing a copy makes every test read the kinds from the start of the pass.

    Returns the number of conversions applied.
    """
    particle_count = positions.shape[0]
    conversions = 0
    for i in range(particle_count):
        for j in range(particle_count):
            if i == j:
                continue

            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            if dx * dx + dy * dy >= collision_sq:
                continue

            if (source_kinds[i] - source_kinds[j] + kind_count) % kind_count == 1:
                kinds[j] = source_kinds[i]
                conversions += 1
    return conversions


class SimulationPhase(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass
class SimulationState:
    """The authoritative, driver-owned state. Replaced wholesale on reset."""
    particles: ParticleSystem
    width: float
    height: float
    phase: SimulationPhase = SimulationPhase.RUNNING
    tick: int = 0
    conversions: int = 0


@dataclass(frozen=True)
class ParticleView:
    id: int
    x: float
    y: float
    kind: Kind


@dataclass(frozen=True)
class Snapshot:
    """An immutable copy of the population published between ticks."""
    particles: Tuple[ParticleView, ...]
    complete: bool
    tick: int
    width: float
    height: float
    counts: Dict[Kind, int] = field(default_factory=dict)


class Simulation:
    """
    Owns the particle population and runs the per-frame tick.
    """
    def __init__(
        self,
        params: Dict[str, Any],
        width: Optional[float] = None,
        height: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
        particles: Optional[ParticleSystem] = None,
    ):
        """
        Initializes the simulation.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (float): The width of the simulation area.
            height (float): The height of the simulation area.
            rng (np.random.Generator): Source of all randomness.
            particles (ParticleSystem): Explicit initial population.
        """
        self.particle_count = params.get('particle_count', NUM_PARTICLES)
        self.max_velocity = float(params.get('max_velocity', MAX_VELOCITY))
        self.detection_radius = float(params.get('detection_radius', DETECTION_RADIUS))
        self.collision_distance = float(params.get('collision_distance', COLLISION_DISTANCE))
        self.steering_gain = float(params.get('steering_gain', STEERING_GAIN))
        self.particle_size = float(params.get('particle_size', PARTICLE_SIZE))
        self.simultaneous_collisions = bool(params.get('simultaneous_collisions', False))

        # Validate config on initialization.
        for name in ('max_velocity', 'detection_radius', 'collision_distance'):
            value = getattr(self, name)
            if not value > 0:
                msg = f"Configuration error: {name} must be positive, got {value}."
                logging.critical(msg)
                raise ValueError(msg)
        if self.particle_size < 0 or self.steering_gain < 0:
            msg = (
                f"Configuration error: particle_size ({self.particle_size}) and "
                f"steering_gain ({self.steering_gain}) must not be negative."
            )
            logging.critical(msg)
            raise ValueError(msg)

        # Pre-calculate squared radii to avoid sqrt in the hot loops.
        self.detection_radius_sq = self.detection_radius ** 2
        self.collision_distance_sq = self.collision_distance ** 2

        self.rng = rng if rng is not None else np.random.default_rng(params.get('seed'))
        self.state: Optional[SimulationState] = None
        self._scheduler: Optional[FrameScheduler] = None
        self._frame_handle: Optional[int] = None

        logging.info(
            f"Simulation configured: {self.particle_count} particles, "
            f"detection radius {self.detection_radius:.1f}, "
            f"collision distance {self.collision_distance:.1f}, "
            f"{'simultaneous' if self.simultaneous_collisions else 'sequential'} collisions."
        )

        if particles is not None:
            if width is None or height is None:
                raise ValueError("An explicit population needs the viewport width and height.")
            self._install(particles, width, height)
        elif width is not None and height is not None:
            self.reset(width, height)

    # --- State ---

    @property
    def phase(self) -> SimulationPhase:
        if self.state is None:
            return SimulationPhase.UNINITIALIZED
        return self.state.phase

    @property
    def is_complete(self) -> bool:
        return self.phase is SimulationPhase.COMPLETE

    @property
    def particles(self) -> ParticleSystem:
        return self._require_state().particles

    @property
    def tick(self) -> int:
        return self._require_state().tick

    def _require_state(self) -> SimulationState:
        if self.state is None:
            raise RuntimeError("Simulation has no population yet; call reset(width, height) first.")
        return self.state

    def reset(self, width: float, height: float) -> None:
        """
        Discards the current population and seeds a fresh one for the
        given viewport. Clears any previous convergence.
        """
        particles = ParticleSystem.random(
            self.particle_count, width, height, self.rng,
            particle_size=self.particle_size,
            max_velocity=self.max_velocity,
        )
        self._install(particles, width, height)

    def _install(self, particles: ParticleSystem, width: float, height: float) -> None:
        if len(particles) == 0:
            msg = "Configuration error: the population must not be empty."
            logging.critical(msg)
            raise ValueError(msg)
        if width <= self.particle_size or height <= self.particle_size:
            msg = (
                f"Configuration error: viewport {width}x{height} must be larger "
                f"than the particle size ({self.particle_size}) on both axes."
            )
            logging.critical(msg)
            raise ValueError(msg)

        self.state = SimulationState(particles=particles, width=float(width), height=float(height))
        logging.info(f"Simulation reset for a {width}x{height} viewport with {len(particles)} particles.")
        self._check_convergence()

        # A fresh population resumes a loop that stopped on convergence
        if self._scheduler is not None and not self.is_complete and self._frame_handle is None:
            self._frame_handle = self._scheduler.request_frame(self._on_frame)

    # --- Tick ---

    def step(self) -> bool:
        """
        Executes one tick of the simulation.

        Returns:
            bool: True if the tick ran, False if the simulation is complete.
        """
        state = self._require_state()
        if state.phase is SimulationPhase.COMPLETE:
            return False

        particles = state.particles
        kind_count = len(Kind)

        # 1. Interaction reads positions from before this tick's move
        previous_positions = particles.positions.copy()

        # 2. Move and bounce off the walls
        _move_numba(
            particles.positions, particles.velocities,
            state.width - self.particle_size, state.height - self.particle_size
        )

        # 3. Chase prey and avoid predators, then clamp velocity
        _steer_numba(
            previous_positions, particles.kinds, particles.velocities,
            self.detection_radius_sq, self.steering_gain, self.max_velocity, kind_count
        )

        # 4. Convert prey on contact, using the post-move positions
        source_kinds = particles.kinds.copy() if self.simultaneous_collisions else particles.kinds
        conversions = _resolve_collisions_numba(
            particles.positions, source_kinds, particles.kinds,
            self.collision_distance_sq, kind_count
        )

        state.tick += 1
        state.conversions += conversions
        if conversions:
            logging.debug(f"Tick {state.tick}: {conversions} conversions, counts {particles.counts()}")

        # 5. Halt once a single kind remains
        self._check_convergence()
        return True

    def _check_convergence(self) -> None:
        state = self._require_state()
        survivors = state.particles.distinct_kinds()
        if len(survivors) == 1:
            state.phase = SimulationPhase.COMPLETE
            winner = next(iter(survivors))
            logging.info(
                f"Simulation complete after {state.tick} ticks: "
                f"{winner.label} holds all {len(state.particles)} particles."
            )
            self.stop()
        else:
            state.phase = SimulationPhase.RUNNING

    # --- Frame scheduling ---

    def start(self, scheduler: FrameScheduler) -> None:
        """Registers the tick with the frame scheduler."""
        self.stop()
        self._scheduler = scheduler
        if not self.is_complete:
            self._frame_handle = scheduler.request_frame(self._on_frame)

    def stop(self) -> None:
        """Revokes any pending next-frame callback."""
        if self._scheduler is not None and self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
        self._frame_handle = None

    @property
    def running(self) -> bool:
        return self._frame_handle is not None

    def _on_frame(self, frame: int) -> None:
        self._frame_handle = None
        self.step()
        if not self.is_complete and self._scheduler is not None:
            self._frame_handle = self._scheduler.request_frame(self._on_frame)

    # --- Read-only views ---

    def counts(self) -> Dict[Kind, int]:
        return self.particles.counts()

    def snapshot(self) -> Snapshot:
        state = self._require_state()
        particles = state.particles
        views = tuple(
            ParticleView(
                id=int(particles.ids[i]),
                x=float(particles.positions[i, 0]),
                y=float(particles.positions[i, 1]),
                kind=Kind(int(particles.kinds[i])),
            )
            for i in range(len(particles))
        )
        return Snapshot(
            particles=views,
            complete=state.phase is SimulationPhase.COMPLETE,
            tick=state.tick,
            width=state.width,
            height=state.height,
            counts=particles.counts(),
        )
