"""
Tests for the tick pipeline: kinematics, steering, collisions and convergence.
"""
import dataclasses

import numpy as np
import pytest

from particle import Kind
from simulation import Simulation, SimulationPhase

WIDTH, HEIGHT = 400, 300


@pytest.fixture
def sim(params, rng):
    return Simulation(params, WIDTH, HEIGHT, rng=rng)


class TestInvariants:
    """Properties that hold on every tick of a random run."""

    def test_population_bounds_and_velocity(self, sim):
        size = sim.particle_size
        for _ in range(300):
            sim.step()
            particles = sim.particles
            assert len(particles) == 30
            assert sum(sim.counts().values()) == 30
            assert (particles.positions >= 0).all()
            assert (particles.positions[:, 0] <= WIDTH - size).all()
            assert (particles.positions[:, 1] <= HEIGHT - size).all()
            assert (np.abs(particles.velocities) <= sim.max_velocity).all()

    def test_ids_never_change(self, sim):
        for _ in range(50):
            sim.step()
        assert sim.particles.ids.tolist() == list(range(30))

    def test_same_seed_same_run(self, params):
        a = Simulation(params, WIDTH, HEIGHT, rng=np.random.default_rng(99))
        b = Simulation(params, WIDTH, HEIGHT, rng=np.random.default_rng(99))
        for _ in range(200):
            a.step()
            b.step()
            np.testing.assert_array_equal(a.particles.positions, b.particles.positions)
            np.testing.assert_array_equal(a.particles.velocities, b.particles.velocities)
            np.testing.assert_array_equal(a.particles.kinds, b.particles.kinds)
        assert a.phase is b.phase

    def test_conversions_follow_dominance(self, params, rng):
        params = dict(params, simultaneous_collisions=True)
        sim = Simulation(params, WIDTH, HEIGHT, rng=rng)
        for _ in range(300):
            if sim.is_complete:
                break
            before = sim.particles.kinds.copy()
            sim.step()
            after = sim.particles.kinds
            positions = sim.particles.positions
            for q in np.flatnonzero(before != after):
                winner = Kind(int(after[q]))
                assert winner.beats(Kind(int(before[q])))
                distances = np.linalg.norm(positions - positions[q], axis=1)
                converters = [
                    p for p in range(len(before))
                    if p != q and before[p] == winner and distances[p] < sim.collision_distance
                ]
                assert converters


class TestKinematics:
    """Movement and wall reflection."""

    def test_position_advances_by_velocity(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (300, 250, Kind.PAPER),
                                   velocities=[(1.5, -0.5), (0.0, 0.0)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.positions[0].tolist() == pytest.approx([101.5, 99.5])

    def test_bounce_off_left_wall(self, params, make_particles):
        particles = make_particles((0.5, 50, Kind.ROCK), (300, 250, Kind.PAPER),
                                   velocities=[(-1.0, 0.0), (0.0, 0.0)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.positions[0, 0] == 0.0
        assert sim.particles.velocities[0, 0] == pytest.approx(1.0)

    def test_bounce_on_both_axes(self, params, make_particles):
        max_x, max_y = WIDTH - 24, HEIGHT - 24
        particles = make_particles((max_x - 0.5, max_y - 0.5, Kind.ROCK), (20, 20, Kind.PAPER),
                                   velocities=[(1.0, 1.0), (0.0, 0.0)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.positions[0].tolist() == [max_x, max_y]
        assert sim.particles.velocities[0].tolist() == pytest.approx([-1.0, -1.0])


class TestSteering:
    """Chase prey, flee predators, clamp velocity."""

    def test_predator_chases_and_prey_flees(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (150, 100, Kind.SCISSORS))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        rock, scissors = sim.particles.velocities
        assert rock.tolist() == pytest.approx([0.5, 0.0])
        assert scissors.tolist() == pytest.approx([0.5, 0.0])
        # Steering takes effect on the next move
        assert sim.particles.positions[0].tolist() == [100, 100]

    def test_same_kind_ignores_each_other(self, params, make_particles):
        particles = make_particles((100, 100, Kind.PAPER), (150, 100, Kind.PAPER),
                                   (350, 250, Kind.ROCK))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.velocities[:2].tolist() == [[0.0, 0.0], [0.0, 0.0]]

    def test_outside_detection_radius_ignored(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (200, 100, Kind.SCISSORS))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert not sim.particles.velocities.any()

    def test_velocity_is_clamped(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (190, 100, Kind.SCISSORS),
                                   velocities=[(1.8, 0.0), (0.0, 0.0)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.velocities[0, 0] == 2.0
        assert sim.particles.velocities[1, 0] == pytest.approx(0.9)

    def test_steering_uses_positions_before_move(self, params, make_particles):
        # The rock moves 2px toward the scissors, but steering sees the old gap.
        particles = make_particles((100, 100, Kind.ROCK), (160, 100, Kind.SCISSORS),
                                   velocities=[(2.0, 0.0), (0.0, 0.0)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.velocities[1, 0] == pytest.approx(0.6)


class TestCollisions:
    """Type conversion on contact."""

    def test_predator_converts_prey(self, params, make_particles):
        particles = make_particles((100, 100, Kind.PAPER), (110, 100, Kind.ROCK),
                                   (300, 250, Kind.SCISSORS))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.kinds.tolist() == [Kind.PAPER, Kind.PAPER, Kind.SCISSORS]
        assert sim.state.conversions == 1

    def test_collision_distance_is_exclusive(self, params, make_particles):
        particles = make_particles((100, 100, Kind.PAPER), (120, 100, Kind.ROCK))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.particles.kinds.tolist() == [Kind.PAPER, Kind.ROCK]

    def test_sequential_pass_cascades(self, params, make_particles):
        particles = make_particles((100, 100, Kind.PAPER), (110, 100, Kind.ROCK),
                                   (120, 100, Kind.SCISSORS))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        # The rock turns to paper, then falls to the scissors in the same pass
        assert sim.particles.kinds.tolist() == [Kind.PAPER, Kind.SCISSORS, Kind.SCISSORS]

    def test_simultaneous_pass_reads_start_of_tick(self, params, make_particles):
        particles = make_particles((100, 100, Kind.PAPER), (110, 100, Kind.ROCK),
                                   (120, 100, Kind.SCISSORS))
        sim = Simulation(dict(params, simultaneous_collisions=True), WIDTH, HEIGHT,
                         particles=particles)
        sim.step()
        assert sim.particles.kinds.tolist() == [Kind.PAPER, Kind.PAPER, Kind.ROCK]


class TestConvergence:
    """Termination once a single kind remains."""

    def test_two_rocks_take_the_scissors(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (100, 110, Kind.ROCK),
                                   (100, 105, Kind.SCISSORS))
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        assert sim.phase is SimulationPhase.RUNNING
        assert sim.step()
        assert sim.particles.distinct_kinds() == {Kind.ROCK}
        assert sim.is_complete
        assert sim.snapshot().complete

    def test_no_changes_after_complete(self, params, make_particles):
        particles = make_particles((100, 100, Kind.ROCK), (100, 110, Kind.ROCK),
                                   (100, 105, Kind.SCISSORS),
                                   velocities=[(1.0, 1.0), (-1.0, 0.5), (0.5, 0.5)])
        sim = Simulation(params, WIDTH, HEIGHT, particles=particles)
        sim.step()
        assert sim.is_complete
        frozen = sim.particles.copy()
        for _ in range(10):
            assert not sim.step()
        np.testing.assert_array_equal(sim.particles.positions, frozen.positions)
        np.testing.assert_array_equal(sim.particles.velocities, frozen.velocities)
        np.testing.assert_array_equal(sim.particles.kinds, frozen.kinds)
        assert sim.tick == 1

    def test_single_particle_is_complete_immediately(self, params, rng):
        sim = Simulation(dict(params, particle_count=1), WIDTH, HEIGHT, rng=rng)
        assert sim.is_complete
        position = sim.particles.positions.copy()
        assert not sim.step()
        assert sim.tick == 0
        np.testing.assert_array_equal(sim.particles.positions, position)

    def test_reset_starts_a_fresh_run(self, params, make_particles, rng):
        particles = make_particles((100, 100, Kind.ROCK), (100, 105, Kind.SCISSORS))
        sim = Simulation(dict(params, particle_count=300), WIDTH, HEIGHT, rng=rng,
                         particles=particles)
        sim.step()
        assert sim.is_complete
        sim.reset(640, 480)
        assert sim.phase is SimulationPhase.RUNNING
        assert sim.tick == 0
        assert len(sim.particles) == 300
        assert sim.snapshot().width == 640


class TestLifecycle:
    """Construction, validation and snapshots."""

    def test_uninitialized_until_reset(self, params, rng):
        sim = Simulation(params, rng=rng)
        assert sim.phase is SimulationPhase.UNINITIALIZED
        with pytest.raises(RuntimeError):
            sim.step()
        sim.reset(WIDTH, HEIGHT)
        assert sim.phase in (SimulationPhase.RUNNING, SimulationPhase.COMPLETE)

    @pytest.mark.parametrize("override", [
        {"max_velocity": 0},
        {"detection_radius": -1},
        {"collision_distance": 0},
        {"steering_gain": -0.01},
    ])
    def test_invalid_parameters_rejected(self, params, override):
        with pytest.raises(ValueError):
            Simulation(dict(params, **override), WIDTH, HEIGHT)

    def test_non_positive_population_rejected(self, params, rng):
        with pytest.raises(ValueError):
            Simulation(dict(params, particle_count=0), WIDTH, HEIGHT, rng=rng)

    def test_viewport_too_small_rejected(self, params, rng):
        with pytest.raises(ValueError):
            Simulation(params, 20, HEIGHT, rng=rng)

    def test_seed_parameter_seeds_population(self, params):
        a = Simulation(dict(params, seed=5), WIDTH, HEIGHT)
        b = Simulation(dict(params, seed=5), WIDTH, HEIGHT)
        np.testing.assert_array_equal(a.particles.positions, b.particles.positions)

    def test_snapshot_is_an_immutable_copy(self, sim):
        snapshot = sim.snapshot()
        assert len(snapshot.particles) == 30
        assert [p.id for p in snapshot.particles] == list(range(30))
        assert sum(snapshot.counts.values()) == 30
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.complete = True
        x = snapshot.particles[0].x
        sim.particles.positions[0, 0] += 5.0
        assert snapshot.particles[0].x == x
