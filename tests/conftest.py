"""
Shared fixtures for the simulation tests.
"""
import logging

import numpy as np
import pytest

from particle import ParticleSystem


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def params():
    return {
        "particle_count": 30,
        "max_velocity": 2.0,
        "detection_radius": 100.0,
        "collision_distance": 20.0,
        "steering_gain": 0.01,
        "particle_size": 24,
    }


@pytest.fixture
def make_particles():
    """Builds a stationary population from (x, y, kind) triples."""
    def _make(*entries, velocities=None):
        positions = [(x, y) for x, y, _ in entries]
        kinds = [kind for _, _, kind in entries]
        if velocities is None:
            velocities = [(0.0, 0.0)] * len(entries)
        return ParticleSystem(positions, velocities, kinds)
    return _make


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
