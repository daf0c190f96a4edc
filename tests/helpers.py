"""Builders shared by the test modules."""

import numpy as np

from evosim.config import EnvironmentParams
from evosim.creature import Creature
from evosim.dna import Brain, CreatureAction, ENABLED_ACTIONS, ENABLED_SENSORS
from evosim.environment import Environment
from evosim.neural_net import NeuralNet
from evosim.space import Orientation, Position


def forced_brain(action: CreatureAction = CreatureAction.STAY) -> Brain:
    """
    Brain that always picks `action`.

    All weights are zero so every hidden neuron is ReLU(0) = 0 and the
    output activations are exactly the output biases.
    """
    sizes = [len(ENABLED_SENSORS), 10, 10, len(ENABLED_ACTIONS)]
    weights = [np.zeros((n_out, n_in)) for n_in, n_out in zip(sizes[:-1], sizes[1:])]
    biases = [np.zeros(n) for n in sizes[1:]]
    biases[-1][ENABLED_ACTIONS.index(action)] = 1.0
    return Brain(NeuralNet(weights, biases), ENABLED_SENSORS, ENABLED_ACTIONS)


def small_params(width: int = 7, height: int = 7, **overrides) -> EnvironmentParams:
    """An empty board with no food growth."""
    values = dict(
        env_x_size=width,
        env_y_size=height,
        num_start_creatures=0,
        num_start_food=0,
        num_start_walls=0,
        avg_new_food_per_tick=0.0,
    )
    values.update(overrides)
    return EnvironmentParams(**values)


def empty_env(width: int = 7, height: int = 7, seed: int = 0, **overrides) -> Environment:
    return Environment(small_params(width, height, **overrides), rng=np.random.default_rng(seed))


def place(env: Environment,
          creature_id: int,
          x: int,
          y: int,
          action: CreatureAction = CreatureAction.STAY,
          orientation: Orientation = Orientation.UP,
          energy: int = 10) -> Creature:
    creature = Creature(
        creature_id,
        forced_brain(action),
        env.params.creature_params(),
        position=Position(x, y),
        orientation=orientation,
        energy=energy,
    )
    env.add_creature(creature)
    return creature
