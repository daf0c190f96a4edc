"""
DNA - Creature Brains and Inheritance

A creature's heritable material is its brain: a NeuralNet plus a fixed
mapping from input slots to sensor types and from output slots to actions.

INHERITANCE:
    Offspring receive a full copy of the parent's weights and biases, where
    every scalar independently has `mutation_prob` chance of being replaced
    by a fresh random value. There is no crossover; mutation is the only
    source of variation.

USAGE:
    brain = Brain.random(ENABLED_SENSORS, ENABLED_ACTIONS, rng)
    brain.set_input(0, 12.0)
    action = brain.get_next_action()
    child = Brain.copy_with_mutation(brain, 0.02, rng)
"""

from enum import Enum
from typing import List, Sequence

import numpy as np

from .config import (
    BRAIN_HIDDEN_LAYERS,
    BRAIN_MIN_INIT_VALUE,
    BRAIN_MAX_INIT_VALUE,
)
from .errors import ConfigError
from .neural_net import NeuralNet


# =============================================================================
# SENSORS & ACTIONS
# =============================================================================

class SensorType(Enum):
    """Semantic input channels. Each maps to exactly one input neuron."""
    UNUSED = "unused"
    AGE = "age"
    ENERGY = "energy"
    VISION_DISTANCE = "vision_distance"
    VISION_RED = "vision_red"
    VISION_GREEN = "vision_green"
    VISION_BLUE = "vision_blue"
    LAST_ACTION = "last_action"
    ORIENTATION = "orientation"


class CreatureAction(Enum):
    """Everything a creature can decide to do in one tick."""
    STAY = "stay"
    MOVE_FORWARDS = "move_forwards"
    MOVE_BACKWARDS = "move_backwards"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    ROTATE_CCW = "rotate_ccw"
    ROTATE_CW = "rotate_cw"
    REPRODUCE = "reproduce"
    KILL = "kill"

    @property
    def code(self) -> float:
        """Numeric value fed back to the brain as the last-action sensor."""
        return _ACTION_CODES[self]

    @property
    def is_move(self) -> bool:
        return self in _MOVE_ACTIONS

    @property
    def is_rotation(self) -> bool:
        return self in (CreatureAction.ROTATE_CW, CreatureAction.ROTATE_CCW)


# Similar actions get nearby codes
_ACTION_CODES = {
    CreatureAction.STAY: 0.0,
    CreatureAction.MOVE_FORWARDS: 2.0,
    CreatureAction.MOVE_BACKWARDS: 3.0,
    CreatureAction.MOVE_LEFT: 4.0,
    CreatureAction.MOVE_RIGHT: 5.0,
    CreatureAction.ROTATE_CCW: 10.0,
    CreatureAction.ROTATE_CW: 11.0,
    CreatureAction.REPRODUCE: 15.0,
    CreatureAction.KILL: 20.0,
}

_MOVE_ACTIONS = frozenset({
    CreatureAction.MOVE_FORWARDS,
    CreatureAction.MOVE_BACKWARDS,
    CreatureAction.MOVE_LEFT,
    CreatureAction.MOVE_RIGHT,
})

ENABLED_SENSORS: List[SensorType] = [
    SensorType.AGE,
    SensorType.ENERGY,
    SensorType.VISION_DISTANCE,
    SensorType.VISION_RED,
    SensorType.VISION_GREEN,
    SensorType.VISION_BLUE,
    SensorType.ORIENTATION,
    SensorType.LAST_ACTION,
]

ENABLED_ACTIONS: List[CreatureAction] = [
    CreatureAction.STAY,
    CreatureAction.MOVE_FORWARDS,
    CreatureAction.MOVE_BACKWARDS,
    CreatureAction.MOVE_LEFT,
    CreatureAction.MOVE_RIGHT,
    CreatureAction.ROTATE_CCW,
    CreatureAction.ROTATE_CW,
    CreatureAction.REPRODUCE,
    CreatureAction.KILL,
]


# =============================================================================
# BRAIN
# =============================================================================

class Brain:
    """
    Creature brain: a NeuralNet with semantic input/output slots.

    Topology is [num sensors, *BRAIN_HIDDEN_LAYERS, num actions]; all
    parameters start uniform in [BRAIN_MIN_INIT_VALUE, BRAIN_MAX_INIT_VALUE].
    """

    def __init__(self,
                 net: NeuralNet,
                 input_types: Sequence[SensorType],
                 output_types: Sequence[CreatureAction]):
        if net.num_inputs != len(input_types):
            raise ValueError(
                f"Network has {net.num_inputs} inputs but {len(input_types)} sensor types were given"
            )
        if net.num_outputs != len(output_types):
            raise ValueError(
                f"Network has {net.num_outputs} outputs but {len(output_types)} action types were given"
            )
        self.net = net
        self.input_types: List[SensorType] = list(input_types)
        self.output_types: List[CreatureAction] = list(output_types)

    @classmethod
    def random(cls,
               input_types: Sequence[SensorType],
               output_types: Sequence[CreatureAction],
               rng: np.random.Generator) -> 'Brain':
        layer_sizes = [len(input_types), *BRAIN_HIDDEN_LAYERS, len(output_types)]
        net = NeuralNet.random(layer_sizes, BRAIN_MIN_INIT_VALUE, BRAIN_MAX_INIT_VALUE, rng)
        return cls(net, input_types, output_types)

    @classmethod
    def copy_with_mutation(cls,
                           parent: 'Brain',
                           mutation_prob: float,
                           rng: np.random.Generator) -> 'Brain':
        """
        Deep-copy `parent`, then overwrite each scalar with probability
        `mutation_prob` using a fresh sample from the initialization range.
        Slot mappings are inherited unchanged.
        """
        if not 0.0 <= mutation_prob <= 1.0:
            raise ConfigError(f"mutation_prob must be in [0, 1] (got {mutation_prob})")

        net = parent.net.copy()
        net.mutate(mutation_prob, BRAIN_MIN_INIT_VALUE, BRAIN_MAX_INIT_VALUE, rng)
        return cls(net, parent.input_types, parent.output_types)

    # ------------------------------------------------------------------

    def set_input(self, slot: int, value: float):
        self.net.set_input(slot, value)

    def evaluate(self) -> np.ndarray:
        return self.net.evaluate()

    def get_next_action(self) -> CreatureAction:
        """Evaluate the network and return the action of the strongest output."""
        self.net.evaluate()
        return self.output_types[self.net.argmax_output()]

    @property
    def weights(self) -> List[np.ndarray]:
        return self.net.weights

    @property
    def biases(self) -> List[np.ndarray]:
        return self.net.biases

    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            'input_types': [t.value for t in self.input_types],
            'output_types': [a.value for a in self.output_types],
            'net': self.net.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Brain':
        return cls(
            NeuralNet.from_dict(d['net']),
            [SensorType(t) for t in d['input_types']],
            [CreatureAction(a) for a in d['output_types']],
        )

    def __repr__(self) -> str:
        return f"Brain(layers={self.net.layer_sizes}, parameters={self.net.num_parameters})"


__all__ = [
    'SensorType',
    'CreatureAction',
    'ENABLED_SENSORS',
    'ENABLED_ACTIONS',
    'Brain',
]
