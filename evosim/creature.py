"""
Creature - A single agent on the grid

Each creature owns a Brain and a small amount of per-tick state:
- Position, orientation, energy, age
- What it currently sees (VisionReading)
- Colour, last action taken, alive/killed flags

Per tick the environment calls sense_surroundings() then
perform_next_action(). The creature updates everything that does not depend
on the grid (age, energy, rotation) itself; movement, eating, killing and
reproduction are resolved by the environment.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import (
    CreatureParams,
    DEFAULT_CREATURE_COLOR,
    KILLER_COLOR_SHIFT,
    MAX_AGE,
    MAX_ENERGY,
    REPRODUCE_ENERGY_THRESHOLD,
    VISION_INVALID_VALUE,
)
from .dna import Brain, CreatureAction, SensorType, ENABLED_ACTIONS, ENABLED_SENSORS
from .space import Color, Orientation, Position, SpaceState


# =============================================================================
# VISION STATE
# =============================================================================

@dataclass
class VisionReading:
    """
    What a creature sees straight ahead.

    distance/color/space are meaningless when in_view is False.
    """
    in_view: bool = False
    distance: int = 0
    color: Color = field(default_factory=lambda: Color(0, 0, 0))
    space: SpaceState = field(default_factory=SpaceState.blank)

    def to_dict(self) -> dict:
        return {
            'in_view': self.in_view,
            'distance': self.distance,
            'color': list(self.color.as_tuple()),
            'space': self.space.to_token(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'VisionReading':
        return cls(
            in_view=bool(d['in_view']),
            distance=int(d['distance']),
            color=Color.from_seq(d['color']),
            space=SpaceState.from_token(d['space']),
        )


# =============================================================================
# CREATURE
# =============================================================================

class Creature:
    """
    Agent state machine: Alive -> (sense -> decide -> age/energy update) -> Dead.

    Dead is terminal; the environment removes dead creatures at the end of
    the tick in which they are detected.
    """

    def __init__(self,
                 creature_id: int,
                 brain: Brain,
                 params: Optional[CreatureParams] = None,
                 position: Position = Position(0, 0),
                 orientation: Orientation = Orientation.UP,
                 energy: Optional[int] = None,
                 color: Color = Color(*DEFAULT_CREATURE_COLOR)):
        self.id = int(creature_id)
        self.brain = brain
        self.params = params or CreatureParams()

        self.position = position
        self.orientation = orientation
        self.energy = self.params.starting_energy if energy is None else int(energy)
        self.age = 0
        self.vision = VisionReading()
        self.color = color
        self.last_action = CreatureAction.STAY

        self.is_alive = True
        self.killed = False     # Killed by another creature (vs. natural death)
        self.kills = 0

    # ============= CONSTRUCTORS ================

    @classmethod
    def new(cls,
            creature_id: int,
            params: CreatureParams,
            rng: np.random.Generator,
            position: Position = Position(0, 0),
            orientation: Orientation = Orientation.UP) -> 'Creature':
        """A fresh creature with a random brain."""
        brain = Brain.random(ENABLED_SENSORS, ENABLED_ACTIONS, rng)
        return cls(creature_id, brain, params, position=position, orientation=orientation)

    @classmethod
    def new_offspring(cls,
                      creature_id: int,
                      parent: 'Creature',
                      mutation_prob: float,
                      rng: np.random.Generator) -> 'Creature':
        """
        Child of `parent`: mutated brain copy, parent's position and
        orientation as a starting point, fresh energy and age.
        """
        child = cls(
            creature_id,
            Brain.copy_with_mutation(parent.brain, mutation_prob, rng),
            parent.params,
            position=parent.position,
            orientation=parent.orientation,
            energy=parent.params.starting_energy,
            color=parent.color,
        )

        if parent.params.violence_color_mode:
            # Docile until proven otherwise
            child.unset_killer()
        else:
            child.color = parent.color.mutated(mutation_prob, rng)

        return child

    # ============= STATE ================

    @property
    def is_dead(self) -> bool:
        return (not self.is_alive) or self.energy == 0 or self.age >= MAX_AGE

    @property
    def was_killed(self) -> bool:
        return self.killed

    def set_position(self, x: int, y: int):
        self.position = Position(int(x), int(y))

    def set_orientation(self, orientation: Orientation):
        self.orientation = orientation

    def set_vision(self, vision: VisionReading):
        self.vision = vision

    def eat_food(self, amount: int):
        """Gain energy, capped at MAX_ENERGY."""
        self.energy = min(MAX_ENERGY, self.energy + int(amount))

    def kill(self):
        """Another creature has hunted this one."""
        self.energy = 0
        self.is_alive = False
        self.killed = True

    def set_killer(self):
        """Record a successful kill. In violence colour mode, turn redder."""
        self.kills += 1
        if self.params.violence_color_mode:
            self.color = self.color.shifted(red=KILLER_COLOR_SHIFT, blue=-KILLER_COLOR_SHIFT)

    def unset_killer(self):
        if self.params.violence_color_mode:
            self.color = self.color.shifted(red=-KILLER_COLOR_SHIFT, blue=KILLER_COLOR_SHIFT)

    # ============= SENSE / DECIDE ================

    def sense_surroundings(self):
        """Populate the brain inputs from the current state. Call before perform_next_action()."""
        if self.vision.in_view:
            vis_dist = float(self.vision.distance)
            vis_red, vis_green, vis_blue = (float(c) for c in self.vision.color.as_tuple())
        else:
            # Far outside any real reading so "nothing visible" stands out
            vis_dist = vis_red = vis_green = vis_blue = VISION_INVALID_VALUE

        values = {
            SensorType.AGE: float(self.age),
            SensorType.ENERGY: float(self.energy),
            SensorType.VISION_DISTANCE: vis_dist,
            SensorType.VISION_RED: vis_red,
            SensorType.VISION_GREEN: vis_green,
            SensorType.VISION_BLUE: vis_blue,
            SensorType.LAST_ACTION: self.last_action.code,
            SensorType.ORIENTATION: self.orientation.code,
        }

        for slot, sensor in enumerate(self.brain.input_types):
            if sensor in values:
                self.brain.set_input(slot, values[sensor])

    def action_cost(self, action: CreatureAction) -> int:
        if action == CreatureAction.REPRODUCE:
            return self.params.reproduce_energy_cost
        if action.is_move:
            return self.params.move_energy_cost
        if action.is_rotation:
            return self.params.rotate_energy_cost
        if action == CreatureAction.KILL:
            return self.params.kill_energy_cost
        return 0

    def perform_next_action(self) -> CreatureAction:
        """
        Decide this tick's action.

        Ages the creature, forces reproduction when energy is above the
        threshold (without consulting the brain), otherwise evaluates the
        brain, applies rotation and debits the action's energy cost. Returns
        STAY whenever the creature is or becomes dead.
        """
        if self.is_dead:
            self.last_action = CreatureAction.STAY
            return CreatureAction.STAY

        self.age += 1
        if self.age >= MAX_AGE:
            self.age = MAX_AGE
            self.is_alive = False
            self.last_action = CreatureAction.STAY
            return CreatureAction.STAY

        if self.energy > REPRODUCE_ENERGY_THRESHOLD:
            self.energy = max(0, self.energy - self.params.reproduce_energy_cost)
            if self.energy == 0:
                self.is_alive = False
                self.last_action = CreatureAction.STAY
                return CreatureAction.STAY
            self.last_action = CreatureAction.REPRODUCE
            return CreatureAction.REPRODUCE

        action = self.brain.get_next_action()
        self.last_action = action

        # Rotation is the only action that does not depend on the grid
        self.apply_rotation(action)

        self.energy = max(0, self.energy - self.action_cost(action))
        if self.energy == 0:
            self.is_alive = False
            action = CreatureAction.STAY

        return action

    def apply_rotation(self, action: CreatureAction):
        if action == CreatureAction.ROTATE_CW:
            self.orientation = self.orientation.rotate_cw()
        elif action == CreatureAction.ROTATE_CCW:
            self.orientation = self.orientation.rotate_ccw()

    # ============= SERIALIZATION ================

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'params': self.params.to_dict(),
            'brain': self.brain.to_dict(),
            'position': self.position.to_list(),
            'orientation': self.orientation.value,
            'energy': self.energy,
            'age': self.age,
            'vision': self.vision.to_dict(),
            'color': list(self.color.as_tuple()),
            'last_action': self.last_action.value,
            'is_alive': self.is_alive,
            'killed': self.killed,
            'kills': self.kills,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Creature':
        """
        Raises:
            ConfigError: the stored CreatureParams do not validate
            ValueError: energy or age out of range, or a bad enum value
        """
        params = CreatureParams.from_dict(d.get('params', {}))
        params.validate()
        creature = cls(
            d['id'],
            Brain.from_dict(d['brain']),
            params,
            position=Position.from_list(d['position']),
            orientation=Orientation(d['orientation']),
            energy=d['energy'],
            color=Color.from_seq(d['color']),
        )
        creature.age = int(d['age'])
        creature.vision = VisionReading.from_dict(d['vision'])
        creature.last_action = CreatureAction(d['last_action'])
        creature.is_alive = bool(d.get('is_alive', True))
        creature.killed = bool(d.get('killed', False))
        creature.kills = int(d.get('kills', 0))

        if not 0 <= creature.energy <= MAX_ENERGY:
            raise ValueError(f"Creature {creature.id} energy out of range: {creature.energy}")
        if not 0 <= creature.age <= MAX_AGE:
            raise ValueError(f"Creature {creature.id} age out of range: {creature.age}")
        return creature

    def __repr__(self) -> str:
        return (f"Creature(id={self.id}, pos=({self.position.x}, {self.position.y}), "
                f"energy={self.energy}, age={self.age}, alive={self.is_alive})")


__all__ = [
    'VisionReading',
    'Creature',
]
