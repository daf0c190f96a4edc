import pytest

from evosim.config import (
    EnvironmentParams,
    FIGHT_PERSISTENCE_STEPS,
    MAX_AGE,
    MAX_ENERGY,
    MAX_OFFSPRING_SPAWN_DIST,
    REPRODUCE_ENERGY_THRESHOLD,
)
from evosim.dna import CreatureAction
from evosim.environment import Environment
from evosim.errors import (
    ConfigError,
    CreatureNotFound,
    EarlyExit,
    InvariantViolation,
    OccupiedSpaceError,
    ResourceExhausted,
)
from evosim.layouts import NUM_PRESETS, preset_walls
from evosim.space import Orientation, Position, SpaceState

from helpers import empty_env, place, small_params


A = CreatureAction


# =============================================================================
# CONSTRUCTION
# =============================================================================

def test_new_random_populates_board():
    params = small_params(20, 20, num_start_creatures=30, num_start_food=40, num_start_walls=25)
    env = Environment.new_random(params, seed=1)

    assert env.num_creatures == len(env.creatures) == 30
    assert env.num_food == 40
    assert env.num_walls == 25
    assert [c.id for c in env.creatures] == list(range(30))
    assert env.num_total_creatures == 30
    assert env.time_step == 0
    env.check_invariants()


@pytest.mark.parametrize("overrides", [
    dict(env_x_size=0),
    dict(env_y_size=5000),
    dict(mutation_prob=1.5),
    dict(mutation_prob=-0.1),
    dict(num_start_creatures=101),
    dict(num_start_food=60, num_start_walls=50),
    dict(max_offspring_per_reproduce=0),
    dict(avg_new_food_per_tick=-1.0),
])
def test_invalid_params_rejected(overrides):
    with pytest.raises(ConfigError):
        Environment.new_random(small_params(10, 10, **overrides), seed=0)


def test_preset_places_layout_walls():
    params = EnvironmentParams.console_defaults()
    env = Environment.new_random(params, preset=2, seed=4)

    walls = preset_walls(2)
    assert env.num_walls == len(walls)
    assert all(env.get_space(p) == SpaceState.wall() for p in walls)
    assert env.num_creatures == params.num_start_creatures
    assert env.num_food == params.num_start_food


def test_preset_rejects_wrong_board_or_index():
    with pytest.raises(ConfigError):
        Environment.new_random(small_params(30, 30), preset=0)
    with pytest.raises(ConfigError):
        Environment.new_random(EnvironmentParams.console_defaults(), preset=NUM_PRESETS)


def test_every_preset_builds():
    for index in range(NUM_PRESETS):
        walls = preset_walls(index)
        assert walls
        assert all(0 <= p.x < 64 and 0 <= p.y < 64 for p in walls)
        assert len(set(walls)) == len(walls)


# =============================================================================
# TICK PROPERTIES
# =============================================================================

def test_invariants_hold_over_many_ticks():
    params = small_params(16, 16, num_start_creatures=40, num_start_food=50,
                          num_start_walls=20, avg_new_food_per_tick=2.0)
    env = Environment.new_random(params, seed=3)
    area = env.width * env.height

    for _ in range(150):
        env.advance_step()
        env.check_invariants()
        assert env.num_blank + env.num_food + env.num_walls + env.num_creatures + env.num_fight == area
        for creature in env.creatures:
            assert 0 <= creature.energy <= MAX_ENERGY
            assert 0 <= creature.age <= MAX_AGE
        if not env.creatures:
            break


def test_seeded_runs_are_identical():
    params = small_params(15, 15, num_start_creatures=25, num_start_food=30,
                          num_start_walls=10, avg_new_food_per_tick=1.5)
    a = Environment.new_random(params, seed=11)
    b = Environment.new_random(params, seed=11)

    for _ in range(40):
        a.advance_step()
        b.advance_step()

    assert a.to_json() == b.to_json()


def test_time_step_advances():
    env = empty_env()
    place(env, 0, 3, 3)
    env.run_n_steps(5)
    assert env.time_step == 5


# =============================================================================
# MOVEMENT
# =============================================================================

def test_wall_blocks_movement():
    env = empty_env()
    env.add_wall_space(Position(3, 2))
    creature = place(env, 0, 2, 2, A.MOVE_FORWARDS, Orientation.RIGHT, energy=10)

    env.advance_step()

    assert creature.position == Position(2, 2)
    assert creature.energy == 9
    assert env.get_space(Position(3, 2)) == SpaceState.wall()


def test_creature_blocks_movement():
    env = empty_env()
    mover = place(env, 0, 2, 2, A.MOVE_FORWARDS, Orientation.RIGHT)
    place(env, 1, 3, 2)

    env.advance_step()

    assert mover.position == Position(2, 2)
    env.check_invariants()


def test_movement_wraps_at_edges():
    env = empty_env(5, 5)
    creature = place(env, 0, 4, 2, A.MOVE_FORWARDS, Orientation.RIGHT)

    env.advance_step()

    assert creature.position == Position(0, 2)
    assert env.get_space(Position(4, 2)) == SpaceState.blank()
    assert env.get_space(Position(0, 2)) == SpaceState.creature(0)


@pytest.mark.parametrize("action, expected", [
    (A.MOVE_FORWARDS, Position(3, 2)),
    (A.MOVE_BACKWARDS, Position(3, 4)),
    (A.MOVE_RIGHT, Position(4, 3)),
    (A.MOVE_LEFT, Position(2, 3)),
])
def test_moves_are_relative_to_orientation(action, expected):
    env = empty_env()
    creature = place(env, 0, 3, 3, action, Orientation.UP)
    env.advance_step()
    assert creature.position == expected


def test_moves_follow_rotated_orientation():
    env = empty_env()
    creature = place(env, 0, 3, 3, A.MOVE_LEFT, Orientation.RIGHT)
    env.advance_step()
    assert creature.position == Position(3, 2)


def test_moving_onto_food_eats_it():
    env = empty_env(energy_per_food_piece=40)
    env.add_food_space(Position(3, 2))
    creature = place(env, 0, 3, 3, A.MOVE_FORWARDS, Orientation.UP, energy=10)

    env.advance_step()

    assert creature.position == Position(3, 2)
    assert creature.energy == 10 - 1 + 40
    assert env.num_food == 0


def test_moving_onto_fight_space():
    env = empty_env()
    env._set_space(Position(3, 2), SpaceState.fight(10))
    creature = place(env, 0, 3, 3, A.MOVE_FORWARDS, Orientation.UP)

    env.advance_step()

    assert creature.position == Position(3, 2)
    assert env.num_fight == 0


# =============================================================================
# KILLING
# =============================================================================

def test_adjacent_kill_succeeds():
    env = empty_env(energy_per_kill=30)
    attacker = place(env, 0, 2, 2, A.KILL, Orientation.RIGHT, energy=10)
    place(env, 1, 3, 2)
    env.update_creature_vision()

    env.advance_step()

    assert [c.id for c in env.creatures] == [0]
    assert env.get_space(Position(3, 2)) == SpaceState.fight(FIGHT_PERSISTENCE_STEPS)
    assert env.num_kills == 1
    assert env.num_natural_deaths == 0
    assert attacker.energy == 10 - 1 + 30
    assert attacker.kills == 1


def test_kill_at_distance_is_noop():
    env = empty_env()
    attacker = place(env, 0, 2, 2, A.KILL, Orientation.RIGHT, energy=10)
    victim = place(env, 1, 4, 2)
    env.update_creature_vision()
    assert attacker.vision.distance == 2

    env.advance_step()

    assert victim.is_alive
    assert len(env.creatures) == 2
    assert attacker.energy == 9


@pytest.mark.parametrize("target", [SpaceState.food(), SpaceState.wall(), None])
def test_kill_without_creature_in_view_is_noop(target):
    env = empty_env()
    if target is not None:
        env._set_space(Position(3, 2), target)
    attacker = place(env, 0, 2, 2, A.KILL, Orientation.RIGHT, energy=10)
    env.update_creature_vision()

    env.advance_step()

    assert attacker.energy == 9
    assert attacker.kills == 0
    assert env.num_kills == 0
    if target is not None:
        assert env.get_space(Position(3, 2)) == target


def test_fight_space_decays_to_blank():
    env = empty_env()
    env._set_space(Position(1, 1), SpaceState.fight(2))

    env.advance_step()
    assert env.get_space(Position(1, 1)) == SpaceState.fight(1)
    assert env.num_fight == 1

    env.advance_step()
    assert env.get_space(Position(1, 1)) == SpaceState.blank()
    assert env.num_fight == 0


# =============================================================================
# BIRTH & DEATH
# =============================================================================

def test_starved_creature_is_removed():
    env = empty_env()
    place(env, 0, 3, 3, A.MOVE_FORWARDS, Orientation.UP, energy=1)

    env.advance_step()

    assert env.creatures == []
    assert env.get_space(Position(3, 3)) == SpaceState.blank()
    assert env.get_space(Position(3, 2)) == SpaceState.blank()
    assert env.num_natural_deaths == 1
    assert env.num_kills == 0


def test_forced_reproduction_spawns_offspring():
    env = empty_env(9, 9, seed=2, max_offspring_per_reproduce=3)
    parent = place(env, 0, 4, 4, A.STAY, energy=REPRODUCE_ENERGY_THRESHOLD + 1)
    assert env.num_total_creatures == 1

    env.advance_step()

    children = [c for c in env.creatures if c.id != 0]
    assert 1 <= len(children) <= 3
    assert [c.id for c in children] == list(range(1, len(children) + 1))
    assert env.num_total_creatures == 1 + len(children)
    assert parent.energy == REPRODUCE_ENERGY_THRESHOLD + 1 - parent.params.reproduce_energy_cost
    for child in children:
        assert child.energy == env.params.creature_starting_energy
        assert abs(child.position.x - 4) <= MAX_OFFSPRING_SPAWN_DIST
        assert abs(child.position.y - 4) <= MAX_OFFSPRING_SPAWN_DIST
    env.check_invariants()


def test_reproduction_that_drains_parent_leaves_no_offspring():
    energy = REPRODUCE_ENERGY_THRESHOLD + 1
    env = empty_env(9, 9, creature_repro_energy_cost=energy)
    place(env, 0, 4, 4, A.STAY, energy=energy)

    env.advance_step()

    assert env.creatures == []
    assert env.num_total_creatures == 1
    assert env.num_natural_deaths == 1
    assert env.get_space(Position(4, 4)) == SpaceState.blank()
    env.check_invariants()


def test_offspring_dropped_when_no_room():
    env = empty_env(1, 2)
    place(env, 0, 0, 0, A.STAY, energy=REPRODUCE_ENERGY_THRESHOLD + 1)
    env.add_wall_space(Position(0, 1))

    env.advance_step()

    assert [c.id for c in env.creatures] == [0]
    assert env.num_total_creatures > 1
    env.check_invariants()


def test_run_n_steps_exits_on_extinction():
    env = empty_env()
    place(env, 0, 3, 3, A.MOVE_FORWARDS, energy=1)

    with pytest.raises(EarlyExit) as excinfo:
        env.run_n_steps(10)

    assert excinfo.value.steps_run == 1
    assert env.time_step == 1


# =============================================================================
# FOOD
# =============================================================================

def test_no_food_when_rate_is_zero():
    env = empty_env()
    for _ in range(30):
        env.advance_step()
    assert env.num_food == 0


def test_food_grows_over_time():
    env = empty_env(10, 10, avg_new_food_per_tick=3.0)
    for _ in range(20):
        env.advance_step()
    assert env.num_food > 0


def test_fractional_food_rate_adds_at_most_one_piece():
    env = empty_env(10, 10, avg_new_food_per_tick=0.5)
    grown = []
    for _ in range(60):
        before = env.num_food
        env.advance_step()
        grown.append(env.num_food - before)

    assert set(grown) <= {0, 1}
    assert 0 < sum(grown) < 60


def test_full_board_does_not_stop_food_spawning():
    env = empty_env(2, 2, avg_new_food_per_tick=5.0)
    for x in range(2):
        for y in range(2):
            env.add_wall_space(Position(x, y))
    env.advance_step()
    assert env.num_walls == 4


# =============================================================================
# MUTATORS & LOOKUPS
# =============================================================================

def test_mutators_refuse_creature_cells():
    env = empty_env()
    place(env, 0, 1, 1)
    for mutator in (env.add_food_space, env.add_wall_space, env.add_blank_space):
        with pytest.raises(OccupiedSpaceError):
            mutator(Position(1, 1))
    assert env.get_space(Position(1, 1)) == SpaceState.creature(0)


def test_mutators_update_counters():
    env = empty_env(4, 4)
    env.add_food_space(Position(0, 0))
    env.add_wall_space(Position(1, 0))
    assert (env.num_food, env.num_walls, env.num_blank) == (1, 1, 14)

    env.add_wall_space(Position(0, 0))
    assert (env.num_food, env.num_walls) == (0, 2)
    env.add_blank_space(Position(1, 0))
    assert (env.num_walls, env.num_blank) == (1, 15)


def test_add_creature_rules():
    env = empty_env()
    env.add_food_space(Position(2, 2))
    place(env, 5, 2, 2)
    assert env.num_food == 0
    assert env.num_total_creatures == 6

    with pytest.raises(OccupiedSpaceError):
        place(env, 6, 2, 2)
    with pytest.raises(InvariantViolation):
        place(env, 5, 3, 3)
    with pytest.raises(IndexError):
        place(env, 7, 10, 0)


def test_spawn_creature_uses_next_id():
    env = empty_env()
    place(env, 4, 0, 0)
    spawned = env.spawn_creature(Position(1, 1), Orientation.DOWN)
    assert spawned.id == 5
    assert spawned.orientation == Orientation.DOWN
    assert env.get_space(Position(1, 1)) == SpaceState.creature(5)


def test_creature_lookup():
    env = empty_env()
    place(env, 3, 0, 0)
    place(env, 8, 1, 0)

    assert env.get_creature_index_from_id(8) == 1
    assert env.get_creature(3).position == Position(0, 0)
    with pytest.raises(CreatureNotFound):
        env.get_creature_index_from_id(42)
    with pytest.raises(LookupError):
        env.get_creature(42)


def test_random_blank_space():
    env = empty_env(3, 1)
    env.add_wall_space(Position(0, 0))
    env.add_wall_space(Position(2, 0))
    assert env.get_rand_blank_space() == Position(1, 0)

    env.add_food_space(Position(1, 0))
    with pytest.raises(ResourceExhausted):
        env.get_rand_blank_space()


def test_get_space_bounds():
    env = empty_env(4, 4)
    with pytest.raises(IndexError):
        env.get_space(Position(4, 0))


# =============================================================================
# SNAPSHOTS
# =============================================================================

def test_stats_and_views():
    env = empty_env()
    place(env, 0, 1, 1, energy=20)
    place(env, 1, 2, 1, energy=40, orientation=Orientation.LEFT)
    env.add_food_space(Position(5, 5))

    stats = env.stats()
    assert stats.num_creatures == 2
    assert stats.num_food == 1
    assert stats.mean_energy == 30.0
    assert stats.max_creature_id == 1
    assert stats.to_dict()['num_total_creatures'] == 2

    views = env.creature_views()
    assert [v.id for v in views] == [0, 1]
    assert views[1].orientation == Orientation.LEFT
    assert views[1].energy == 40


def test_empty_stats():
    stats = empty_env().stats()
    assert stats.mean_energy == 0.0
    assert stats.max_creature_id is None


def test_show_draws_board():
    env = empty_env(3, 2)
    env.add_wall_space(Position(0, 0))
    env.add_food_space(Position(1, 0))
    place(env, 12, 2, 1)
    lines = env.show().splitlines()
    assert lines[1] == '||-| #' + ' ' * 4 + '|'
    assert lines[2] == '|' + ' ' * 7 + '12|'
