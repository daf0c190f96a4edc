#!/usr/bin/env python3
"""
Run the EvoSim engine headless

Usage:
    python run_simulation.py --steps 1000 --seed 7
    python run_simulation.py --preset 2 --report-every 50 --save saves/run.json
    python run_simulation.py --load saves/run.json --steps 500
"""

import argparse
import sys

from evosim import (
    EarlyExit,
    Environment,
    EnvironmentParams,
    SimulationError,
    load_environment,
    save_environment,
)


def build_environment(args) -> Environment:
    if args.load:
        env = load_environment(args.load, verbose=args.verbose)
        print(f"[Run] Resuming {env}")
        return env

    params = EnvironmentParams.console_defaults() if args.preset is not None else EnvironmentParams()
    if args.width is not None:
        params.env_x_size = args.width
    if args.height is not None:
        params.env_y_size = args.height
    if args.creatures is not None:
        params.num_start_creatures = args.creatures
    if args.food is not None:
        params.num_start_food = args.food
    if args.walls is not None:
        params.num_start_walls = args.walls

    return Environment.new_random(params, preset=args.preset, seed=args.seed, verbose=args.verbose)


def report(env: Environment):
    s = env.stats()
    print(f"[Tick {s.time_step}] creatures={s.num_creatures} food={s.num_food} "
          f"kills={s.num_kills} deaths={s.num_natural_deaths} born={s.num_total_creatures} "
          f"energy={s.mean_energy:.1f} age={s.mean_age:.1f}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the EvoSim grid simulation.")
    parser.add_argument("--steps", type=int, default=1000, help="ticks to run")
    parser.add_argument("--seed", type=int, default=None, help="seed for a reproducible run")
    parser.add_argument("--preset", type=int, default=None, help="built-in 64x64 wall layout")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--creatures", type=int, default=None, help="starting population")
    parser.add_argument("--food", type=int, default=None, help="starting food pieces")
    parser.add_argument("--walls", type=int, default=None, help="random walls (ignored with --preset)")
    parser.add_argument("--report-every", type=int, default=100, help="ticks between status lines")
    parser.add_argument("--load", default=None, help="resume from a JSON snapshot")
    parser.add_argument("--save", default=None, help="write a JSON snapshot at the end")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    try:
        env = build_environment(args)
    except (SimulationError, FileNotFoundError) as e:
        print(f"[Run] {e}", file=sys.stderr)
        return 2

    report(env)
    every = max(1, args.report_every)
    remaining = args.steps
    try:
        while remaining > 0:
            chunk = min(every, remaining)
            env.run_n_steps(chunk)
            remaining -= chunk
            report(env)
    except EarlyExit as e:
        report(env)
        print(f"[Run] {e}")

    if args.save:
        path = save_environment(env, args.save)
        print(f"[Run] Saved to {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
