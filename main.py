"""
Cellbots - CLI Entry Point

Runs the simulation headless and writes metrics/snapshots to a run directory.

Usage:
    python main.py
    python main.py --config config.json --ticks 5000
    python main.py --topology unbounded --storage sparse --seed 7
"""

import argparse
import sys
import time

from cellbots.core.grid import STORAGE_KINDS
from cellbots.core.topology import TOPOLOGY_KINDS


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Cellbots - cellular-automaton ecosystem of program-driven bots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                   Run with default settings
  python main.py --config my_config.json           Run with a JSON config
  python main.py --ticks 2000 --snapshot-every 500 Longer run with snapshots
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to JSON config file (default: built-in defaults)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed (overrides config value)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Override number of ticks to run",
    )
    parser.add_argument(
        "--topology",
        choices=TOPOLOGY_KINDS,
        default=None,
        help="Override world topology",
    )
    parser.add_argument(
        "--storage",
        choices=STORAGE_KINDS,
        default=None,
        help="Override grid storage backend",
    )
    parser.add_argument(
        "--snapshot-every",
        type=int,
        default=None,
        help="Write a world snapshot every N ticks (0 = never)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Override output directory",
    )

    return parser.parse_args()


def build_config(args: argparse.Namespace):
    """Load the config and apply command-line overrides."""
    from cellbots.core.config import SimConfig, load_config

    config = load_config(args.config) if args.config else SimConfig()

    if args.seed is not None:
        config.world.seed = args.seed
    if args.ticks is not None:
        config.output.max_ticks = args.ticks
    if args.topology is not None:
        config.world.topology = args.topology
    if args.storage is not None:
        config.world.storage = args.storage
    if args.snapshot_every is not None:
        config.output.snapshot_every_n_ticks = args.snapshot_every
    if args.output is not None:
        config.output.output_dir = args.output

    # Overrides may have produced an invalid combination
    config.check()
    return config


def run(config, config_path) -> None:
    """Run a single simulation."""
    from cellbots.simulation.engine import SimulationEngine
    from cellbots.simulation.metrics import MetricsCollector
    from cellbots.logging.run_manager import RunManager

    out = config.output
    print(f"[Cellbots] Single run")
    print(f"  Config: {config_path or '(defaults)'}")
    print(f"  Grid: {config.world.width}x{config.world.height} "
          f"({config.world.topology}, {config.world.storage})")
    print(f"  Bots: {config.population.initial_count}")
    print(f"  Seed: {config.world.seed}")
    print(f"  Ticks: {out.max_ticks}")
    print(f"  Output: {out.output_dir}")
    print()

    engine = SimulationEngine(config)
    world = engine.initialize()
    metrics = MetricsCollector()
    run_manager = RunManager(config)

    run_manager.log_tick(metrics.collect(world))
    if out.snapshot_every_n_ticks:
        run_manager.save_snapshot(world)

    start_time = time.time()

    def on_tick(tick: int, eng: SimulationEngine) -> None:
        if tick % out.log_every_n_ticks == 0:
            kpis = metrics.collect(eng.world, eng.get_accumulated_stats())
            eng.reset_accumulated_stats()
            run_manager.log_tick(kpis)
            print(f"\r  Tick {tick:6d} | Bots: {kpis['bot_count']:6d} | "
                  f"Alive: {kpis['alive_count']:6d} | Free protein: {kpis['free_protein']}",
                  end="", flush=True)
        if out.snapshot_every_n_ticks and tick % out.snapshot_every_n_ticks == 0:
            run_manager.save_snapshot(eng.world)

    engine.on_tick = on_tick

    result = engine.run()
    elapsed = time.time() - start_time

    print()
    print()
    print(f"[Result]")
    print(f"  Ticks: {result.total_ticks}")
    print(f"  Final bots: {result.final_bot_count} ({result.final_alive_count} alive)")
    print(f"  Extinct: {result.extinct}")
    print(f"  Total protein: {world.total_protein}")
    print(f"  Elapsed: {elapsed:.1f}s")

    summary = {
        "total_ticks": result.total_ticks,
        "final_bots": result.final_bot_count,
        "final_alive": result.final_alive_count,
        "extinct": result.extinct,
        "extinction_tick": result.extinction_tick,
        "resources": world.resources.to_dict(),
        "total_protein": world.total_protein,
        "elapsed_seconds": round(elapsed, 2),
        "seed": config.world.seed,
    }
    run_manager.finalize(summary)
    print(f"  Output saved to: {run_manager.run_dir}")


def main() -> None:
    args = parse_args()
    try:
        config = build_config(args)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    run(config, args.config)


if __name__ == "__main__":
    main()
