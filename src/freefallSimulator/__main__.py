# Licensed under the PolyForm Noncommercial License 1.0.0
"""
Command-line interface for the freefall simulator.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core import simulate_jump
from .errors import SimulationError
from .models import SimulationResult, SolverSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="freefallSimulator",
        description="Simulate a parachute jump through the standard atmosphere.",
    )
    parser.add_argument("--mass", type=float, default=104.0, help="mass of jumper and equipment [kg]")
    parser.add_argument("--height", type=float, default=39000.0, help="release altitude [m]")
    parser.add_argument("--area", type=float, default=0.5, help="free-fall cross-section [m^2]")
    parser.add_argument("--area-parachute", type=float, default=25.0, help="open canopy cross-section [m^2]")
    parser.add_argument("--deploy-altitude", type=float, default=1500.0, help="canopy trigger altitude [m]")
    parser.add_argument("--transition-time", type=float, default=4.0, help="canopy opening time [s]")
    parser.add_argument("--output-step", type=float, default=0.1, help="sample spacing [s]")
    parser.add_argument("--t-max", type=float, default=1e5, help="upper time bound [s]")
    parser.add_argument("--table", action="store_true", help="print every sample")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def print_table(result: SimulationResult) -> None:
    print(f"{'t [s]':>10} {'h [m]':>12} {'v [m/s]':>10} {'a [m/s2]':>10} {'Mach':>7} {'Cd':>6} {'x':>6}")
    for s in result:
        print(f"{s.time:10.2f} {s.altitude:12.2f} {s.velocity:10.3f} {s.acceleration:10.3f} "
              f"{s.mach_number:7.3f} {s.drag_coefficient:6.3f} {s.deployment_progress:6.3f}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the freefall simulator from the command line."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    print("Freefall Simulator")
    print("==================")

    settings = SolverSettings(output_step=args.output_step, t_max=args.t_max)
    try:
        result = simulate_jump(args.mass, args.height, args.area, args.area_parachute,
                               args.deploy_altitude, args.transition_time, settings=settings)
    except SimulationError as exc:
        print(f"Simulation failed: {exc}", file=sys.stderr)
        return 1

    if args.table:
        print_table(result)

    deployment = result.deployment_time
    print(f"\nSimulation Complete!")
    print(f"Time to landing: {result.landing_time:.1f} s")
    print(f"Impact speed: {result.impact_velocity:.2f} m/s")
    print(f"Maximum speed: {result.max_speed:.1f} m/s (Mach {result.max_mach:.2f})")
    if deployment is not None:
        print(f"Parachute triggered at: {deployment:.1f} s")
    print(f"Samples: {len(result)} (average step {result.average_time_step:.3f} s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
