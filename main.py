"""
main.py — Master Entry Point
=============================
Top-level script that runs everything.

Usage:
    python main.py                          # Render PNG frames (default)
    python main.py --mode live              # Live visualization
    python main.py --mode benchmark         # Time projection vs advection
    python main.py --relaxation JACOBI      # Use the Jacobi pressure solver
"""

import argparse
import logging

import numpy as np

from macfluid import RELAX_GAUSS_SEIDEL, RELAX_JACOBI, SimulationConfig


def run_live(config: SimulationConfig):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({config.width}x{config.height})...")
    print("Close the window to exit.\n")

    viz = FluidVisualizer(config)
    viz.run()


def run_headless(config: SimulationConfig, output: str, save_fields: bool = False):
    """Run without display and write one PNG per frame."""
    from frame_pipeline import FrameRecorder

    print(f"\nHeadless simulation | {config.width}x{config.height} | "
          f"{config.duration:.2f}s | {config.relaxation}")
    print(f"{'─'*60}")

    rec = FrameRecorder(output_dir=output, config=config, save_fields=save_fields)
    meta = rec.run()

    print(f"\n{'─'*60}")
    print(f"  Frames:          {meta['frames']}  ({meta['steps']} steps)")
    print(f"  Average:         {meta['mean_step_ms']:.1f}ms/step")
    print(f"  Mean iterations: {meta['mean_iterations']:.1f}")
    print(f"  Budget hit:      {meta['unconverged_steps']} steps")
    print(f"  Output:          {meta['directory']}")


def run_benchmark(config: SimulationConfig, steps: int = 50):
    """
    Detailed performance breakdown.
    Shows how long each phase of the step takes.
    """
    from macfluid import FluidSolver

    print(f"\n{'='*60}")
    print(f"  BENCHMARK | {config.width}x{config.height} | {steps} steps | {config.relaxation}")
    print(f"{'='*60}")

    solver = FluidSolver(config.width, config.height, config.density,
                         relaxation=config.relaxation,
                         iterations=config.pressure_iterations,
                         tolerance=config.pressure_tolerance)

    # Warm up (also compiles the Gauss-Seidel kernel)
    for _ in range(5):
        solver.add_inflow(*config.inflow)
        solver.step(config.timestep)

    logs = []
    for _ in range(steps):
        solver.add_inflow(*config.inflow)
        logs.append(solver.step(config.timestep))

    print(f"\n{'Phase':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in ["project_ms", "advect_ms", "total_ms"]:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    iters = [m["iterations"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  Pressure iterations: mean={np.mean(iters):.1f}, max={np.max(iters)}")
    print(f"  Converged: {sum(m['converged'] for m in logs)}/{len(logs)} steps")


def build_parser() -> argparse.ArgumentParser:
    defaults = SimulationConfig()
    parser = argparse.ArgumentParser(description="2D Smoke Simulation")
    parser.add_argument(
        "--mode", choices=["headless", "live", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--width",    type=int,   default=defaults.width,    help="Grid columns")
    parser.add_argument("--height",   type=int,   default=defaults.height,   help="Grid rows")
    parser.add_argument("--density",  type=float, default=defaults.density,  help="Fluid density")
    parser.add_argument("--timestep", type=float, default=defaults.timestep, help="Seconds per step")
    parser.add_argument("--duration", type=float, default=defaults.duration, help="Simulated seconds")
    parser.add_argument("--steps-per-frame", type=int, default=defaults.steps_per_frame,
                        help="Solver steps between frames")
    parser.add_argument("--relaxation", choices=[RELAX_GAUSS_SEIDEL, RELAX_JACOBI],
                        default=defaults.relaxation, help="Pressure relaxation")
    parser.add_argument("--iterations", type=int, default=defaults.pressure_iterations,
                        help="Pressure iteration budget")
    parser.add_argument("--steps",    type=int,   default=50,       help="Benchmark steps")
    parser.add_argument("--output",   default="frames",             help="Frame directory")
    parser.add_argument("--save-fields", action="store_true",       help="Also save density .npy")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(args) -> SimulationConfig:
    return SimulationConfig(
        width=args.width,
        height=args.height,
        density=args.density,
        timestep=args.timestep,
        duration=args.duration,
        steps_per_frame=args.steps_per_frame,
        relaxation=args.relaxation,
        pressure_iterations=args.iterations,
    ).validate()


if __name__ == "__main__":
    args = build_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")
    config = config_from_args(args)

    if args.mode == "live":
        run_live(config)
    elif args.mode == "headless":
        run_headless(config, output=args.output, save_fields=args.save_fields)
    elif args.mode == "benchmark":
        run_benchmark(config, steps=args.steps)
