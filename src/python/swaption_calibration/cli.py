#!/usr/bin/env python3
"""
Swaption Calibration - Command Line Interface

Usage:
    swaption-calibration calibrate --zero-curve <file> --surface <file> [--tenor <years>] [--config <file>]
    swaption-calibration demo [--rate <r>] [--vol <v>] [--config <file>]
    swaption-calibration config [--show | --generate <file>]
    swaption-calibration version
"""

import argparse
import json
import sys
import logging
from typing import List, Optional

import pandas as pd

from . import __version__


def setup_logging(verbose: bool = False, debug: bool = False):
    """Setup logging for CLI."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def load_run_config(args):
    """Load configuration and apply its logging settings."""
    from .config import load_config, setup_logging as configure_logging

    config = load_config(args.config)
    if args.debug or config.debug:
        config.logging.level = "DEBUG"
    configure_logging(config.logging)
    return config


def load_zero_curve(path: str):
    """Load a zero curve CSV with 'date' and 'rate' columns."""
    from .data import ZeroCurve

    return ZeroCurve.from_frame(pd.read_csv(path))


def load_surface(path: str):
    """Load a volatility surface CSV: maturities in the first column, durations as headers."""
    from .data import VolatilitySurface

    df = pd.read_csv(path, index_col=0)
    df.index = df.index.astype(float)
    df.columns = df.columns.astype(float)
    return VolatilitySurface.from_frame(df)


def print_result(result) -> None:
    """Print a calibration result."""
    print(f"\n{'='*60}")
    print("CALIBRATION RESULT")
    print(f"{'='*60}")
    print(f"Status:    {result.status.value.upper()}")

    for warning in result.warnings:
        print(f"Warning:   {warning}")

    if not result.success:
        print(f"Message:   {result.message}")
        print(f"{'='*60}\n")
        return

    for name, value in result.params.items():
        print(f"{name + ':':<11}{value:.8f}")
    print(f"Objective: {result.objective_value:.6e}")
    print(f"RMSE:      {result.fit_quality['rmse']:.6e}")
    print(f"Swaptions: {result.fit_quality['n_swaptions']}")
    print(f"Time:      {result.total_time:.2f}s")
    print(f"{'='*60}\n")


def cmd_calibrate(args):
    """Run Hull-White calibration command."""
    from .calibration import CalibrationOrchestrator
    from .data import FilterCriteria

    print(f"\n{'='*60}")
    print("SWAPTION CALIBRATION - HULL-WHITE 1F")
    print(f"{'='*60}\n")

    config = load_run_config(args)
    if args.vol_type:
        config.calibration.vol_type = args.vol_type

    print(f"Loading zero curve from: {args.zero_curve}")
    zero_curve = load_zero_curve(args.zero_curve)
    print(f"Loading volatility surface from: {args.surface}")
    surface = load_surface(args.surface)
    print(f"Surface shape: {surface.shape[0]} maturities x {surface.shape[1]} durations")

    criteria = FilterCriteria(
        min_maturity=args.min_maturity,
        max_maturity=args.max_maturity,
        min_duration=args.min_duration,
        max_duration=args.max_duration,
    )

    orchestrator = CalibrationOrchestrator(config.calibration)
    result = orchestrator.calibrate(
        zero_curve, surface, criteria=criteria, tenor_step=args.tenor
    )
    print_result(result)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
        print(f"Results saved to: {args.output}")

    return 0 if result.success else 1


def cmd_demo(args):
    """Calibrate to a synthetic single-swaption surface on a flat curve."""
    from .calibration import CalibrationOrchestrator
    from .data import VolatilitySurface, ZeroCurve

    print(f"\n{'='*60}")
    print("SWAPTION CALIBRATION - DEMO")
    print(f"{'='*60}\n")

    config = load_run_config(args)
    zero_curve = ZeroCurve.flat(args.rate)
    surface = VolatilitySurface(maturities=[5.0], durations=[5.0], volatilities=[[args.vol]])
    print(f"Zero curve: flat {args.rate:.2%}")
    print(f"Surface:    5Y x 5Y swaption, volatility {args.vol}")

    result = CalibrationOrchestrator(config.calibration).calibrate(
        zero_curve, surface, tenor_step=1.0, vol_type="lognormal"
    )
    print_result(result)

    return 0 if result.success else 1


def cmd_config(args):
    """Manage configuration."""
    from .config import Config, load_config

    if args.generate:
        config = Config()
        config.save(args.generate)
        print(f"Configuration template saved to: {args.generate}")
        return 0

    if args.show:
        config = load_config(args.config_file)
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    # Default: show config help
    print("Configuration management:")
    print("  --show          Show current configuration")
    print("  --generate FILE Generate configuration template")
    return 0


def cmd_version(args):
    """Print version."""
    print(f"swaption-calibration {__version__}")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="swaption-calibration",
        description="Hull-White one-factor calibration to swaption volatilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Calibrate to a surface, keeping maturities up to 10Y
  swaption-calibration calibrate --zero-curve curve.csv --surface vols.csv --max-maturity 10

  # Normal (Bachelier) volatility quotes with semi-annual fixed leg
  swaption-calibration calibrate --zero-curve curve.csv --surface vols.csv --vol-type normal --tenor 0.5

  # Run demo on a synthetic surface
  swaption-calibration demo

  # Generate config template
  swaption-calibration config --generate config.json
        """
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Calibrate command
    calibrate_parser = subparsers.add_parser("calibrate", help="Calibrate Hull-White parameters")
    calibrate_parser.add_argument("--zero-curve", "-z", required=True,
                                  help="Zero curve CSV (columns: date, rate)")
    calibrate_parser.add_argument("--surface", "-s", required=True,
                                  help="Volatility surface CSV (rows: maturities, columns: durations)")
    calibrate_parser.add_argument("--tenor", "-t", type=float, default=None,
                                  help="Fixed-leg payment step in years (default: 1)")
    calibrate_parser.add_argument("--min-maturity", type=float, default=0.0)
    calibrate_parser.add_argument("--max-maturity", type=float, default=float("inf"))
    calibrate_parser.add_argument("--min-duration", type=float, default=0.0)
    calibrate_parser.add_argument("--max-duration", type=float, default=float("inf"))
    calibrate_parser.add_argument("--vol-type", choices=["lognormal", "normal"],
                                  help="Volatility quote convention (default: from config)")
    calibrate_parser.add_argument("--config", "-c", help="Config file")
    calibrate_parser.add_argument("--output", "-o", help="Output file for results (JSON)")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demonstration calibration")
    demo_parser.add_argument("--rate", type=float, default=0.02, help="Flat zero rate (default: 0.02)")
    demo_parser.add_argument("--vol", type=float, default=0.01,
                             help="Log-normal 5Y x 5Y volatility (default: 0.01)")
    demo_parser.add_argument("--config", "-c", help="Config file")

    # Config command
    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("--show", action="store_true", help="Show current config")
    config_parser.add_argument("--generate", metavar="FILE", help="Generate config template")
    config_parser.add_argument("--config-file", "-c", help="Config file to show")

    # Version command
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.debug)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "calibrate":
            return cmd_calibrate(args)
        elif args.command == "demo":
            return cmd_demo(args)
        elif args.command == "config":
            return cmd_config(args)
        elif args.command == "version":
            return cmd_version(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        if args.debug:
            raise
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
