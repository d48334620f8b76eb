"""
Ecosystem - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line runner for an application manifest.

- Loads the modules listed in the manifest
- Initialises and starts them in dependency order
- Waits for SIGINT/SIGTERM, then stops them
- Loads engine configuration from CLI and environment

============================================================
USAGE
============================================================
python -m ecosystem.cli app.json
python -m ecosystem.cli app.json --once
python -m ecosystem.cli app.json --show-order

============================================================
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional, Tuple

from ecosystem.core.constants import LOG_FORMATS, LOG_LEVELS
from ecosystem.core.exceptions import EcosystemError
from ecosystem.engine import Engine, setup_logging
from ecosystem.loader import load_all
from ecosystem.manifest import AppManifest
from ecosystem.models import EngineConfig, StopOrder


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecosystem",
        description="Dependency-ordered lifecycle runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Phases:
  init   - dependencies first, config passed to every module
  start  - dependencies first
  stop   - dependents first (--stop-order reverse) or dependencies first

Examples:
  %(prog)s app.json                  # Run until SIGINT/SIGTERM
  %(prog)s app.json --once           # Init, start, stop, exit
  %(prog)s app.json --show-order     # Print the startup order
        """
    )

    parser.add_argument(
        "manifest",
        help="Path to the JSON application manifest",
    )

    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")

    execution_group.add_argument(
        "--once",
        action="store_true",
        help="Stop right after every module started, then exit",
    )

    execution_group.add_argument(
        "--show-order",
        action="store_true",
        help="Print the startup order and exit without running hooks",
    )

    execution_group.add_argument(
        "--stop-order",
        choices=[o.value for o in StopOrder],
        default=None,
        help="Stop phase ordering (default: from environment, else reverse)",
    )

    execution_group.add_argument(
        "--no-strict-continuations",
        action="store_true",
        help="Warn instead of failing when a hook completes twice",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=None,
        help="Logging level (default: from environment, else INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        choices=list(LOG_FORMATS),
        default=None,
        help="Log output format (default: from environment, else text)",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> EngineConfig:
    """
    Build engine configuration from environment, then CLI overrides.

    Args:
        args: Parsed arguments

    Returns:
        EngineConfig instance
    """
    config = EngineConfig.from_env()

    if args.stop_order:
        config.stop_order = StopOrder(args.stop_order)
    if args.no_strict_continuations:
        config.strict_continuations = False
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format

    return config


def build_engine(args: argparse.Namespace) -> Tuple[Engine, AppManifest]:
    """Load the manifest and its modules into a new engine."""
    config = build_config(args)
    manifest = AppManifest.from_file(args.manifest)
    registry = load_all(manifest.modules, manifest.root)
    return Engine(registry, config=config), manifest


# ============================================================
# SHOW ORDER
# ============================================================

def show_order(engine: Engine) -> None:
    """Print the startup order of an engine's registry."""
    order = engine.startup_order()

    print(f"\nStartup order ({len(order)} modules)")
    print("=" * 60)

    for i, name in enumerate(order, 1):
        deps = engine.registry[name].declared_dependencies()
        suffix = f"  <- {', '.join(deps)}" if deps else ""
        print(f"  {i:2d}. {name}{suffix}")

    print()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def _install_signal_handlers(stop_requested: asyncio.Event) -> List[signal.Signals]:
    loop = asyncio.get_running_loop()

    if sys.platform == "win32":
        # No loop signal handlers on Windows
        signal.signal(
            signal.SIGINT,
            lambda signum, frame: loop.call_soon_threadsafe(stop_requested.set),
        )
        return []

    installed = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)
        installed.append(sig)
    return installed


def _restore_signal_handlers(installed: List[signal.Signals]) -> None:
    loop = asyncio.get_running_loop()
    for sig in installed:
        loop.remove_signal_handler(sig)


async def async_main(args: argparse.Namespace) -> int:
    """
    Async main entry point.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    try:
        engine, manifest = build_engine(args)
    except EcosystemError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    config = engine.config
    setup_logging(config.log_level, config.log_format, engine.correlation_id)

    stop_requested = asyncio.Event()
    installed = _install_signal_handlers(stop_requested)

    exit_code = 0

    try:
        try:
            await engine.init_all_async(manifest.config)
            await engine.start_all_async()
            logger.info("All modules started.")

            if not args.once:
                await stop_requested.wait()
                logger.info("Shutting down...")

        except EcosystemError as e:
            logger.error(e.to_log_format())
            exit_code = 1
        except Exception as e:
            logger.error(f"Startup failed: {type(e).__name__}: {e}", exc_info=True)
            exit_code = 1

        # Stop whatever came up, also after a failed startup
        await engine.stop_all_async()
        logger.info("All modules stopped.")
        return exit_code

    except EcosystemError as e:
        logger.error(e.to_log_format())
        return 1
    finally:
        _restore_signal_handlers(installed)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.show_order:
        try:
            engine, _ = build_engine(args)
            show_order(engine)
        except EcosystemError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        return 0

    print_banner(args)

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        return 130


def print_banner(args: argparse.Namespace) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  ECOSYSTEM")
    print("  Dependency-ordered lifecycle runner")
    print("=" * 60)
    print(f"  Manifest:   {args.manifest}")
    print(f"  Once:       {args.once}")
    print("=" * 60)
    print()


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
