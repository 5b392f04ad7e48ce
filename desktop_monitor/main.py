from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from desktop_monitor.config import AppConfig, ConfigError, load_config
from desktop_monitor.helper_process import LaunchFailure
from desktop_monitor.log_setup import setup_logging
from desktop_monitor.monitor import monitor_desktop

logger = logging.getLogger(__name__)


def print_event(kind: str, raw_line: str) -> None:
    print(f"{kind}: {raw_line}", flush=True)


async def run(config: AppConfig) -> int:
    """Monitor until the helper exits or SIGINT/SIGTERM arrives."""
    stop_event = asyncio.Event()
    try:
        process = await monitor_desktop(
            print_event,
            helper_path=config.helper.path,
            helper_args=config.helper.args,
            on_exit=lambda code: stop_event.set(),
            max_line_length=config.classifier.max_line_length,
        )
    except LaunchFailure as exc:
        logger.error("%s", exc)
        return 1

    loop = asyncio.get_running_loop()
    handled = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
            handled.append(sig)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C raises instead
            pass

    logger.info("Watching desktop visibility. Press Ctrl+C to stop.")
    try:
        await stop_event.wait()
    finally:
        # Second Ctrl+C during shutdown → default handler, immediate exit
        for sig in handled:
            loop.remove_signal_handler(sig)
        if process.is_alive():
            logger.info("Stopping helper...")
        await process.stop()
    return 0


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Desktop visibility monitor")
    parser.add_argument("config", nargs="?", default=None,
                        help="Path to YAML config file (default: built-in defaults)")
    parser.add_argument("--helper", default=None,
                        help="Path to the helper executable (overrides config)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug mode (verbose logging)")
    parser.add_argument("--trace", action="store_true",
                        help="Enable trace mode (writes trace file to debug/)")
    parser.add_argument("--verbose", action="store_true",
                        help="With --trace, also send trace output to terminal")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Entry point for the desktop visibility monitor."""
    args = _parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        setup_logging(debug=False, trace=False, verbose=False)
        logger.error("%s", exc)
        return 1

    if args.helper:
        config.helper.path = args.helper
    config.debug.enabled = config.debug.enabled or args.debug
    config.debug.trace = config.debug.trace or args.trace
    config.debug.verbose = config.debug.verbose or args.verbose

    setup_logging(
        debug=config.debug.enabled, trace=config.debug.trace, verbose=config.debug.verbose
    )
    return await run(config)


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
