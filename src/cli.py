#!/usr/bin/env python3
"""CLI entry point for the Venice batch image generator."""

import logging
import signal
import sys
from pathlib import Path

import click

from api_client import VeniceClient
from config import PathConfig, paths
from config_store import ConfigStore
from display import NullDisplay, PlainDisplay, TerminalDisplay
from errors import ConfigError, PersistenceError, VeniceBatchError
from generation_engine import GenerationEngine, RunContext, RunResult
from output_namer import resolve_output_dir
from run_log import RunLog

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_BREAKER = 2


def setup_logging(verbose: bool, log_file: Path | None) -> None:
    """Configure the root logger once for the process."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler]
    if log_file is not None:
        handlers = [logging.FileHandler(log_file, encoding="utf-8")]
    else:
        handlers = [logging.StreamHandler(sys.stderr)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def install_signal_handlers(context: RunContext) -> None:
    """Set the run's cancellation flag on SIGINT/SIGTERM.

    A request already in flight finishes first; a second SIGINT raises
    KeyboardInterrupt immediately.
    """

    def _handler(signum, frame):
        context.interrupt()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def exit_code_for(result: RunResult) -> int:
    """Map a run result to the process exit code."""
    if result.aborted:
        return EXIT_FATAL
    if result.breaker_tripped:
        return EXIT_BREAKER
    return EXIT_OK


def print_summary(result: RunResult) -> None:
    """Echo the end-of-run summary."""
    click.echo(f"\nGenerated {result.images_saved} images in: {result.output_dir}")
    click.echo(f"Prompt log: {result.log_path}")
    if result.failed_count:
        click.echo(f"Failed attempts: {result.failed_count}")
    if result.interrupted:
        click.echo("Run interrupted.", err=True)
    if result.breaker_tripped:
        click.echo("Stopped early: too many failed attempts.", err=True)
    if result.aborted:
        click.echo(f"Error: {result.error}", err=True)


@click.command()
@click.option(
    '--config-dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Directory holding prompt.json and elements.json (default: ~/.venice)'
)
@click.option(
    '-n', '--count',
    type=click.IntRange(min=1),
    default=None,
    help='Number of images to generate (default: num_images from prompt.json)'
)
@click.option(
    '-o', '--output',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Base output directory (default: output_dir from prompt.json)'
)
@click.option(
    '--skip-health-check',
    is_flag=True,
    help='Do not check the API status before starting'
)
@click.option(
    '--plain',
    is_flag=True,
    help='Print one line per progress update instead of the live view'
)
@click.option(
    '--quiet', '-q',
    is_flag=True,
    help='Do not print progress updates'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable debug logging'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Write diagnostic logging to this file instead of stderr'
)
def main(
    config_dir: Path | None,
    count: int | None,
    output: Path | None,
    skip_health_check: bool,
    plain: bool,
    quiet: bool,
    verbose: bool,
    log_file: Path | None,
):
    """
    Generate a batch of images from a randomized prompt via the Venice API.

    Settings are read from prompt.json and prompt elements from elements.json
    in the config directory; both are created on first run. prompt.json is
    re-read before every image, so edits take effect while a run is going.

    Example:
        venice-batch -n 10
        venice-batch --config-dir ./my-run --plain -v
    """
    setup_logging(verbose, log_file)

    path_config = PathConfig(override_dir=config_dir) if config_dir else paths
    store = ConfigStore(path_config)

    try:
        store.ensure_config_dir()
        config = store.load_config()
    except ConfigError as e:
        click.echo(f"Error: Initialization failed: {e}", err=True)
        sys.exit(EXIT_FATAL)

    if count is not None:
        config = config.model_copy(update={"num_images": count})

    context = RunContext()
    install_signal_handlers(context)

    client = VeniceClient(config.api_key)
    try:
        if not skip_health_check:
            try:
                client.check_status()
            except VeniceBatchError as e:
                click.echo(f"Error: API Status Check Failed: {e}", err=True)
                sys.exit(EXIT_FATAL)

        base_dir = output or (Path(config.output_dir).expanduser() if config.output_dir
                              else path_config.default_output_dir)
        output_dir, using_subdir = resolve_output_dir(base_dir, config.prompt_name, config.name_as_subdir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            click.echo(f"Error: Error creating output directory: {e}", err=True)
            sys.exit(EXIT_FATAL)

        # The directory decision is fixed for the rest of the run
        config = config.model_copy(update={"output_dir": str(output_dir), "name_as_subdir": using_subdir})

        try:
            pool = store.load_elements()
        except ConfigError as e:
            click.echo(f"Error: Error loading Elements: {e}", err=True)
            sys.exit(EXIT_FATAL)

        if quiet:
            display = NullDisplay()
        elif plain or not sys.stdout.isatty():
            display = PlainDisplay()
        else:
            display = TerminalDisplay()

        try:
            run_log = RunLog.create(output_dir, config)
        except PersistenceError as e:
            click.echo(f"Error: Error initializing Prompt Log: {e}", err=True)
            sys.exit(EXIT_FATAL)

        with run_log:
            engine = GenerationEngine(
                config=config,
                pool=pool,
                client=client,
                run_log=run_log,
                output_dir=output_dir,
                using_subdir=using_subdir,
                config_store=store,
                publisher=display,
                context=context,
                pin_count=count is not None,
            )
            try:
                result = engine.run()
            finally:
                display.close()
    finally:
        client.close()

    print_summary(result)
    sys.exit(exit_code_for(result))


if __name__ == '__main__':
    main()
