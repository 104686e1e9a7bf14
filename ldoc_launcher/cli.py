"""Command-line entry point for the ldoc launcher.

Usage: ldoc [args...]

Every argument, including the program name, is handed to ldoc.lua as the
Lua global `arg`. The launcher has no flags of its own; it only writes
one-line diagnostics prefixed with the program name to stderr.
"""

import logging
import os
import sys
from typing import Mapping, Optional, Sequence

from .config import ConfigError, load_config
from .entry import (
    EmbeddedEntryPoint,
    EntryPoint,
    FileEntryPoint,
    run_embedded,
    run_file,
)
from .errors import (
    EmbeddedRuntimeError,
    EmbeddedSourceError,
    EmbeddedSyntaxError,
    PathResolutionError,
    PathSetupError,
    RuntimeInitError,
    ScriptFileError,
)
from .install import install_root_from, resolve_executable_path
from .runtime import (
    LuaState,
    configure_search_paths,
    create_runtime,
    publish_arguments,
    release_runtime,
)

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "ldoc"


def app_name(argv: Sequence[str]) -> str:
    """Program name used as the prefix of every diagnostic."""
    if argv and argv[0]:
        return os.path.basename(argv[0]) or DEFAULT_APP_NAME
    return DEFAULT_APP_NAME


def report(app: str, message: str) -> None:
    """Write one diagnostic line to stderr."""
    print(f"{app}: {message}", file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the launcher.
    
    By default, logging does not output to console, so stderr carries only
    the launcher's diagnostics and ldoc's own output.
    In verbose mode, DEBUG-level logs are shown on console.
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    
    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        root_logger.addHandler(console_handler)
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(logging.WARNING)


def run_embedded_variant(app: str, state: LuaState, entry_point: EntryPoint) -> int:
    """Run the embedded script. Compile and runtime errors are reported, not fatal."""
    try:
        run_embedded(state, entry_point)
    except EmbeddedSourceError as e:
        report(app, f"Embedded code not available: {e}")
        return 1
    except EmbeddedSyntaxError as e:
        report(app, f"Syntax error in embedded code: {e}")
    except EmbeddedRuntimeError as e:
        report(app, f"Runtime error: {e}")
    return 0


def run_file_variant(app: str, state: LuaState, entry_point: EntryPoint) -> int:
    """Run the on-disk script. Any failure is fatal."""
    try:
        run_file(state, entry_point)
    except ScriptFileError as e:
        report(app, f"Error: {e}")
        return 1
    return 0


def launch(
    argv: Sequence[str],
    environ: Optional[Mapping[str, str]] = None,
    entry_point: Optional[EntryPoint] = None,
) -> int:
    """Run the whole launch sequence and return the process exit code.

    Args:
        argv: Full argument vector, program name first
        environ: Environment for LDOC_LAUNCHER_* overrides. If None, uses os.environ.
        entry_point: Entry point to run instead of the configured one

    Returns:
        0 on success (including non-fatal embedded script errors), 1 on fatal errors
    """
    app = app_name(argv)

    try:
        executable = resolve_executable_path(argv)
    except PathResolutionError as e:
        logger.debug(f"Executable path resolution failed: {e}")
        report(app, "Could not find executable path.")
        return 1

    install_root = install_root_from(executable)

    try:
        config = load_config(install_root, environ)
    except ConfigError as e:
        report(app, f"Error: {e}")
        return 1

    setup_logging(config["verbose"])
    logger.debug(f"Install root: {install_root}")
    logger.debug(f"Variant: {config['variant']}")

    try:
        state = create_runtime(config["engine"])
    except RuntimeInitError as e:
        logger.debug(str(e))
        report(app, "Failed to create Lua state.")
        return 1

    try:
        publish_arguments(state, argv)

        try:
            configure_search_paths(state, install_root)
        except PathSetupError as e:
            report(app, f"Error setting paths: {e}")

        if config["variant"] == "embedded":
            if entry_point is None:
                entry_point = EmbeddedEntryPoint(module_name=config["embedded_module"])
            return run_embedded_variant(app, state, entry_point)

        if entry_point is None:
            entry_point = FileEntryPoint.under(install_root, config["script"])
        return run_file_variant(app, state, entry_point)
    finally:
        release_runtime(state)


def main() -> int:
    """Main entry point."""
    return launch(sys.argv)


if __name__ == "__main__":
    sys.exit(main())
