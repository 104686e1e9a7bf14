"""Exception classes for launcher errors.

This module defines the exception hierarchy used throughout the launcher.
The CLI is the only place that turns these into diagnostics and exit codes;
whether an error is fatal depends on where in the launch sequence it occurs.
"""


class LauncherError(Exception):
    """Base exception for launcher errors.

    All launcher-specific exceptions inherit from this class,
    allowing callers to catch all launcher errors with a single handler.
    """
    pass


class PathResolutionError(LauncherError):
    """Raised when the running executable's own path cannot be determined."""
    pass


class RuntimeInitError(LauncherError):
    """Raised when the Lua runtime cannot be created.

    This covers a missing or broken lupa engine module as well as
    allocation failures inside the Lua state constructor.
    """
    pass


class PathSetupError(LauncherError):
    """Raised when configuring package.path/package.cpath fails.

    This is a warning: the launcher reports it and keeps going.
    """
    pass


class EntryPointError(LauncherError):
    """Base class for errors loading or running the ldoc entry point."""
    pass


class EmbeddedSourceError(EntryPointError):
    """Raised when the generated module holding the embedded script is unavailable."""
    pass


class EmbeddedSyntaxError(EntryPointError):
    """Raised when the embedded script fails to compile."""
    pass


class EmbeddedRuntimeError(EntryPointError):
    """Raised when the embedded script raises an error while running."""
    pass


class ScriptFileError(EntryPointError):
    """Raised when the on-disk script is missing, fails to compile, or fails to run."""
    pass


__all__ = [
    'LauncherError',
    'PathResolutionError',
    'RuntimeInitError',
    'PathSetupError',
    'EntryPointError',
    'EmbeddedSourceError',
    'EmbeddedSyntaxError',
    'EmbeddedRuntimeError',
    'ScriptFileError',
]
