"""Installation prefix discovery.

The launcher lives at <INSTALL_ROOT>/bin/<app>. Everything else it needs
(Lua modules, native modules, the on-disk ldoc.lua, the config file) is
found relative to <INSTALL_ROOT>, so the whole tree can be relocated.
"""

import logging
import os
import shutil
import sys
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional, Sequence

from .errors import PathResolutionError

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform.startswith('win')


def resolve_executable_path(argv: Optional[Sequence[str]] = None) -> str:
    """Return the absolute path of the running launcher.

    Frozen builds report their own binary through sys.executable. Otherwise
    the launcher is a script and argv[0] names it. A bare name came from a
    PATH lookup by the shell, so it is looked up on PATH again and never
    matched against the working directory. Symlinks are not
    resolved, so a linked launcher uses the prefix of the link.

    Args:
        argv: Argument vector to inspect. If None, uses sys.argv.

    Returns:
        Absolute path of the executable.

    Raises:
        PathResolutionError: If no usable path can be determined.
    """
    if getattr(sys, "frozen", False):
        candidate = sys.executable
    else:
        if argv is None:
            argv = sys.argv
        candidate = argv[0] if argv else ""

    if not candidate:
        raise PathResolutionError("executable path is empty")

    if not os.path.dirname(candidate):
        found = shutil.which(candidate)
        if found is None:
            raise PathResolutionError(f"'{candidate}' not found on PATH")
        candidate = found

    path = os.path.abspath(candidate)
    logger.debug(f"Resolved executable path: {path}")
    return path


def install_root_from(executable_path: str, windows: Optional[bool] = None) -> str:
    """Strip the file name and its directory from an executable path.

    <root>/bin/ldoc becomes <root>. A path already at the filesystem
    root stays there.

    Args:
        executable_path: Absolute path of the executable.
        windows: Use Windows path rules. If None, follows the host platform.

    Returns:
        The install root as a string in the same path style.
    """
    if windows is None:
        windows = is_windows()
    flavour = PureWindowsPath if windows else PurePosixPath
    return str(flavour(executable_path).parent.parent)


def encode_for_lua(value: str) -> bytes:
    """Encode a path or argument for handing to Lua.

    Lua strings are byte strings. os.fsencode gives back the exact bytes
    of the file name on POSIX (including names that are not valid UTF-8)
    and UTF-8 on Windows.
    """
    return os.fsencode(value)
