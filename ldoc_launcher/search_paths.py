"""Lua module search path templates and the guest-side setup routine.

Templates are relative to the install root and use '/' as separator;
render_templates() fills in the Lua version and native extension and
switches to the host separator. Joining with the install root happens
inside Lua (SET_PATHS_LUA) so the strip/join rules are exactly the ones
the interpreter sees.
"""

import re
from typing import Iterable, List, Optional

from .install import is_windows


# Searched in order; first match wins in require().
LUA_PATH_TEMPLATES = (
    "bin/lua/?.lua",
    "bin/lua/?/init.lua",
    "bin/?.lua",
    "bin/?/init.lua",
    "share/lua/{version}/?.lua",
    "share/lua/{version}/?/init.lua",
    "./?.lua",
    "./?/init.lua",
)

LUA_CPATH_TEMPLATES = (
    "bin/?.{ext}",
    "lib/lua/{version}/?.{ext}",
    "bin/loadall.{ext}",
    "./?.{ext}",
)

SET_PATHS_FUNCTION = "setPaths"

# setPaths(basePath, paths, cpaths, sep)
SET_PATHS_LUA = r"""
function setPaths(basePath, paths, cpaths, sep)
   local s = "%" .. sep
   local cleanBasePath = basePath:gsub(s .. "+$", "")
   local fullPaths = {}
   for _, v in ipairs(paths) do
      table.insert(fullPaths, cleanBasePath .. sep .. ((v:gsub("^" .. s .. "+", "")):gsub(s .. "+$", "")))
   end
   package.path = table.concat(fullPaths, ";")
   local fullCpaths = {}
   for _, v in ipairs(cpaths) do
      table.insert(fullCpaths, cleanBasePath .. sep .. ((v:gsub("^" .. s .. "+", "")):gsub(s .. "+$", "")))
   end
   package.cpath = table.concat(fullCpaths, ";")
end
"""

_VERSION_PATTERN = re.compile(r'Lua (\d+)\.(\d+)')


def native_extension(windows: Optional[bool] = None) -> str:
    """File extension of native Lua modules on the host platform."""
    if windows is None:
        windows = is_windows()
    return "dll" if windows else "so"


def path_separator(windows: Optional[bool] = None) -> str:
    """Directory separator used when building search paths."""
    if windows is None:
        windows = is_windows()
    return "\\" if windows else "/"


def parse_lua_version(version_string: str) -> str:
    """Extract "<major>.<minor>" from a Lua _VERSION string.

    Args:
        version_string: Value of _VERSION, e.g. "Lua 5.4"

    Returns:
        The version, e.g. "5.4"

    Raises:
        ValueError: If the string does not look like a Lua version
    """
    match = _VERSION_PATTERN.search(version_string or "")
    if match is None:
        raise ValueError(f"Unrecognized Lua version string: {version_string!r}")
    return f"{match.group(1)}.{match.group(2)}"


def render_templates(
    templates: Iterable[str],
    version: str,
    ext: Optional[str] = None,
    sep: Optional[str] = None,
) -> List[str]:
    """Fill in version and extension placeholders and convert separators.

    Order is preserved.

    Args:
        templates: Templates using '/' and the {version}/{ext} placeholders
        version: Lua "<major>.<minor>"
        ext: Native module extension. If None, uses the host default.
        sep: Separator to use. If None, uses the host separator.

    Returns:
        List of rendered templates
    """
    if ext is None:
        ext = native_extension()
    if sep is None:
        sep = path_separator()
    return [
        template.format(version=version, ext=ext).replace("/", sep)
        for template in templates
    ]
