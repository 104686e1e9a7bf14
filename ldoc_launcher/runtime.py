"""Lua runtime lifecycle for the launcher.

Wraps lupa so the rest of the launcher deals with one LuaState object:
create it, publish the command line as the global `arg`, point
package.path/package.cpath at the install tree, and release it.

Each lupa engine module (lupa.lua54, lupa.luajit21, ...) carries its own
LuaError class, so errors are always caught through LuaState.module.
"""

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .errors import PathSetupError, RuntimeInitError
from .install import encode_for_lua
from .search_paths import (
    LUA_CPATH_TEMPLATES,
    LUA_PATH_TEMPLATES,
    SET_PATHS_FUNCTION,
    SET_PATHS_LUA,
    native_extension,
    parse_lua_version,
    path_separator,
    render_templates,
)

logger = logging.getLogger(__name__)

# Calls f in protected mode and reports (ok, message) without raising, so
# error messages reach Python without a traceback attached.
_PROTECTED_CALL_LUA = """
function(f, ...)
   local ok, err = pcall(f, ...)
   if ok then
      return true, ""
   end
   return false, tostring(err)
end
"""


@dataclass
class LuaState:
    """A live Lua runtime and the lupa module that created it.

    Attributes:
        lua: The lupa LuaRuntime (None once released)
        module: The lupa engine module, used for its LuaError class
    """
    lua: Any
    module: Any

    @property
    def lua_error(self) -> type:
        return self.module.LuaError

    @property
    def version(self) -> str:
        """Lua "<major>.<minor>" of this runtime."""
        return parse_lua_version(self.lua.eval("_VERSION"))

    @property
    def released(self) -> bool:
        return self.lua is None


def engine_module_name(engine: Optional[str] = None) -> str:
    """Map a configured engine name to a lupa module name.

    None or "" selects lupa's default engine; "lua54" and "lupa.lua54"
    both select lupa.lua54.
    """
    if not engine:
        return "lupa"
    if engine == "lupa" or engine.startswith("lupa."):
        return engine
    return f"lupa.{engine}"


def create_runtime(engine: Optional[str] = None) -> LuaState:
    """Create a Lua runtime with the full standard library opened.

    Args:
        engine: lupa engine name (see engine_module_name). None for the default.

    Returns:
        A new LuaState

    Raises:
        RuntimeInitError: If the engine cannot be imported or the state cannot be allocated
    """
    module_name = engine_module_name(engine)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RuntimeInitError(f"Lua engine '{module_name}' is not available: {e}") from e

    try:
        lua = module.LuaRuntime()
    except MemoryError as e:
        raise RuntimeInitError(f"Lua engine '{module_name}' could not allocate a state") from e

    state = LuaState(lua=lua, module=module)
    logger.debug(f"Created Lua runtime from {module_name} ({lua.eval('_VERSION')})")
    return state


def release_runtime(state: LuaState) -> None:
    """Run a full Lua collection, then drop the runtime.

    The collection runs pending __gc finalizers (closing files the script
    left open) before the launcher lets go of the state; lupa frees the
    lua_State itself once the LuaRuntime is collected.
    """
    if state.released:
        return
    try:
        state.lua.execute('collectgarbage("collect")')
    except state.lua_error as e:
        logger.warning(f"Lua garbage collection failed during release: {e}")
    state.lua = None
    logger.debug("Released Lua runtime")


def publish_arguments(state: LuaState, argv: Sequence[str]) -> None:
    """Expose argv as the zero-indexed global table `arg`.

    arg[0] is the program name, arg[1..n] the remaining arguments, the
    same layout the standalone lua interpreter uses.
    """
    lua = state.lua
    arg = lua.table()
    for index, value in enumerate(argv):
        arg[index] = encode_for_lua(value)
    lua.globals()["arg"] = arg
    logger.debug(f"Published {len(argv)} argument(s) as 'arg'")


def configure_search_paths(
    state: LuaState,
    install_root: str,
    path_templates: Optional[Sequence[str]] = None,
    cpath_templates: Optional[Sequence[str]] = None,
    sep: Optional[str] = None,
) -> None:
    """Set package.path and package.cpath relative to the install root.

    Registers the Lua setPaths() routine and calls it. When template lists
    are not given, the built-in ones are rendered for this runtime's Lua
    version and the host's native extension.

    Args:
        state: The runtime to configure
        install_root: Install root directory
        path_templates: Rendered templates for package.path
        cpath_templates: Rendered templates for package.cpath
        sep: Separator used at the join point. If None, the host separator.

    Raises:
        PathSetupError: If the Lua version cannot be determined or setPaths() fails
    """
    if sep is None:
        sep = path_separator()

    lua = state.lua
    try:
        if path_templates is None or cpath_templates is None:
            version = state.version
            ext = native_extension()
            if path_templates is None:
                path_templates = render_templates(LUA_PATH_TEMPLATES, version, ext, sep)
            if cpath_templates is None:
                cpath_templates = render_templates(LUA_CPATH_TEMPLATES, version, ext, sep)

        lua.execute(SET_PATHS_LUA)
        protected_call = lua.eval(_PROTECTED_CALL_LUA)
        ok, message = protected_call(
            lua.globals()[SET_PATHS_FUNCTION],
            encode_for_lua(install_root),
            lua.table_from(list(path_templates)),
            lua.table_from(list(cpath_templates)),
            sep,
        )
    except ValueError as e:
        raise PathSetupError(str(e)) from e
    except state.lua_error as e:
        raise PathSetupError(str(e)) from e

    if not ok:
        raise PathSetupError(message)

    logger.debug(f"package.path set from {len(path_templates)} template(s) under {install_root}")


def current_search_paths(state: LuaState) -> Tuple[str, str]:
    """Return (package.path, package.cpath) as the runtime currently has them."""
    package = state.lua.globals()["package"]
    return package["path"], package["cpath"]
