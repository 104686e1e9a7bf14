"""Loading and running the ldoc entry point.

Two entry point sources share one interface: EmbeddedEntryPoint reads the
script bytes generated into a Python module at build time, FileEntryPoint
reads <INSTALL_ROOT>/bin/ldoc.lua. Both are compiled with Lua's load() under
a chunk name and called under pcall inside Lua.

The two runners differ in what they raise. run_embedded() separates
compile errors from runtime errors; run_file() reports every failure as
ScriptFileError. Deciding which of these are fatal is left to the CLI.
"""

import importlib
import logging
import os
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from .errors import (
    EmbeddedRuntimeError,
    EmbeddedSourceError,
    EmbeddedSyntaxError,
    ScriptFileError,
)
from .install import encode_for_lua
from .runtime import LuaState

logger = logging.getLogger(__name__)


EMBEDDED_CHUNK_NAME = "@ldoc.lua"
DEFAULT_EMBEDDED_MODULE = "ldoc_launcher._ldoc_source"
EMBEDDED_SOURCE_ATTRIBUTE = "LDOC_SOURCE_BYTES"
DEFAULT_SCRIPT = "bin/ldoc.lua"

# Loads and runs a chunk in protected mode and reports (ok, stage, message),
# stage being "load" or "run". Errors never cross into Python, so messages
# carry no traceback.
_RUN_CHUNK_LUA = """
function(source, name)
   local fn, err = load(source, name)
   if not fn then
      return false, "load", tostring(err)
   end
   local ok, msg = pcall(fn)
   if not ok then
      return false, "run", tostring(msg)
   end
   return true, "run", ""
end
"""

_UTF8_BOM = b"\xef\xbb\xbf"


class EntryPoint(Protocol):
    """Something that can supply the ldoc script as bytes."""

    chunk_name: str

    def load_source(self) -> bytes:
        """Return the complete script source.

        Raises:
            EntryPointError: If the source cannot be obtained
        """
        ...


@dataclass
class EmbeddedEntryPoint:
    """Script bytes compiled into the package by ldoc-embed.

    Attributes:
        module_name: Generated module holding LDOC_SOURCE_BYTES
        source: Bytes to use directly instead of importing module_name
        chunk_name: Chunk name reported in Lua error messages
    """
    module_name: str = DEFAULT_EMBEDDED_MODULE
    source: Optional[bytes] = None
    chunk_name: str = EMBEDDED_CHUNK_NAME

    def load_source(self) -> bytes:
        if self.source is not None:
            return self.source

        try:
            module = importlib.import_module(self.module_name)
        except ImportError as e:
            raise EmbeddedSourceError(
                f"module '{self.module_name}' not found (generate it with ldoc-embed)"
            ) from e

        try:
            source = getattr(module, EMBEDDED_SOURCE_ATTRIBUTE)
        except AttributeError as e:
            raise EmbeddedSourceError(
                f"module '{self.module_name}' does not define {EMBEDDED_SOURCE_ATTRIBUTE}"
            ) from e

        return bytes(source)


@dataclass
class FileEntryPoint:
    """Script read from disk at launch time.

    Attributes:
        path: Absolute path of the script
    """
    path: str

    @property
    def chunk_name(self) -> str:
        return f"@{self.path}"

    def load_source(self) -> bytes:
        try:
            with open(self.path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ScriptFileError(f"cannot open {self.path}: {e.strerror or e}") from e
        return skip_comment_line(data)

    @classmethod
    def under(cls, install_root: str, script: str = DEFAULT_SCRIPT) -> "FileEntryPoint":
        """Entry point for a script given relative to the install root."""
        parts = [part for part in script.replace("\\", "/").split("/") if part]
        return cls(path=os.path.join(install_root, *parts))


def skip_comment_line(data: bytes) -> bytes:
    """Drop a UTF-8 BOM and a leading '#' line, as Lua's own file loader does.

    The newline is kept so line numbers in error messages stay right.
    """
    if data.startswith(_UTF8_BOM):
        data = data[len(_UTF8_BOM):]
    if data.startswith(b"#"):
        newline = data.find(b"\n")
        data = b"" if newline < 0 else data[newline:]
    return data


def _run_chunk(state: LuaState, source: bytes, chunk_name: str) -> Tuple[bool, str, str]:
    runner = state.lua.eval(_RUN_CHUNK_LUA)
    ok, stage, message = runner(source, encode_for_lua(chunk_name))
    return bool(ok), stage, message


def run_embedded(state: LuaState, entry_point: EntryPoint) -> None:
    """Compile and run the embedded script.

    Raises:
        EmbeddedSourceError: If the embedded bytes are unavailable
        EmbeddedSyntaxError: If the script does not compile
        EmbeddedRuntimeError: If the script raises an error
    """
    source = entry_point.load_source()
    logger.debug(f"Loading embedded chunk {entry_point.chunk_name} ({len(source)} bytes)")

    ok, stage, message = _run_chunk(state, source, entry_point.chunk_name)
    if ok:
        return
    if stage == "load":
        raise EmbeddedSyntaxError(message)
    raise EmbeddedRuntimeError(message)


def run_file(state: LuaState, entry_point: EntryPoint) -> None:
    """Read, compile and run the on-disk script.

    Raises:
        ScriptFileError: If the file is missing, does not compile, or raises an error
    """
    source = entry_point.load_source()
    logger.debug(f"Running {entry_point.chunk_name} ({len(source)} bytes)")

    ok, _, message = _run_chunk(state, source, entry_point.chunk_name)
    if not ok:
        raise ScriptFileError(message)
