"""Build step that embeds ldoc.lua into the launcher package.

Reads the script, drops a leading shebang line (Lua's load() does not
accept one) and writes a Python module declaring the bytes as
LDOC_SOURCE_BYTES. The embedded launcher variant imports that module, so
the installed launcher needs no ldoc.lua next to it.

Usage: ldoc-embed INPUT [OUTPUT]
"""

import argparse
import re
import sys
from pathlib import Path
from typing import Optional, Sequence

from .entry import EMBEDDED_SOURCE_ATTRIBUTE


BYTES_PER_LINE = 16

DEFAULT_OUTPUT = Path(__file__).resolve().parent / "_ldoc_source.py"

_SHEBANG_PATTERN = re.compile(rb"^#![^\n]*\n")


class EmbedError(Exception):
    """Raised when the script cannot be read or the module cannot be written."""
    pass


def strip_shebang(data: bytes) -> bytes:
    """Remove a first line starting with '#!' (newline included)."""
    return _SHEBANG_PATTERN.sub(b"", data, count=1)


def render_module(data: bytes, source_name: str = "ldoc.lua") -> str:
    """Render the Python source of the generated module.

    Args:
        data: Script bytes to embed
        source_name: Name of the original script, for the header comment

    Returns:
        Module source text
    """
    lines = [
        f'"""Generated by ldoc-embed from {source_name}. Do not edit."""',
        "",
        f"{EMBEDDED_SOURCE_ATTRIBUTE} = bytes((",
    ]
    for start in range(0, len(data), BYTES_PER_LINE):
        chunk = data[start:start + BYTES_PER_LINE]
        lines.append("    " + " ".join(f"0x{byte:02x}," for byte in chunk))
    lines.append("))")
    lines.append("")
    lines.append(f"LDOC_SOURCE_SIZE = len({EMBEDDED_SOURCE_ATTRIBUTE})")
    lines.append("")
    return "\n".join(lines)


def embed_script(input_path: Path, output_path: Path) -> int:
    """Embed a Lua script into a generated Python module.

    Args:
        input_path: The Lua script (normally ldoc.lua)
        output_path: Where to write the generated module

    Returns:
        Number of bytes embedded

    Raises:
        EmbedError: If the input cannot be read or the output cannot be written
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    if not input_path.is_file():
        raise EmbedError(f"Input script does not exist: {input_path}")

    try:
        raw = input_path.read_bytes()
    except OSError as e:
        raise EmbedError(f"Failed to read {input_path}: {e}") from e

    data = strip_shebang(raw)

    try:
        output_path.write_text(render_module(data, input_path.name), encoding="utf-8")
    except OSError as e:
        raise EmbedError(f"Failed to write {output_path}: {e}") from e

    return len(data)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ldoc-embed",
        description="Embed ldoc.lua into the ldoc launcher package",
    )
    parser.add_argument(
        "input",
        metavar="INPUT",
        help="Path to the Lua script to embed",
    )
    parser.add_argument(
        "output",
        nargs="?",
        default=None,
        metavar="OUTPUT",
        help=f"Generated module to write (default: {DEFAULT_OUTPUT})",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    output = Path(args.output) if args.output is not None else DEFAULT_OUTPUT

    try:
        size = embed_script(Path(args.input), output)
    except EmbedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Embedded {size} bytes from {args.input} into {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
