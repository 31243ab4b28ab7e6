from __future__ import annotations

from pathlib import Path


def print_event_gray(text: str) -> None:
    """
    Print event/debug output in gray using ANSI escape codes.
    """
    GRAY = "\033[90m"
    RESET = "\033[0m"
    print(f"{GRAY}{text}{RESET}")


def safe_input_path(raw: str, *, root: Path | None = None) -> Path:
    """
    Parse and validate a user-supplied path.

    - reject empty input and NUL bytes
    - reject '..' segments
    - when a root is given, the resolved path must lie within it
    """
    if not raw or raw.strip() == "":
        raise ValueError("Empty input path.")

    if "\x00" in raw:
        raise ValueError("NUL byte in path is not allowed.")

    p = Path(raw).expanduser()

    if any(part == ".." for part in p.parts):
        raise ValueError("Path traversal ('..') is not allowed.")

    resolved = p.resolve(strict=False)

    if root is not None:
        root_resolved = root.resolve(strict=True)
        try:
            resolved.relative_to(root_resolved)
        except ValueError as e:
            raise ValueError(f"Input path must be within root: {root_resolved}") from e

    if not resolved.exists():
        raise FileNotFoundError(f"File not found: {resolved}")
    if not resolved.is_file():
        raise IsADirectoryError(f"Not a file: {resolved}")

    return resolved
