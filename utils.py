"""Utility helpers shared across server modules."""

from pathlib import Path


def resolve_served_file(name: str, files_directory: Path) -> Path | None:
    """Resolve a file name under the files root, or None if it escapes the root."""
    files_root = files_directory.resolve()
    candidate = (files_root / name).resolve()

    try:
        candidate.relative_to(files_root)
    except ValueError:
        return None

    return candidate
