"""Discover OpenAPI documents in a folder tree."""

from pathlib import Path

API_EXTENSIONS = (".yaml", ".yml")


def find_api_files(folder: Path) -> list[Path]:
    """Return every YAML file below *folder*, sorted for a stable processing order."""
    folder = Path(folder)
    if folder.is_file():
        return [folder] if folder.suffix in API_EXTENSIONS else []
    return sorted(p for p in folder.rglob("*") if p.is_file() and p.suffix in API_EXTENSIONS)
