"""YAML configuration file.

Example::

    generateCollection: build/collection.yaml
    layout: table
    pages:
      - notionPageId: 0f1e2d3c4b5a69788796a5b4c3d2e1f0
        apiFolder: api/
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from openapi_notion.errors import ConfigError


class PageConfig(BaseModel):
    """A Notion parent page and the folder whose documents are published under it."""

    model_config = ConfigDict(populate_by_name=True)

    notion_page_id: str = Field(alias="notionPageId")
    api_folder: Path = Field(alias="apiFolder")


class Config(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pages: list[PageConfig] = []
    generate_collection: Path | None = Field(default=None, alias="generateCollection")
    layout: Literal["table", "list"] = "table"


def load_config(path: Path) -> Config:
    """Load *path*; relative folders are resolved against the file's directory."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read configuration {path}: {e}") from e

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration {path}:\n{e}") from e

    base = path.parent
    for page in config.pages:
        if not page.api_folder.is_absolute():
            page.api_folder = base / page.api_folder
    if config.generate_collection is not None and not config.generate_collection.is_absolute():
        config.generate_collection = base / config.generate_collection
    return config
