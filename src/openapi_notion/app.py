"""Per-file pipeline: load, render, synchronise."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from openapi_notion.config import Config
from openapi_notion.errors import ParseValidationError
from openapi_notion.generator.collection import generate_collection
from openapi_notion.generator.template import NotionTemplate
from openapi_notion.notion.adapter import NotionAdapter, SyncResult
from openapi_notion.notion.builder import Block
from openapi_notion.parser.detect import find_api_files
from openapi_notion.parser.openapi import load_document

logger = logging.getLogger(__name__)


@dataclass
class RenderedPage:
    title: str
    blocks: list[Block]


def render_file(file_path: Path, layout: str = "table") -> RenderedPage:
    """Render one OpenAPI file into page blocks.

    Raises :class:`ParseValidationError`; ``fatal`` is false for documents
    that should merely be skipped.
    """
    result = load_document(file_path)
    if result.invalid:
        raise ParseValidationError(file_path, result.messages, fatal=True)

    info = result.document.info if result.document else None
    if info is None:
        raise ParseValidationError(file_path, ["does not have an info section"], fatal=False)
    if not info.title or not info.title.strip():
        raise ParseValidationError(file_path, ["please add a title to your OpenAPI specification"], fatal=False)

    template = NotionTemplate(
        result.document,
        file_path.name,
        flatten=info.flatten,
        show_header=info.show_header,
        layout=layout,
    )
    return RenderedPage(title=info.title, blocks=template.render())


class App:
    """Publishes every configured API folder, one file at a time."""

    def __init__(self, config: Config, adapter: NotionAdapter, force: bool = False):
        self.config = config
        self.adapter = adapter
        self.force = force

    def run(self) -> list[SyncResult]:
        results = []
        for page in self.config.pages:
            for file_path in find_api_files(page.api_folder):
                result = self.publish(page.notion_page_id, file_path)
                if result is not None:
                    results.append(result)

        if self.config.generate_collection is not None:
            folders = [page.api_folder for page in self.config.pages]
            generate_collection(folders, self.config.generate_collection)
        return results

    def publish(self, parent_id: str, file_path: Path) -> SyncResult | None:
        """Render and sync one file; ``None`` when the file was skipped."""
        modified = datetime.fromtimestamp(file_path.stat().st_mtime, timezone.utc)
        logger.info("Processing %s %s", file_path.name, modified.isoformat())

        try:
            page = render_file(file_path, self.config.layout)
        except ParseValidationError as e:
            if e.fatal:
                raise
            logger.warning("Skipping %s: %s", file_path.name, "; ".join(e.messages))
            return None

        logger.info("Preparing page '%s'", page.title)
        return self.adapter.sync(parent_id, page.title, page.blocks, modified, force=self.force)
