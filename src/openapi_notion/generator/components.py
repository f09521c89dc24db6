"""Small reusable page fragments."""

import json

from openapi_notion.notion.builder import PAGE_ICON, BlocksBuilder, text
from openapi_notion.parser.base import MediaContent, Server


def page_header(builder: BlocksBuilder, file_name: str, visible: bool = True) -> None:
    if not visible:
        return
    builder.callout(
        text("This page is automatically generated from the OpenAPI specification.\n"),
        text("Do not edit!\n"),
        text("File: "),
        text(file_name, code=True, color="default"),
        icon=PAGE_ICON,
    )


def server_url(builder: BlocksBuilder, servers: list[Server]) -> None:
    """Show the first server, unless it is the bare root path."""
    if servers and servers[0].url != "/":
        builder.paragraph(text("Server: "), text(servers[0].url, code=True, color="blue"))


def example_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def example_item(builder: BlocksBuilder, content: MediaContent | None) -> None:
    """Collapsible examples of one media type; nothing when there are none."""
    if content is None or (content.example in (None, "") and not content.examples):
        return
    with builder.toggle("Examples"):
        if content.example not in (None, ""):
            builder.code_block("json", example_text(content.example))
        for example in content.examples.values():
            if example.summary and example.summary.strip():
                builder.paragraph(text(example.summary, bold=True))
            builder.code_block("json", example_text(example.value))
