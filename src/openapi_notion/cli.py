"""CLI entry point for openapi-notion."""

import json
import logging
from pathlib import Path

import click

from openapi_notion.app import App, render_file
from openapi_notion.config import load_config
from openapi_notion.errors import OpenApiNotionError
from openapi_notion.generator.collection import generate_collection
from openapi_notion.notion.adapter import NotionAdapter, SyncStatus
from openapi_notion.notion.client import NotionClient


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """openapi-notion: publish OpenAPI documents as Notion pages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


@main.command()
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
@click.option("--token", envvar="NOTION_TOKEN", required=True, help="Notion integration token (default: $NOTION_TOKEN).")
@click.option("--force", is_flag=True, help="Rewrite pages even when they are up to date.")
def sync(config_path: Path, token: str, force: bool):
    """Publish every configured API folder to Notion."""
    try:
        config = load_config(config_path)
        with NotionClient(token=token) as client:
            results = App(config, NotionAdapter(client), force=force).run()
    except OpenApiNotionError as e:
        raise click.ClickException(str(e)) from e

    updated = sum(1 for r in results if r.status is SyncStatus.UPDATED)
    click.echo(f"Done! {updated} page(s) updated, {len(results) - updated} up to date.")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the rendered blocks (JSON).")
@click.option("--layout", default="table", type=click.Choice(["table", "list"]), help="How schema properties are laid out.")
def render(doc_path: Path, output: Path, layout: str):
    """Render one OpenAPI document to Notion blocks without uploading them."""
    click.echo(f"Rendering {doc_path} (layout: {layout})...")
    try:
        page = render_file(doc_path, layout)
    except OpenApiNotionError as e:
        raise click.ClickException(str(e)) from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps({"title": page.title, "children": page.blocks}, indent=2, ensure_ascii=False), encoding="utf-8")
    click.echo(f"{len(page.blocks)} blocks saved to {output}")


@main.command()
@click.argument("folders", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output path of the merged YAML document.")
def collection(folders: tuple[Path, ...], output: Path):
    """Merge the OpenAPI documents found in FOLDERS into a single document."""
    try:
        merged = generate_collection(list(folders), output)
    except OpenApiNotionError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Collection with {len(merged['paths'])} paths written to {output}")
