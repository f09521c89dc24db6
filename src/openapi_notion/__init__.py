"""Publish OpenAPI documents as Notion pages."""

__version__ = "0.1.0"
