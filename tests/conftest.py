import itertools

import pytest


class FakeNotion:
    """In-memory stand-in for the Notion API (implements RemoteStore).

    Every call is recorded in ``calls``; exceptions queued in ``failures``
    are raised, one per call, before the call takes effect.
    """

    def __init__(self, page_size: int = 100):
        self.page_size = page_size
        self.children: dict[str, list[dict]] = {}
        self.pages: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.failures: list[Exception] = []
        self._ids = itertools.count(1)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.failures:
            raise self.failures.pop(0)

    def list_block_children(self, block_id, start_cursor=None):
        self._call("list_block_children", block_id, start_cursor)
        items = self.children.get(block_id, [])
        start = int(start_cursor) if start_cursor else 0
        has_more = start + self.page_size < len(items)
        return {
            "results": items[start:start + self.page_size],
            "has_more": has_more,
            "next_cursor": str(start + self.page_size) if has_more else None,
        }

    def append_block_children(self, block_id, children):
        self._call("append_block_children", block_id, children)
        saved = [dict(child, id=f"block-{next(self._ids)}") for child in children]
        self.children.setdefault(block_id, []).extend(saved)
        return {"results": saved}

    def delete_block(self, block_id):
        self._call("delete_block", block_id)
        for items in self.children.values():
            items[:] = [b for b in items if b["id"] != block_id]
        return {"id": block_id, "archived": True}

    def create_page(self, parent_id, title, icon=None):
        self._call("create_page", parent_id, title, icon)
        page_id = f"page-{next(self._ids)}"
        self.pages[page_id] = {"id": page_id, "icon": icon, "properties": {"title": title}}
        self.children.setdefault(parent_id, []).append(
            {"id": page_id, "type": "child_page", "child_page": {"title": title}}
        )
        return self.pages[page_id]

    def retrieve_page(self, page_id):
        self._call("retrieve_page", page_id)
        return self.pages[page_id]

    def update_page(self, page_id, properties):
        self._call("update_page", page_id, properties)
        self.pages[page_id]["properties"].update(properties)
        return self.pages[page_id]


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def sleeps():
    return []
