"""JSON-file cart storage, local to one device."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from storefront_ledger.domain.catalog import LineItem
from storefront_ledger.repositories.interfaces import CartRepository


class JSONFileCartRepository(CartRepository):
    """Keeps the cart in a JSON file so it survives restarts."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[LineItem]:
        if not self._path.exists():
            return []
        data = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        return [LineItem.from_dict(item) for item in data]

    def save(self, items: Sequence[LineItem]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps([item.to_dict() for item in items], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        tmp_path.replace(self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class InMemoryCartRepository(CartRepository):
    """Cart held in process memory, for the API and tests."""

    def __init__(self, items: Sequence[LineItem] | None = None) -> None:
        self._items = list(items or [])

    def load(self) -> list[LineItem]:
        return list(self._items)

    def save(self, items: Sequence[LineItem]) -> None:
        self._items = list(items)

    def clear(self) -> None:
        self._items = []
