from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import PersistenceFailure
from .interfaces import Persister


class JsonDocumentStore:
    """
    Stores a single JSON object through a Persister.

    - load() always returns a dict; MissingConfig from the persister propagates.
    - save() pretty-prints and hands the text to Persister.flush().
    - No schema is applied in either direction.
    """

    def __init__(self, persister: Persister, *, indent: int = 4):
        self._persister = persister
        self._indent = indent

    def load(self) -> dict[str, Any]:
        raw = self._persister.load()
        path = self._persister.filename
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceFailure(path, f'Invalid JSON in "{path}": {exc.msg}', cause=exc) from exc
        if not isinstance(doc, dict):
            raise PersistenceFailure(path, f'Expected a JSON object in "{path}", got {type(doc).__name__}')
        return doc

    def save(self, doc: Mapping[str, Any]) -> None:
        text = json.dumps(dict(doc), indent=self._indent, ensure_ascii=False)
        self._persister.flush(text + "\n")
