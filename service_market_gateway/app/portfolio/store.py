"""
Key-value persistence for the user's holdings list.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Union
import json
import os
import threading

from shared.errors import InvalidArgumentError, NotFoundError
from shared.logging import get_logger

from .holdings import Holding


DEFAULT_KEY = "cryptoHoldings"


class HoldingsStore:
    """
    Persists the holdings list under a single key of a JSON document.

    Other keys in the document are left untouched on save. A missing file
    loads as an empty list, and so does a malformed one (with a warning), so
    a corrupt save never prevents the user from starting over.
    """

    def __init__(self, path: Union[str, Path], *, key: str = DEFAULT_KEY):
        self._path = Path(path).expanduser()
        self.key = key
        self._lock = threading.Lock()
        self.logger = get_logger("gateway.holdings_store")

    @property
    def path(self) -> Path:
        """Return the resolved path to the data file."""
        return self._path

    def load(self) -> List[Holding]:
        """Read the holdings list from disk."""
        with self._lock:
            return self._load_unlocked()

    def save(self, holdings: List[Holding]) -> None:
        """Replace the stored holdings list."""
        with self._lock:
            self._save_unlocked(holdings)

    def add(self, holding: Holding) -> List[Holding]:
        with self._lock:
            holdings = self._load_unlocked()
            holdings.append(holding)
            self._save_unlocked(holdings)
        return holdings

    def update(self, holding: Holding) -> List[Holding]:
        with self._lock:
            holdings = self._load_unlocked()
            for index, existing in enumerate(holdings):
                if existing.id == holding.id:
                    holdings[index] = holding
                    break
            else:
                raise NotFoundError("update_holding", holding.id)
            self._save_unlocked(holdings)
        return holdings

    def remove(self, holding_id: str) -> List[Holding]:
        with self._lock:
            holdings = self._load_unlocked()
            remaining = [holding for holding in holdings if holding.id != holding_id]
            if len(remaining) == len(holdings):
                raise NotFoundError("remove_holding", holding_id)
            self._save_unlocked(remaining)
        return remaining

    def get(self, holding_id: str) -> Holding:
        for holding in self.load():
            if holding.id == holding_id:
                return holding
        raise NotFoundError("get_holding", holding_id)

    def _load_unlocked(self) -> List[Holding]:
        rows = self._read_document().get(self.key, [])
        if not isinstance(rows, list):
            self.logger.warning("Holdings entry is not a list; ignoring", path=str(self._path), key=self.key)
            return []

        holdings: List[Holding] = []
        for row in rows:
            try:
                holdings.append(Holding.from_dict(row))
            except (KeyError, TypeError, InvalidArgumentError) as exc:
                self.logger.warning("Skipping invalid stored holding", row=row, error=str(exc))
        return holdings

    def _save_unlocked(self, holdings: List[Holding]) -> None:
        document = self._read_document()
        document[self.key] = [holding.to_dict() for holding in holdings]
        self._write_document(document)

    def _read_document(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except ValueError:
            self.logger.warning("Malformed holdings file; starting empty", path=str(self._path))
            return {}

        if not isinstance(document, dict):
            self.logger.warning("Holdings file is not a JSON object; starting empty", path=str(self._path))
            return {}
        return document

    def _write_document(self, document: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2, sort_keys=True)
        os.replace(tmp_path, self._path)
