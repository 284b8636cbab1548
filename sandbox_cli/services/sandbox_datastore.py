"""
Local datastore of sandboxes known to this machine.

Records are kept in a single JSON object keyed by sandbox id and every
mutation rewrites the whole file. There is no file locking: two CLI
processes sharing a cache directory race and the last writer wins.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from sandbox_cli.exceptions import CorruptLocalStateError
from sandbox_cli.models.sandbox_models import SandboxRecord
from sandbox_cli.utils.utils import read_json_file, write_json_file

logger = logging.getLogger(__name__)


class SandboxDatastore:
    """File-backed store of SandboxRecord with at most one current record."""

    def __init__(self, datafile: Union[str, Path]) -> None:
        self.datafile = Path(datafile)
        self._data: Dict[str, SandboxRecord] = {}

        if self.datafile.exists():
            self._data = self._load()
        else:
            logger.debug(f"No datastore at {self.datafile}, starting empty")

    def _load(self) -> Dict[str, SandboxRecord]:
        raw = read_json_file(self.datafile)
        if not isinstance(raw, dict):
            raise CorruptLocalStateError(str(self.datafile), "expected a JSON object keyed by sandbox id")

        data = {}
        for key, value in raw.items():
            if not isinstance(value, dict):
                raise CorruptLocalStateError(str(self.datafile), f"entry {key!r} is not an object")
            value = dict(value)
            value.setdefault("sandboxId", key)
            data[key] = SandboxRecord.from_dict(value)

        logger.debug(f"Loaded {len(data)} sandbox record(s) from {self.datafile}")
        return data

    def _flush_to_file(self) -> None:
        write_json_file(self.datafile, {k: rec.to_dict() for k, rec in self._data.items()})

    def _clear_current(self) -> None:
        for rec in self._data.values():
            rec.current = False

    def _make_current(self, sandbox_id: str, flush: bool) -> None:
        record = self._data[sandbox_id]
        self._clear_current()
        record.current = True
        if flush:
            self._flush_to_file()

    def make_current(self, sandbox_id: str) -> None:
        """
        Mark a sandbox as the current one.

        Raises:
            KeyError: If the sandbox id is not in the store
        """
        self._make_current(sandbox_id, flush=True)

    def save(self, record: SandboxRecord) -> None:
        """Insert or replace a record; a current record clears the flag elsewhere."""
        self._data[record.sandbox_id] = record
        if record.current:
            self._make_current(record.sandbox_id, flush=False)
        self._flush_to_file()

    def get_record(self, sandbox_id: str) -> Optional[SandboxRecord]:
        return self._data.get(sandbox_id)

    def has_record(self, sandbox_id: str) -> bool:
        return sandbox_id in self._data

    def delete_record(self, sandbox_id: str) -> None:
        self._data.pop(sandbox_id, None)
        self._flush_to_file()

    def get_all_records(self) -> List[SandboxRecord]:
        return list(self._data.values())

    def get_current(self) -> Optional[SandboxRecord]:
        return next((rec for rec in self._data.values() if rec.current), None)
