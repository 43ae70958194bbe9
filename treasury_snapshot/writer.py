"""
Artifact Writer - serializes a successful SnapshotRun to JSON files.

Layout under the output root:
    <artifact_dir>/treasury.json   one per chain
    meta.json                      the SnapshotIndex

Every document is serialized and staged to a temporary sibling before the
first destination is replaced, so a failed write leaves the previous set
in place and a reader never sees a half-written file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable, Union

from treasury_snapshot.config import ChainContext
from treasury_snapshot.models import SnapshotRun


logger = logging.getLogger(__name__)


SNAPSHOT_FILENAME = "treasury.json"
INDEX_FILENAME = "meta.json"


def dump_json(document: dict[str, Any]) -> str:
    """Two-space indented JSON with a trailing newline."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


class ArtifactWriter:
    """Writes per-chain snapshots and the index under one directory."""

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def render(self, run: SnapshotRun, chains: Iterable[ChainContext]) -> dict[Path, str]:
        """Serialize every artifact of a run, keyed by destination path."""
        documents: dict[Path, str] = {}
        for chain in chains:
            snapshot = run.snapshots[chain.name]
            path = self._output_dir / chain.artifact_dir / SNAPSHOT_FILENAME
            documents[path] = dump_json(snapshot.to_dict())

        documents[self._output_dir / INDEX_FILENAME] = dump_json(run.index.to_dict())
        return documents

    def write(self, run: SnapshotRun, chains: Iterable[ChainContext]) -> list[Path]:
        """
        Write all artifacts of a run.

        Every document is staged to a temporary sibling first; destinations
        are replaced only once all of them are staged, so a failure while
        staging leaves the previous artifact set untouched.

        Returns:
            Paths written, in write order
        """
        documents = self.render(run, chains)

        staged: dict[Path, Path] = {}
        try:
            for path, text in documents.items():
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = path.with_name(f".{path.name}.tmp")
                staged[path] = tmp_path
                tmp_path.write_text(text, encoding="utf-8")

            written = []
            for path, tmp_path in staged.items():
                os.replace(tmp_path, path)
                written.append(path)
                logger.info(f"Wrote {path}")
            return written

        finally:
            for tmp_path in staged.values():
                if tmp_path.exists():
                    tmp_path.unlink()
