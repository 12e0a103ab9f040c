from __future__ import annotations
import os, json
from dataclasses import asdict
from ..ports.storage import ManifestSink
from ..domain.models import ChunkRec

class JSONLManifest(ManifestSink):
    """One JSON line per settled chunk; a run's failed chunks can be read back from it."""
    def __init__(self, path: str) -> None:
        self.path = path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    async def append(self, rec: ChunkRec) -> None:
        line = json.dumps(asdict(rec), separators=(",", ":")) + "\n"
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line); f.flush(); os.fsync(f.fileno())

    def records(self) -> list[ChunkRec]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [ChunkRec(**json.loads(line)) for line in f if line.strip()]
