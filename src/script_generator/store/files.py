"""File storage for exported evidence documents.

persist() writes a document under OUTPUT_DIR and returns its id and a
file:// URL; remove() deletes it again.
"""

import uuid
from pathlib import Path
from typing import Optional, Protocol, Union

from pydantic import BaseModel

from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import EvidenceDocument

settings = get_settings()
logger = get_logger("store")

class StoredFile(BaseModel):
    id: str
    url: str

class FileStorage(Protocol):
    def persist(self, document: EvidenceDocument) -> StoredFile:
        ...

    def remove(self, file_id: str) -> None:
        ...

class LocalFileStorage:
    def __init__(self, root: Union[str, Path, None] = None):
        self.root = Path(root or settings.OUTPUT_DIR)

    def _find(self, file_id: str) -> Optional[Path]:
        return next(self.root.glob(f"{file_id}_*"), None)

    def persist(self, document: EvidenceDocument) -> StoredFile:
        self.root.mkdir(parents=True, exist_ok=True)
        file_id = uuid.uuid4().hex[:12]
        path = (self.root / f"{file_id}_{document.filename}").resolve()
        path.write_bytes(document.content)
        logger.info(f"Stored {document.name} at {path}")
        return StoredFile(id=file_id, url=path.as_uri())

    def remove(self, file_id: str) -> None:
        path = self._find(file_id)
        if path is not None:
            path.unlink()

file_storage = LocalFileStorage()
