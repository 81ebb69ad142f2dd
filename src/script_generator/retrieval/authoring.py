"""Editable-document round trip used as an alternative PDF conversion path.

Some pages render badly when converted straight to PDF. The round trip
imports the HTML as an editable document first (which drops scripts, embeds
and page styling), exports that document as PDF, then deletes it.
"""

import html as html_lib
import re
import uuid
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from ..config import get_settings
from ..log import get_logger
from .render import html_to_pdf

settings = get_settings()
logger = get_logger("authoring")

_STRIP_BLOCKS_RE = re.compile(
    r"<(script|style|noscript|iframe|svg|title)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_STRIP_TAGS_RE = re.compile(r"<!DOCTYPE[^>]*>|</?(html|head|body)\b[^>]*>|<(link|meta)\b[^>]*>", re.IGNORECASE)


class DocumentAuthoring(Protocol):
    def create_editable_document(self, name: str, html: str, base_url: Optional[str] = None) -> str:
        ...

    def export_as_pdf(self, document_id: str) -> bytes:
        ...

    def remove(self, document_id: str) -> None:
        ...


def to_editable_html(name: str, html: str) -> str:
    """Reduce a page to the plain content an editable document keeps on import."""
    text = _STRIP_BLOCKS_RE.sub("", html)
    text = _STRIP_TAGS_RE.sub("", text)
    return f'<!DOCTYPE html><html><head><meta charset="utf-8"><title>{html_lib.escape(name)}</title></head><body>{text}</body></html>'


class LocalDocumentAuthoring:
    """
    Keeps editable documents as HTML files in a scratch directory. The
    source URL is kept in a `.url` file beside the HTML so relative links
    resolve the same way on export as on direct conversion.
    """

    def __init__(
        self,
        workspace_dir: Union[str, Path, None] = None,
        render_pdf: Optional[Callable[..., bytes]] = None,
    ):
        self.workspace_dir = Path(workspace_dir or settings.WORKSPACE_DIR)
        self.render_pdf = render_pdf or html_to_pdf

    def _path(self, document_id: str) -> Path:
        return self.workspace_dir / f"{document_id}.html"

    def _base_url_path(self, document_id: str) -> Path:
        return self.workspace_dir / f"{document_id}.url"

    def create_editable_document(self, name: str, html: str, base_url: Optional[str] = None) -> str:
        self.workspace_dir.mkdir(parents=True, exist_ok=True)
        document_id = uuid.uuid4().hex
        self._path(document_id).write_text(to_editable_html(name, html), encoding="utf-8")
        if base_url:
            self._base_url_path(document_id).write_text(base_url, encoding="utf-8")
        logger.debug(f"Created editable document {document_id} for {name}")
        return document_id

    def export_as_pdf(self, document_id: str) -> bytes:
        base_url_path = self._base_url_path(document_id)
        base_url = base_url_path.read_text(encoding="utf-8") if base_url_path.exists() else None
        return self.render_pdf(self._path(document_id).read_text(encoding="utf-8"), base_url=base_url)

    def remove(self, document_id: str) -> None:
        self._path(document_id).unlink(missing_ok=True)
        self._base_url_path(document_id).unlink(missing_ok=True)
