"""HTML to PDF rendering with WeasyPrint."""

from typing import Optional

from ..log import get_logger

logger = get_logger("render")


def html_to_pdf(html: str, base_url: Optional[str] = None) -> bytes:
    """
    Render an HTML string to PDF bytes.
    `base_url` resolves relative stylesheet and image references.
    """
    # Imported lazily: WeasyPrint needs native Pango libraries at import time.
    from weasyprint import HTML

    pdf = HTML(string=html, base_url=base_url).write_pdf()
    logger.debug(f"Rendered {len(html)} chars of HTML to {len(pdf)} bytes of PDF")
    return pdf
