"""Convert a web page into a self-contained PDF evidence document."""

from typing import Callable, Optional

from ..log import get_logger
from ..schemas.evidence import EvidenceDocument
from .authoring import DocumentAuthoring, LocalDocumentAuthoring
from .fetch import Fetcher, fetcher as default_fetcher
from .inline import ImageInliner, image_inliner
from .render import html_to_pdf

logger = get_logger("convert")


class PageConverter:
    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        inliner: Optional[ImageInliner] = None,
        render_pdf: Optional[Callable[..., bytes]] = None,
        authoring: Optional[DocumentAuthoring] = None,
    ):
        self.fetcher = fetcher or default_fetcher
        self.inliner = inliner or image_inliner
        self.render_pdf = render_pdf or html_to_pdf
        self.authoring = authoring

    def convert(self, url: str, use_intermediate_document: bool = False) -> EvidenceDocument:
        """
        Fetch `url`, embed its images and render it to PDF.

        With `use_intermediate_document`, the page goes through an editable
        document that is exported to PDF and then removed. The caller picks
        the strategy; nothing is detected automatically.

        Raises FetchError when the page itself cannot be fetched.
        """
        logger.info(f'--- Get HTML from "{url}".')
        html = self.fetcher.fetch_url(url)

        logger.info("--- Convert image data.")
        html = self.inliner.inline(html, source_url=url)

        if use_intermediate_document:
            logger.info("--- Convert HTML to PDF through an editable document.")
            authoring = self.authoring or LocalDocumentAuthoring(render_pdf=self.render_pdf)
            document_id = authoring.create_editable_document(url, html, base_url=url)
            try:
                content = authoring.export_as_pdf(document_id)
            finally:
                authoring.remove(document_id)
        else:
            logger.info("--- Convert HTML to PDF.")
            content = self.render_pdf(html, base_url=url)

        logger.info("--- Completely converted HTML to PDF.")
        return EvidenceDocument(name=url, content=content)


page_converter = PageConverter()
