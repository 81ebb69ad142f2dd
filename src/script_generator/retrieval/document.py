"""Fold Stack Overflow search items into a single PDF evidence document."""

import html as html_lib
from typing import Callable, List, Optional, Sequence

from ..errors import MissingAcceptedAnswerError
from ..log import get_logger
from ..schemas.evidence import EvidenceDocument, SearchItem
from .inline import ImageInliner, image_inliner
from .render import html_to_pdf

logger = get_logger("document")

EVIDENCE_DOCUMENT_NAME = "ScriptGeneratorEvidence.pdf"

# Every question starts on a new page
PAGE_STYLE = "h1 { page-break-before: always; }"


def render_section(index: int, item: SearchItem) -> str:
    answer = item.accepted_answer()
    if answer is None:
        raise MissingAcceptedAnswerError(index, item.link)
    return "".join([
        f"<h1>Question {index}</h1>",
        f'<h2>Title: <a href="{html_lib.escape(item.link, quote=True)}">{item.title}</a></h2>',
        item.body,
        f"<h2>Solved answer to question {index}</h2>",
        answer.body,
    ])


def build_evidence_html(items: Sequence[SearchItem]) -> str:
    """One section per item, numbered from 1, in the given order."""
    sections = [render_section(i, item) for i, item in enumerate(items, start=1)]
    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8">'
        f"<style>{PAGE_STYLE}</style></head>"
        f"<body>{''.join(sections)}</body></html>"
    )


class EvidenceDocumentBuilder:
    def __init__(
        self,
        inliner: Optional[ImageInliner] = None,
        render_pdf: Optional[Callable[..., bytes]] = None,
        name: str = EVIDENCE_DOCUMENT_NAME,
    ):
        self.inliner = inliner or image_inliner
        self.render_pdf = render_pdf or html_to_pdf
        self.name = name

    def build(self, items: Sequence[SearchItem]) -> EvidenceDocument:
        """
        Raises MissingAcceptedAnswerError if any item lacks an accepted answer.
        """
        logger.info("--- Create HTML.")
        text = build_evidence_html(items)

        links: List[str] = [item.link for item in items]
        logger.info("--- Links of searched questions on Stackoverflow.")
        for link in links:
            logger.info(f"    {link}")

        logger.info("--- Convert image data.")
        text = self.inliner.inline(text)

        logger.info("--- Convert HTML to PDF.")
        content = self.render_pdf(text)
        logger.info("--- Completely converted HTML to PDF.")
        return EvidenceDocument(name=self.name, content=content)


evidence_document_builder = EvidenceDocumentBuilder()
