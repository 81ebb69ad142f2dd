"""Script generation run.

A run moves through a fixed sequence of states:

    INIT -> SOURCES_GATHERED -> RETURN_ITEMS                      (search only)
                             -> EVIDENCE_BUILT -> RETURN_URL       (export only)
                                               -> GENERATE -> DONE

RETURN_ITEMS, RETURN_URL and DONE are terminal. Any exception aborts the
run; no partial evidence is returned.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Union

from pydantic import BaseModel

from ..llm.client import LLMClient
from ..llm.prompts import build_generation_prompt
from ..mlops.tracing import tracer
from ..retrieval.convert import PageConverter, page_converter
from ..retrieval.document import EvidenceDocumentBuilder, evidence_document_builder
from ..retrieval.stackoverflow import StackOverflowSearch, stackoverflow_search
from ..schemas.evidence import EvidenceDocument, SearchItem
from ..schemas.outputs import GeneratedScript, build_generation_schema
from ..schemas.run_config import EvidenceSearchSettings, RunConfig
from ..store.files import FileStorage, file_storage

logger = logging.getLogger("pipeline")


class RunState(str, Enum):
    INIT = "init"
    SOURCES_GATHERED = "sources_gathered"
    RETURN_ITEMS = "return_items"
    EVIDENCE_BUILT = "evidence_built"
    RETURN_URL = "return_url"
    GENERATE = "generate"
    DONE = "done"


TERMINAL_STATES = {RunState.RETURN_ITEMS, RunState.RETURN_URL, RunState.DONE}

RunValue = Union[GeneratedScript, List[SearchItem], str]


class RunOutcome(BaseModel):
    state: RunState
    value: RunValue
    document_count: int = 0


class ScriptPipeline:
    def __init__(
        self,
        config: RunConfig,
        converter: Optional[PageConverter] = None,
        search: Optional[StackOverflowSearch] = None,
        builder: Optional[EvidenceDocumentBuilder] = None,
        storage: Optional[FileStorage] = None,
        llm_factory: Optional[Callable[..., LLMClient]] = None,
    ):
        self.config = config
        self.converter = converter or page_converter
        self.search = search or stackoverflow_search
        self.builder = builder or evidence_document_builder
        self.storage = storage or file_storage
        self.llm_factory = llm_factory or LLMClient
        self.state = RunState.INIT
        self.history: List[RunState] = [RunState.INIT]

    def _advance(self, state: RunState):
        logger.debug(f"Run state {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _finish(self, state: RunState, value: RunValue, documents: List[EvidenceDocument]) -> RunOutcome:
        self._advance(state)
        return RunOutcome(state=state, value=value, document_count=len(documents))

    def collect_other_sites(self) -> List[EvidenceDocument]:
        other = self.config.other_sources
        if not other or not other.urls:
            return []
        logger.info("--- Retrieving the related information from other sites.")
        with tracer.span("sources.convert", span_type="RETRIEVER", inputs={"urls": list(other.urls)}):
            return [self.converter.convert(url) for url in other.urls]

    def search_questions(self, settings: EvidenceSearchSettings) -> List[SearchItem]:
        logger.info("--- Searching the related questions and answers from Stackoverflow.")
        with tracer.span("stackoverflow.search", span_type="RETRIEVER", inputs={"query": settings.search_query}):
            items = self.search.search(
                settings.search_query,
                settings.search_tags,
                access_token=settings.access_token or None,
                key=settings.key or None,
            )
            tracer.annotate(item_count=len(items))
        logger.info(f"--- {len(items)} questions for supporting to generate script were retrieved.")
        return items

    def build_evidence(self, items: List[SearchItem], limit: int) -> EvidenceDocument:
        with tracer.span("evidence.build", span_type="CHAIN", question_count=min(limit, len(items))):
            return self.builder.build(items[:limit])

    def generate(self, documents: List[EvidenceDocument]) -> GeneratedScript:
        generation = self.config.generation
        logger.info("--- Generate script from your prompt.")
        client = self.llm_factory(api_key=generation.api_key or None, model=generation.model or None)

        prompt = build_generation_prompt(generation.prompt, with_evidence=bool(documents))
        schema = build_generation_schema(prompt)

        with tracer.span("generation.run", span_type="LLM", attachments=len(documents)):
            if documents:
                logger.info("--- Generate script using the referenced questions and answers of Stackoverflow or other sites.")
                return client.generate_with_files(schema, documents)
            logger.info("--- Generate script without using the referenced questions and answers of Stackoverflow and other sites.")
            return client.generate_content(schema, file_ids=[])

    def execute(self) -> RunOutcome:
        if self.state is not RunState.INIT:
            raise RuntimeError("A pipeline instance can only be executed once")

        documents = self.collect_other_sites()
        self._advance(RunState.SOURCES_GATHERED)

        search = self.config.evidence_search
        if search is not None:
            items = self.search_questions(search)
            if search.only_search_questions and not search.export_pdf:
                return self._finish(RunState.RETURN_ITEMS, items, documents)

            evidence = self.build_evidence(items, search.number_of_questions)
            documents.append(evidence)
            self._advance(RunState.EVIDENCE_BUILT)

            if search.export_pdf:
                logger.info("--- Exporting the searched questions and answers as a PDF file.")
                stored = self.storage.persist(evidence)
                logger.info(f"--- Exported to {stored.url}")
                if search.only_search_questions:
                    return self._finish(RunState.RETURN_URL, stored.url, documents)

        self._advance(RunState.GENERATE)
        result = self.generate(documents)
        return self._finish(RunState.DONE, result, documents)

    def run(self) -> RunValue:
        """Script and description, the raw search items, or the exported PDF URL."""
        return self.execute().value


def run_generation(config: RunConfig) -> RunValue:
    return ScriptPipeline(config).run()
