import json
import re

import pytest
from unittest.mock import MagicMock, patch

from script_generator.errors import FetchError
from script_generator.llm.client import LLMClient
from script_generator.pipeline.run import RunState, ScriptPipeline
from script_generator.retrieval.convert import PageConverter
from script_generator.retrieval.document import EvidenceDocumentBuilder
from script_generator.retrieval.inline import ImageInliner
from script_generator.schemas.evidence import EvidenceDocument
from script_generator.schemas.outputs import GeneratedScript
from script_generator.schemas.run_config import (
    EvidenceSearchSettings,
    GenerationSettings,
    OtherSourcesSettings,
    RunConfig,
)
from script_generator.store.files import StoredFile

PROMPT = 'Create a script that moves rows where column "A" is not empty from "Sheet1" to "Sheet2".'
RESULT = GeneratedScript(script="function move() {}", descriptionOfScript="Moves rows.")


@pytest.fixture
def llm():
    client = MagicMock()
    client.generate_content.return_value = RESULT
    client.generate_with_files.return_value = RESULT
    return client


@pytest.fixture
def collaborators(llm, sample_items):
    converter = MagicMock()
    converter.convert.side_effect = lambda url: EvidenceDocument(name=url, content=b"%PDF page")
    search = MagicMock()
    search.search.return_value = sample_items
    builder = MagicMock()
    builder.build.return_value = EvidenceDocument(name="ScriptGeneratorEvidence.pdf", content=b"%PDF qa")
    storage = MagicMock()
    storage.persist.return_value = StoredFile(id="abc", url="file:///tmp/output/abc_ScriptGeneratorEvidence.pdf")
    llm_factory = MagicMock(return_value=llm)
    return {
        "converter": converter,
        "search": search,
        "builder": builder,
        "storage": storage,
        "llm_factory": llm_factory,
    }


def _config(search=None, urls=None):
    return RunConfig(
        generation=GenerationSettings(prompt=PROMPT, model="gpt-4o"),
        evidence_search=search,
        other_sources=OtherSourcesSettings(urls=urls) if urls is not None else None,
    )


def test_prompt_only_generation(collaborators, llm):
    """
    WHY: With no evidence sources the task prompt goes to the model as-is.
    HOW: Run with only generation settings.
    EXPECTED: Schema description equals the prompt, no attachments, nothing fetched.
    """
    pipeline = ScriptPipeline(_config(), **collaborators)

    result = pipeline.run()

    assert result == RESULT
    schema = llm.generate_content.call_args.args[0]
    assert schema["description"] == PROMPT
    assert llm.generate_content.call_args.kwargs["file_ids"] == []
    llm.generate_with_files.assert_not_called()
    collaborators["converter"].convert.assert_not_called()
    collaborators["search"].search.assert_not_called()
    assert pipeline.history == [RunState.INIT, RunState.SOURCES_GATHERED, RunState.GENERATE, RunState.DONE]


def test_only_search_returns_raw_items(collaborators, llm, sample_items):
    """
    WHY: Search-only runs are used to inspect candidates before generating.
    HOW: only_search_questions=True, export_pdf=False with 15 search results.
    EXPECTED: All 15 items returned untruncated; builder and model never touched.
    """
    search = EvidenceSearchSettings(search_query="move rows", search_tags={"google-apps-script"}, only_search_questions=True)
    pipeline = ScriptPipeline(_config(search=search), **collaborators)

    outcome = pipeline.execute()

    assert outcome.state is RunState.RETURN_ITEMS
    assert outcome.value == sample_items
    assert len(outcome.value) == 15
    collaborators["builder"].build.assert_not_called()
    collaborators["llm_factory"].assert_not_called()


def test_search_results_truncated_to_number_of_questions(collaborators, sample_items):
    search = EvidenceSearchSettings(search_query="move rows", number_of_questions=10)
    pipeline = ScriptPipeline(_config(search=search), **collaborators)

    pipeline.run()

    built_items = collaborators["builder"].build.call_args.args[0]
    assert built_items == sample_items[:10]


def test_truncated_document_references_first_ten_questions(collaborators, sample_items, fake_fetch, fake_render):
    """
    WHY: Only the top-ranked questions may end up in the evidence PDF.
    HOW: 15 results, number_of_questions=10, real builder with a fake renderer.
    EXPECTED: Rendered HTML has exactly questions 1-10 from the original ranking.
    """
    collaborators["builder"] = EvidenceDocumentBuilder(
        inliner=ImageInliner(fetch=fake_fetch({}), width=1000), render_pdf=fake_render
    )
    search = EvidenceSearchSettings(search_query="move rows", number_of_questions=10)

    ScriptPipeline(_config(search=search), **collaborators).run()

    [html] = fake_render.rendered
    assert re.findall(r"<h1>Question (\d+)</h1>", html) == [str(i) for i in range(1, 11)]
    for item in sample_items[:10]:
        assert item.link in html
    for item in sample_items[10:]:
        assert item.link not in html


def test_export_only_returns_storage_url(collaborators, llm):
    search = EvidenceSearchSettings(search_query="q", only_search_questions=True, export_pdf=True)
    pipeline = ScriptPipeline(_config(search=search), **collaborators)

    outcome = pipeline.execute()

    assert outcome.state is RunState.RETURN_URL
    assert outcome.value == "file:///tmp/output/abc_ScriptGeneratorEvidence.pdf"
    collaborators["storage"].persist.assert_called_once_with(collaborators["builder"].build.return_value)
    collaborators["llm_factory"].assert_not_called()
    assert pipeline.history[-2:] == [RunState.EVIDENCE_BUILT, RunState.RETURN_URL]


def test_export_then_generate(collaborators, llm):
    search = EvidenceSearchSettings(search_query="q", export_pdf=True)
    outcome = ScriptPipeline(_config(search=search), **collaborators).execute()

    assert outcome.state is RunState.DONE
    assert outcome.value == RESULT
    collaborators["storage"].persist.assert_called_once()
    llm.generate_with_files.assert_called_once()


def test_evidence_wraps_prompt_and_attaches_all_documents(collaborators, llm):
    """
    WHY: With evidence, the model must be told to read the attachments first.
    HOW: Two other-site URLs plus a Stack Overflow search.
    EXPECTED: Prompt wraps the original in <MainQuestion>; three documents attached in source order.
    """
    search = EvidenceSearchSettings(search_query="q")
    urls = ["https://example.com/a", "https://example.com/b"]
    outcome = ScriptPipeline(_config(search=search, urls=urls), **collaborators).execute()

    schema, documents = llm.generate_with_files.call_args.args
    assert f"<MainQuestion>{PROMPT}</MainQuestion>" in schema["description"]
    assert schema["description"] != PROMPT
    assert [d.name for d in documents] == urls + ["ScriptGeneratorEvidence.pdf"]
    assert outcome.document_count == 3
    llm.generate_content.assert_not_called()


def test_stage_spans_opened_in_run_order(collaborators, sample_items):
    """
    WHY: Each stage of a full run should show up as its own trace span.
    HOW: Patch the pipeline tracer and run with URLs plus a search.
    EXPECTED: Spans open in stage order with their counts; the search span is annotated with the item count.
    """
    search = EvidenceSearchSettings(search_query="q", number_of_questions=10)
    urls = ["https://example.com/a"]

    with patch("script_generator.pipeline.run.tracer") as tracer:
        ScriptPipeline(_config(search=search, urls=urls), **collaborators).run()

    assert [c.args[0] for c in tracer.span.call_args_list] == [
        "sources.convert", "stackoverflow.search", "evidence.build", "generation.run",
    ]
    assert tracer.span.call_args_list[0].kwargs["inputs"] == {"urls": urls}
    assert tracer.span.call_args_list[2].kwargs["question_count"] == 10
    assert tracer.span.call_args_list[3].kwargs["attachments"] == 2
    tracer.annotate.assert_called_once_with(item_count=len(sample_items))


def test_search_credentials_passed_through(collaborators):
    search = EvidenceSearchSettings(search_query="q", search_tags={"python"}, access_token="tok", key="k")
    ScriptPipeline(_config(search=search), **collaborators).run()

    args, kwargs = collaborators["search"].search.call_args
    assert args == ("q", frozenset({"python"}))
    assert kwargs == {"access_token": "tok", "key": "k"}


def test_generation_settings_reach_client_factory(collaborators):
    config = RunConfig(generation=GenerationSettings(prompt="p", api_key="sk-run", model="gpt-4o-mini"))
    ScriptPipeline(config, **collaborators).run()
    collaborators["llm_factory"].assert_called_once_with(api_key="sk-run", model="gpt-4o-mini")


def test_source_fetch_failure_aborts_run(collaborators, llm):
    collaborators["converter"].convert.side_effect = FetchError("https://example.com/a", 404, "Not Found")
    pipeline = ScriptPipeline(_config(urls=["https://example.com/a"]), **collaborators)

    with pytest.raises(FetchError):
        pipeline.run()
    collaborators["llm_factory"].assert_not_called()
    assert pipeline.state is RunState.INIT


def test_pipeline_runs_once(collaborators):
    pipeline = ScriptPipeline(_config(), **collaborators)
    pipeline.run()
    with pytest.raises(RuntimeError):
        pipeline.run()


def test_end_to_end_with_two_urls(fake_fetch, fake_render):
    """
    WHY: Full path from source URLs to a parsed script.
    HOW: Real converter/inliner/client wiring; page fetches, PDF rendering and OpenAI mocked.
    EXPECTED: Result fields equal the mocked model reply exactly.
    """
    pages = {
        "https://example.com/one": "<h1>One</h1>",
        "https://example.com/two": "<h1>Two</h1>",
    }
    fetcher = MagicMock()
    fetcher.fetch_url.side_effect = lambda url: pages[url]
    converter = PageConverter(fetcher=fetcher, inliner=ImageInliner(fetch=fake_fetch({}), width=1000), render_pdf=fake_render)

    openai = MagicMock()
    reply = {"script": "const x = 1;", "descriptionOfScript": "Sets x."}
    openai.chat.completions.create.return_value.choices[0].message.content = json.dumps(reply)
    openai.files.create.side_effect = [MagicMock(id="file-1"), MagicMock(id="file-2")]

    config = RunConfig(
        generation=GenerationSettings(prompt=PROMPT, model="gpt-4o"),
        other_sources=OtherSourcesSettings(urls=list(pages)),
    )
    pipeline = ScriptPipeline(
        config,
        converter=converter,
        llm_factory=lambda api_key=None, model=None: LLMClient(model=model, client=openai),
    )

    result = pipeline.run()

    assert result.script == reply["script"]
    assert result.description_of_script == reply["descriptionOfScript"]
    assert [c.args[0] for c in fetcher.fetch_url.call_args_list] == list(pages)
    assert fake_render.rendered == list(pages.values())
    assert openai.files.create.call_count == 2
    assert openai.files.delete.call_count == 2
