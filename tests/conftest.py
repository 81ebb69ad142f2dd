import pytest
import os
from dotenv import load_dotenv

from script_generator.schemas.evidence import Answer, FetchResult, SearchItem

@pytest.fixture(scope="session", autouse=True)
def _load_env():
    # Load .env once per session to avoid side-effects on import time
    load_dotenv()

def _truthy(v: str | None) -> bool:
    return v is not None and v.strip().lower() not in ("", "0", "false", "no")

@pytest.fixture(scope="session")
def allow_integration(_load_env) -> bool:
    # Depends on _load_env to ensure .env is loaded first
    return _truthy(os.getenv("RUN_INTEGRATION_TESTS"))

@pytest.fixture(scope="session")
def openai_api_key(_load_env) -> str | None:
    key = os.getenv("OPENAI_API_KEY")
    if not key or key == "sk-...":
        return None
    return key

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"

@pytest.fixture
def png_bytes():
    return PNG_BYTES

@pytest.fixture
def fake_fetch():
    """
    Builds a resource fetch function from a {url: bytes | None} map.
    None (or an unknown URL) behaves like a 404. Calls are recorded on `.calls`.
    """
    def make(resources):
        calls = []

        def fetch(url):
            calls.append(url)
            content = resources.get(url)
            if content is None:
                return FetchResult(url=url, ok=False, status_code=404)
            return FetchResult(url=url, ok=True, status_code=200, content=content, content_type="image/png")

        fetch.calls = calls
        return fetch
    return make

@pytest.fixture
def fake_render():
    """PDF renderer stand-in; keeps every HTML string it was given."""
    rendered = []

    def render(html, base_url=None):
        rendered.append(html)
        return b"%PDF-1.7 fake"

    render.rendered = rendered
    return render

def make_item(i: int, accepted: bool = True) -> SearchItem:
    return SearchItem(
        title=f"How to do thing {i}?",
        link=f"https://stackoverflow.com/questions/{1000 + i}",
        body=f"<p>Question body {i}</p>",
        answers=[
            Answer(body=f"<p>Other answer {i}</p>", is_accepted=False),
            Answer(body=f"<p>Accepted answer {i}</p>", is_accepted=accepted),
        ],
    )

@pytest.fixture
def sample_items():
    return [make_item(i) for i in range(1, 16)]

@pytest.fixture
def item_factory():
    return make_item
