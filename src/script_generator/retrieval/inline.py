"""Replace remote image references with embedded data URIs.

Works on the raw markup with regular expressions rather than a parsed DOM.
Callers only depend on inline_images(html) -> html, so a parser-based
implementation can replace this one.
"""

import re
from typing import Callable, Dict, Optional

from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import FetchResult
from .fetch import fetcher

settings = get_settings()
logger = get_logger("inline")

IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
IMG_SRC_RE = re.compile(r"""(?<![\w-])src\s*=\s*["']\s*(https?://[^"']+?)\s*["']""", re.IGNORECASE)
PICTURE_RE = re.compile(r"<picture\b[^>]*>.*?</picture>", re.IGNORECASE | re.DOTALL)
SRCSET_RE = re.compile(r"""(?<![\w-])srcset\s*=\s*["']\s*(https?://[^"']+)["']""", re.IGNORECASE)

# Hosts whose articles wrap images in <picture> with only a srcset candidate list
PICTURE_HOSTS = ("medium.com",)

FetchFn = Callable[[str], FetchResult]


def first_srcset_candidate(srcset: str) -> str:
    first = srcset.split(",")[0].strip()
    return first.split()[0] if first else ""


class ImageInliner:
    def __init__(self, fetch: Optional[FetchFn] = None, width: Optional[int] = None):
        self.fetch = fetch or fetcher.fetch_resource
        self.width = width if width is not None else settings.IMAGE_WIDTH

    def inline(self, html: str, source_url: Optional[str] = None) -> str:
        """
        Returns `html` with every absolute http(s) <img> source embedded.
        Tags whose image cannot be fetched are left exactly as they were.
        For PICTURE_HOSTS pages, <picture> blocks are also collapsed to a single <img>.
        """
        cache: Dict[str, FetchResult] = {}

        def load(url: str) -> FetchResult:
            if url not in cache:
                cache[url] = self.fetch(url)
            return cache[url]

        def replace_img(match: re.Match) -> str:
            tag = match.group(0)
            src = IMG_SRC_RE.search(tag)
            if not src:
                return tag
            result = load(src.group(1).strip())
            if not result.ok:
                return tag
            return f'<img src="{result.to_data_uri()}" width="{self.width}">'

        def replace_picture(match: re.Match) -> str:
            block = match.group(0)
            srcset = SRCSET_RE.search(block)
            if not srcset:
                return block
            url = first_srcset_candidate(srcset.group(1))
            if not url:
                return block
            result = load(url)
            if not result.ok:
                return block
            return f'<img src="{result.to_data_uri()}">'

        html = IMG_TAG_RE.sub(replace_img, html)
        if source_url and any(host in source_url for host in PICTURE_HOSTS):
            html = PICTURE_RE.sub(replace_picture, html)

        failed = [url for url, r in cache.items() if not r.ok]
        logger.debug(f"Inlined {len(cache) - len(failed)} image(s), skipped {len(failed)}")
        return html


image_inliner = ImageInliner()

def inline_images(html: str, source_url: Optional[str] = None) -> str:
    return image_inliner.inline(html, source_url=source_url)
