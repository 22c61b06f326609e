"""HTML parsing utilities for metadata extraction"""

import logging
from functools import partial
from typing import Callable, Iterable, Optional, Sequence

from bs4 import BeautifulSoup

from linkmeta.utils.text_utils import normalize_text, truncate
from linkmeta.utils.url_utils import make_absolute_url


logger = logging.getLogger(__name__)

Extractor = Callable[[], Optional[str]]

META_ATTRIBUTES = ("property", "name", "itemprop")

TITLE_MAX_LENGTH = 100
PARAGRAPH_MAX_LENGTH = 200
PARAGRAPH_MIN_LENGTH = 20
IMAGE_SRC_MIN_LENGTH = 5

HERO_IMAGE_SELECTORS = (
    'img[class*="hero"]',
    'img[class*="banner"]',
    'img[class*="logo"]',
)
CONTENT_IMAGE_SELECTORS = ("main img", "article img")


def first_match(extractors: Iterable[Extractor]) -> Optional[str]:
    """
    Evaluate extractors in order and return the first non-empty value.
    An extractor that raises counts as "no match".
    """
    for extractor in extractors:
        try:
            value = extractor()
        except Exception as e:
            logger.debug(f"Extractor {getattr(extractor, '__name__', extractor)} failed: {str(e)}")
            continue
        if value:
            return value
    return None


def is_usable_image_src(src: Optional[str]) -> bool:
    """Reject inline data URIs and placeholder-length sources"""
    if not src:
        return False
    src = src.strip()
    return not src.lower().startswith("data:") and len(src) >= IMAGE_SRC_MIN_LENGTH


class HTMLParser:
    """Encapsulates HTML parsing functionality"""

    def __init__(self, html: str, url: str):
        """
        Initialize the HTML parser

        Args:
            html: HTML content to parse
            url: Page URL, used for resolving relative links
        """
        self.html = html
        self.url = url
        try:
            self.soup = BeautifulSoup(html or "", "lxml")
        except Exception as e:
            # Unparseable markup behaves like an empty document
            logger.warning(f"Failed to parse markup for URL {url}: {str(e)}")
            self.soup = BeautifulSoup("", "lxml")

    def get_meta_content(self, tag: str) -> Optional[str]:
        """Content of a meta tag looked up by property, then name, then itemprop"""
        for attr in META_ATTRIBUTES:
            el = self.soup.find("meta", attrs={attr: tag})
            if el and el.get("content"):
                content = normalize_text(el.get("content"))
                if content:
                    return content
        return None

    def get_document_title(self) -> Optional[str]:
        """Text of the <title> element, truncated for display"""
        if not self.soup.title:
            return None
        title = normalize_text(self.soup.title.get_text())
        return truncate(title, TITLE_MAX_LENGTH) if title else None

    def get_first_paragraph(self) -> Optional[str]:
        """First <p> long enough to read as a summary"""
        for p in self.soup.find_all("p"):
            text = normalize_text(p.get_text())
            if text and len(text) > PARAGRAPH_MIN_LENGTH:
                return truncate(text, PARAGRAPH_MAX_LENGTH)
        return None

    def select_first_attr(self, selectors: Sequence[str], attr: str) -> Optional[str]:
        """Attribute of the first element matched by the first selector that matches"""
        for selector in selectors:
            for el in self.soup.select(selector):
                value = el.get(attr)
                if value and str(value).strip():
                    return str(value).strip()
        return None

    def select_first_text(self, selectors: Sequence[str]) -> Optional[str]:
        """Normalized text of the first non-empty element matched by the selectors"""
        for selector in selectors:
            for el in self.soup.select(selector):
                text = normalize_text(el.get_text(" "))
                if text:
                    return text
        return None

    def select_first_image(self, selectors: Sequence[str]) -> Optional[str]:
        """src of the first usable <img> matched by the selectors"""
        for selector in selectors:
            for img in self.soup.select(selector):
                src = img.get("src")
                if is_usable_image_src(src):
                    return src.strip()
        return None

    def title_chain(self) -> Sequence[Extractor]:
        return (
            partial(self.get_meta_content, "og:title"),
            partial(self.get_meta_content, "twitter:title"),
            partial(self.get_meta_content, "title"),
            self.get_document_title,
        )

    def description_chain(self) -> Sequence[Extractor]:
        return (
            partial(self.get_meta_content, "og:description"),
            partial(self.get_meta_content, "twitter:description"),
            partial(self.get_meta_content, "description"),
            self.get_first_paragraph,
        )

    def image_chain(self) -> Sequence[Extractor]:
        return (
            partial(self.get_meta_content, "og:image"),
            partial(self.get_meta_content, "twitter:image"),
            partial(self.get_meta_content, "twitter:image:src"),
            partial(self.select_first_image, HERO_IMAGE_SELECTORS),
            partial(self.select_first_image, CONTENT_IMAGE_SELECTORS),
        )

    def get_title(self) -> Optional[str]:
        """Extract title from multiple possible sources"""
        return first_match(self.title_chain())

    def get_description(self) -> Optional[str]:
        """Extract description from multiple possible sources"""
        return first_match(self.description_chain())

    def get_image(self) -> Optional[str]:
        """Extract image from multiple possible sources, as an absolute URL"""
        return make_absolute_url(first_match(self.image_chain()), self.url)
