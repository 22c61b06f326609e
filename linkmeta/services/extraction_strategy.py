from abc import ABC, abstractmethod

from linkmeta.core.models import LinkMetadata
from linkmeta.utils.url_utils import get_domain
from .html_parser import HTMLParser


class ExtractionStrategy(ABC):
    """An algorithm for obtaining metadata from a URL"""

    @abstractmethod
    async def extract(self, url: str) -> LinkMetadata:
        """
        Extract metadata for a URL.

        Raises:
            ServiceError: when the strategy cannot produce a result at all
        """
        pass


def fallback_metadata(url: str) -> LinkMetadata:
    """Displayable stand-in used when nothing could be extracted"""
    domain = get_domain(url)
    return LinkMetadata(title=domain, description=f"Link from {domain}", image_url=None)


def metadata_from_html(html: str, url: str) -> LinkMetadata:
    """Run the title/description/image priority chains over a page"""
    parser = HTMLParser(html, url)
    return LinkMetadata(
        title=parser.get_title() or get_domain(url),
        description=parser.get_description(),
        image_url=parser.get_image(),
    )
