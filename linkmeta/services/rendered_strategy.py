import logging

from linkmeta.core.models import LinkMetadata
from .extraction_strategy import ExtractionStrategy, metadata_from_html
from .page_renderer import PageRendererInterface

logger = logging.getLogger(__name__)


class RenderedPageStrategy(ExtractionStrategy):
    """Extraction from the DOM of a page rendered in a headless browser"""

    def __init__(self, renderer: PageRendererInterface):
        self.renderer = renderer

    async def extract(self, url: str) -> LinkMetadata:
        html = await self.renderer.render(url)
        return metadata_from_html(html, url)
