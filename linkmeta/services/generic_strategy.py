import logging

from linkmeta.core.models import LinkMetadata
from .extraction_strategy import ExtractionStrategy, metadata_from_html
from .web_fetcher import WebFetcherInterface

logger = logging.getLogger(__name__)


class GenericHtmlStrategy(ExtractionStrategy):
    """Plain HTTP fetch followed by meta tag / markup extraction"""

    def __init__(self, web_fetcher: WebFetcherInterface):
        self.web_fetcher = web_fetcher

    async def extract(self, url: str) -> LinkMetadata:
        # FetchError propagates; the caller decides on the fallback
        html = await self.web_fetcher.fetch_html(url)
        metadata = metadata_from_html(html, url)
        logger.info(f"Extracted metadata from HTML for URL: {url} (image: {'yes' if metadata.image_url else 'no'})")
        return metadata
