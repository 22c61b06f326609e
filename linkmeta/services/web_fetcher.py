import logging
from abc import ABC, abstractmethod
from typing import Optional
import httpx
from linkmeta.utils.url_utils import is_safe_url
from .exceptions import FetchError, URLValidationError, HTTPFetchError, UnsupportedContentTypeError

# Import settings
from linkmeta.core.config import settings

logger = logging.getLogger(__name__)

MARKUP_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class WebFetcherInterface(ABC):
    """Interface for fetching web content following the Dependency Inversion Principle"""

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        pass


class WebFetcher(WebFetcherInterface):
    """
    Fetches HTML content from URLs with a browser-like request profile
    """

    def __init__(self, timeout: float = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = settings.fetch_timeout if timeout is None else timeout
        self.transport = transport

    @staticmethod
    def build_headers() -> dict:
        # Many sites vary content or refuse requests that lack these
        return {
            "User-Agent": settings.fetch_user_agent,
            "Accept": settings.fetch_accept,
            "Accept-Language": settings.fetch_accept_language,
        }

    async def fetch_html(self, url: str) -> str:
        """Fetch HTML content from a URL with validation"""
        logger.info(f"Fetching HTML content from URL: {url}")

        if not is_safe_url(url):
            logger.warning(f"Invalid or unsafe URL provided: {url}")
            raise URLValidationError()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=settings.fetch_follow_redirects,
                headers=self.build_headers(),
                transport=self.transport,
            ) as client:
                res = await client.get(url)
                res.raise_for_status()

                content_type = res.headers.get("content-type", "")
                if content_type and not any(t in content_type.lower() for t in MARKUP_CONTENT_TYPES):
                    logger.warning(f"URL does not return HTML content. Content-Type: {content_type}")
                    raise UnsupportedContentTypeError(content_type)

                logger.info(f"Successfully fetched HTML content from URL: {url}")
                return res.text

        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP error occurred while fetching URL {url}: {e}")
            raise HTTPFetchError(status_code=e.response.status_code, message=f"HTTP error occurred: {e}")
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out after {self.timeout}s fetching URL {url}: {str(e)}")
            raise FetchError(f"Request timed out: {str(e)}")
        except httpx.RequestError as e:
            logger.warning(f"Request error occurred while fetching URL {url}: {str(e)}")
            raise FetchError(f"Request error occurred: {str(e)}")
