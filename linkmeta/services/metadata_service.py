import asyncio
import logging
from functools import partial
from typing import Optional, Set

from linkmeta.core.config import settings
from linkmeta.core.models import LinkMetadata
from linkmeta.utils.url_utils import get_domain
from .cache_service import CacheInterface
from .exceptions import FetchError
from .extraction_strategy import ExtractionStrategy, fallback_metadata
from .social_strategy import SocialPostStrategy
from .url_classifier import UrlClass, UrlClassifierInterface

logger = logging.getLogger(__name__)

UNTITLED = "Untitled link"


class MetadataService:
    """
    Entry point for link metadata extraction.

    extract_metadata() always returns a displayable LinkMetadata. Slow
    image rendering is raced against a fixed budget; for social posts a
    render that misses the budget keeps running and later writes its
    image into the cache entry.
    """

    def __init__(
        self,
        url_classifier: UrlClassifierInterface,
        cache: CacheInterface,
        generic_strategy: ExtractionStrategy,
        rendered_strategy: ExtractionStrategy,
        social_strategy: SocialPostStrategy,
        enrichment_timeout: Optional[float] = None,
        image_race_timeout: Optional[float] = None,
    ):
        self.url_classifier = url_classifier
        self.cache = cache
        self.generic_strategy = generic_strategy
        self.rendered_strategy = rendered_strategy
        self.social_strategy = social_strategy
        self.enrichment_timeout = settings.enrichment_timeout if enrichment_timeout is None else enrichment_timeout
        self.image_race_timeout = settings.image_race_timeout if image_race_timeout is None else image_race_timeout
        self._background_tasks: Set[asyncio.Task] = set()

    async def extract_metadata(self, url: str) -> LinkMetadata:
        """
        Get metadata for a URL, from cache when possible.

        Args:
            url: The URL to extract metadata from

        Returns:
            LinkMetadata; never raises
        """
        if not url or not url.strip():
            logger.warning("Empty or whitespace-only URL provided")
            return LinkMetadata(title=UNTITLED)

        url = url.strip()

        cached = self.cache.get(url)
        if cached is not None:
            logger.info(f"Metadata retrieved from cache for URL: {url}")
            return cached

        try:
            url_class = self.url_classifier.classify(url)
            logger.info(f"Metadata not in cache, extracting {url_class.value} URL: {url}")
            if url_class is UrlClass.SOCIAL_POST:
                metadata = await self._extract_social(url)
            else:
                metadata = await self._extract_generic(url)
        except Exception as e:
            logger.error(f"Unexpected error occurred while processing URL {url}: {str(e)}", exc_info=True)
            metadata = fallback_metadata(url)

        metadata = self._ensure_title(metadata, url)
        self.cache.set(url, metadata)
        logger.info(f"Metadata extracted and cached for URL: {url}")
        return metadata

    def clear_cache(self) -> None:
        """Forget every cached result so the next lookup extracts afresh"""
        self.cache.clear()

    async def wait_for_background_tasks(self) -> None:
        """Wait until detached rendering work has finished"""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _extract_generic(self, url: str) -> LinkMetadata:
        try:
            metadata = await self.generic_strategy.extract(url)
        except FetchError as e:
            logger.warning(f"Fetch failed for URL {url}, using fallback: {e.message}")
            return fallback_metadata(url)

        if metadata.image_url:
            return metadata

        logger.info(f"No image in HTML for URL {url}, trying rendered page")
        render_task = asyncio.create_task(self.rendered_strategy.extract(url))
        done, _ = await asyncio.wait({render_task}, timeout=self.enrichment_timeout)
        if not done:
            # The render runs on to its own timeout; its result is discarded
            logger.info(f"Rendered enrichment for URL {url} exceeded {self.enrichment_timeout}s, keeping HTML result")
            self._detach(render_task, f"rendered enrichment for {url}")
            return metadata

        try:
            rendered = render_task.result()
        except Exception as e:
            logger.warning(f"Rendered enrichment failed for URL {url}: {str(e)}")
            return metadata

        if rendered.image_url:
            return metadata.with_image(rendered.image_url)
        return metadata

    async def _extract_social(self, url: str) -> LinkMetadata:
        metadata = await self.social_strategy.extract_from_mirror(url)
        if metadata is None:
            return await self._race_rendered_social(url)
        if metadata.image_url:
            return metadata

        image_task = asyncio.create_task(self.social_strategy.extract_image(url))
        done, _ = await asyncio.wait({image_task}, timeout=self.image_race_timeout)
        if done:
            try:
                image_url = image_task.result()
            except Exception as e:
                logger.warning(f"Image rendering failed for social URL {url}: {str(e)}")
                return metadata
            return metadata.with_image(image_url) if image_url else metadata

        logger.info(f"Image rendering for URL {url} exceeded {self.image_race_timeout}s, finishing in background")
        self._detach(
            asyncio.create_task(self._complete_image_in_background(url, image_task)),
            f"image completion for {url}",
        )
        return metadata

    async def _race_rendered_social(self, url: str) -> LinkMetadata:
        """Mirror had nothing: one render supplies text and image, bounded by the race budget"""
        fallback = self.social_strategy.fallback(url)
        render_task = asyncio.create_task(self.social_strategy.extract_from_rendered_page(url))
        done, _ = await asyncio.wait({render_task}, timeout=self.image_race_timeout)
        if done:
            try:
                rendered = render_task.result()
            except Exception as e:
                logger.warning(f"Rendering failed for social URL {url}: {str(e)}")
                return fallback
            return rendered or fallback

        logger.info(f"Rendering for URL {url} exceeded {self.image_race_timeout}s, finishing in background")
        self._detach(
            asyncio.create_task(self._complete_render_in_background(url, render_task)),
            f"render completion for {url}",
        )
        return fallback

    async def _complete_render_in_background(self, url: str,
                                             render_task: "asyncio.Task[Optional[LinkMetadata]]") -> None:
        """Replace the provisional fallback with the late rendered result"""
        try:
            rendered = await render_task
        except Exception as e:
            logger.warning(f"Background rendering failed for URL {url}: {str(e)}")
            return

        if rendered is None:
            logger.info(f"Background rendering found no metadata for URL {url}")
            return

        if self.cache.get(url) is None:
            logger.info(f"Cache entry for URL {url} is gone, dropping late render")
            return

        self.cache.set(url, self._ensure_title(rendered, url))
        logger.info(f"Cache entry for URL {url} replaced with rendered metadata in background")

    async def _complete_image_in_background(self, url: str, image_task: "asyncio.Task[Optional[str]]") -> None:
        """Merge a late image into whatever the cache holds for the URL"""
        try:
            image_url = await image_task
        except Exception as e:
            logger.warning(f"Background image rendering failed for URL {url}: {str(e)}")
            return

        if not image_url:
            logger.info(f"Background rendering found no image for URL {url}")
            return

        current = self.cache.get(url)
        if current is None:
            logger.info(f"Cache entry for URL {url} is gone, dropping late image")
            return

        self.cache.set(url, current.with_image(image_url))
        logger.info(f"Cache entry for URL {url} enriched with image in background")

    def _detach(self, task: asyncio.Task, description: str) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(partial(self._on_background_done, description))

    def _on_background_done(self, description: str, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            logger.debug(f"Background {description} was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Background {description} failed: {error}")

    @staticmethod
    def _ensure_title(metadata: LinkMetadata, url: str) -> LinkMetadata:
        if metadata.title and metadata.title.strip():
            return metadata
        return LinkMetadata(
            title=get_domain(url) or UNTITLED,
            description=metadata.description,
            image_url=metadata.image_url,
        )
