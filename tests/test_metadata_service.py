import asyncio
import time

import httpx
import pytest
from unittest.mock import AsyncMock
from linkmeta.services.metadata_service import MetadataService
from linkmeta.services.cache_service import MetadataCache
from linkmeta.services.url_classifier import UrlClassifier
from linkmeta.services.generic_strategy import GenericHtmlStrategy
from linkmeta.services.rendered_strategy import RenderedPageStrategy
from linkmeta.services.social_strategy import SocialPostStrategy
from linkmeta.services.web_fetcher import WebFetcher, WebFetcherInterface
from linkmeta.services.page_renderer import PageRendererInterface
from linkmeta.services.exceptions import HTTPFetchError, RenderError
from linkmeta.core.models import LinkMetadata


ARTICLE_URL = "https://example.com/article"
POST_URL = "https://x.com/jack/status/20"
AVATAR_URL = "https://pbs.twimg.com/profile_images/1/jack_400x400.jpg"


class TestMetadataService:
    """Unit tests for MetadataService"""

    def setup_method(self):
        """Set up test fixtures before each test method."""
        self.cache = MetadataCache(maxsize=100, ttl=3600)
        self.mock_generic = AsyncMock(spec=GenericHtmlStrategy)
        self.mock_rendered = AsyncMock(spec=RenderedPageStrategy)
        self.mock_social = AsyncMock(spec=SocialPostStrategy)
        self.service = self._make_service(self.mock_generic)

    def _make_service(self, generic_strategy, enrichment_timeout=0.5, image_race_timeout=0.5):
        return MetadataService(
            url_classifier=UrlClassifier(social_domains=["twitter.com", "x.com"]),
            cache=self.cache,
            generic_strategy=generic_strategy,
            rendered_strategy=self.mock_rendered,
            social_strategy=self.mock_social,
            enrichment_timeout=enrichment_timeout,
            image_race_timeout=image_race_timeout,
        )

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self):
        # Arrange
        metadata = LinkMetadata(title="Article", description="Body", image_url="https://example.com/a.png")
        self.mock_generic.extract.return_value = metadata

        # Act
        first = await self.service.extract_metadata(ARTICLE_URL)
        second = await self.service.extract_metadata("https://EXAMPLE.com/article/")

        # Assert
        assert first == metadata
        assert second == first
        self.mock_generic.extract.assert_called_once_with(ARTICLE_URL)
        self.mock_rendered.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_404_yields_domain_fallback(self):
        # Arrange
        fetcher = WebFetcher(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        service = self._make_service(GenericHtmlStrategy(fetcher))

        # Act
        result = await service.extract_metadata("https://www.example.com/missing")

        # Assert
        assert result.title == "example.com"
        assert result.description == "Link from example.com"
        assert result.image_url is None
        self.mock_rendered.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetch_failure_from_strategy_yields_fallback(self):
        self.mock_generic.extract.side_effect = HTTPFetchError(status_code=500)

        result = await self.service.extract_metadata(ARTICLE_URL)

        assert result == LinkMetadata(title="example.com", description="Link from example.com")
        assert self.cache.get(ARTICLE_URL) == result

    @pytest.mark.asyncio
    async def test_generic_without_image_is_enriched_by_rendering(self):
        # Arrange
        self.mock_generic.extract.return_value = LinkMetadata(title="HTML title", description="HTML desc")
        self.mock_rendered.extract.return_value = LinkMetadata(
            title="Rendered title", description=None, image_url="https://example.com/rendered.png")

        # Act
        result = await self.service.extract_metadata(ARTICLE_URL)

        # Assert
        assert result == LinkMetadata(title="HTML title", description="HTML desc",
                                      image_url="https://example.com/rendered.png")
        assert self.cache.get(ARTICLE_URL) == result

    @pytest.mark.asyncio
    async def test_enrichment_failure_keeps_primary_result(self):
        primary = LinkMetadata(title="HTML title", description="HTML desc")
        self.mock_generic.extract.return_value = primary
        self.mock_rendered.extract.side_effect = RenderError("browser failed to launch")

        result = await self.service.extract_metadata(ARTICLE_URL)

        assert result == primary

    @pytest.mark.asyncio
    async def test_enrichment_without_image_keeps_primary_result(self):
        primary = LinkMetadata(title="HTML title", description="HTML desc")
        self.mock_generic.extract.return_value = primary
        self.mock_rendered.extract.return_value = LinkMetadata(title="Rendered", description="Other")

        result = await self.service.extract_metadata(ARTICLE_URL)

        assert result == primary

    @pytest.mark.asyncio
    async def test_slow_generic_enrichment_is_dropped(self):
        """A rendered enrichment that misses its budget never reaches the cache."""
        # Arrange
        primary = LinkMetadata(title="HTML title", description="HTML desc")
        self.mock_generic.extract.return_value = primary

        async def slow_render(url):
            await asyncio.sleep(0.3)
            return LinkMetadata(title="Rendered", image_url="https://example.com/late.png")

        self.mock_rendered.extract.side_effect = slow_render
        service = self._make_service(self.mock_generic, enrichment_timeout=0.05)

        # Act
        result = await service.extract_metadata(ARTICLE_URL)
        await service.wait_for_background_tasks()

        # Assert
        assert result == primary
        assert self.cache.get(ARTICLE_URL) == primary

    @pytest.mark.asyncio
    async def test_social_image_within_budget_is_merged(self):
        # Arrange
        self.mock_social.extract_from_mirror.return_value = LinkMetadata(title="jack (@jack)", description="hello")
        self.mock_social.extract_image.return_value = AVATAR_URL

        # Act
        result = await self.service.extract_metadata(POST_URL)

        # Assert
        assert result == LinkMetadata(title="jack (@jack)", description="hello", image_url=AVATAR_URL)
        assert self.cache.get(POST_URL) == result
        self.mock_generic.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_social_strategy_image_skips_race(self):
        metadata = LinkMetadata(title="jack", description="hello", image_url=AVATAR_URL)
        self.mock_social.extract_from_mirror.return_value = metadata

        result = await self.service.extract_metadata(POST_URL)

        assert result == metadata
        self.mock_social.extract_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_slow_social_image_returns_within_budget_and_refines_cache(self):
        """Bounded latency: the caller gets no image, the cache gets it later."""
        # Arrange
        self.mock_social.extract_from_mirror.return_value = LinkMetadata(title="jack (@jack)", description="hello")

        async def slow_image(url):
            await asyncio.sleep(0.4)
            return AVATAR_URL

        self.mock_social.extract_image.side_effect = slow_image
        service = self._make_service(self.mock_generic, image_race_timeout=0.05)

        # Act
        started = time.monotonic()
        result = await service.extract_metadata(POST_URL)
        elapsed = time.monotonic() - started

        # Assert
        assert elapsed < 0.3
        assert result.image_url is None
        assert self.cache.get(POST_URL).image_url is None

        await service.wait_for_background_tasks()

        assert self.cache.get(POST_URL).image_url == AVATAR_URL
        later = await service.extract_metadata(POST_URL)
        assert later == LinkMetadata(title="jack (@jack)", description="hello", image_url=AVATAR_URL)
        assert result.image_url is None
        self.mock_social.extract_from_mirror.assert_called_once()

    @pytest.mark.asyncio
    async def test_background_render_failure_is_swallowed(self):
        # Arrange
        metadata = LinkMetadata(title="jack (@jack)", description="hello")
        self.mock_social.extract_from_mirror.return_value = metadata

        async def failing_image(url):
            await asyncio.sleep(0.1)
            raise RenderError("navigation timed out")

        self.mock_social.extract_image.side_effect = failing_image
        service = self._make_service(self.mock_generic, image_race_timeout=0.01)

        # Act
        result = await service.extract_metadata(POST_URL)
        await service.wait_for_background_tasks()

        # Assert
        assert result == metadata
        assert self.cache.get(POST_URL) == metadata

    @pytest.mark.asyncio
    async def test_social_image_failure_within_budget_keeps_text(self):
        metadata = LinkMetadata(title="jack (@jack)", description="hello")
        self.mock_social.extract_from_mirror.return_value = metadata
        self.mock_social.extract_image.side_effect = RenderError("browser crashed")

        result = await self.service.extract_metadata(POST_URL)

        assert result == metadata

    @pytest.mark.asyncio
    async def test_rendered_social_result_within_budget_skips_image_race(self):
        # Arrange
        rendered = LinkMetadata(title="@jack: hello", description="hello", image_url=None)
        self.mock_social.extract_from_mirror.return_value = None
        self.mock_social.extract_from_rendered_page.return_value = rendered
        self.mock_social.fallback.return_value = LinkMetadata(title="@jack - X (Twitter)")

        # Act
        result = await self.service.extract_metadata(POST_URL)

        # Assert
        assert result == rendered
        self.mock_social.extract_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_never_escapes(self):
        self.mock_generic.extract.side_effect = RuntimeError("parser exploded")

        result = await self.service.extract_metadata("https://www.example.com/x")

        assert result == LinkMetadata(title="example.com", description="Link from example.com")

    @pytest.mark.asyncio
    async def test_empty_title_is_replaced_with_domain(self):
        self.mock_generic.extract.return_value = LinkMetadata(
            title="", description="desc", image_url="https://example.com/a.png")

        result = await self.service.extract_metadata(ARTICLE_URL)

        assert result.title == "example.com"
        assert self.cache.get(ARTICLE_URL).title == "example.com"

    @pytest.mark.asyncio
    async def test_clear_cache_forces_fresh_extraction(self):
        # Arrange
        self.mock_generic.extract.return_value = LinkMetadata(
            title="Article", image_url="https://example.com/a.png")
        await self.service.extract_metadata(ARTICLE_URL)

        # Act
        self.service.clear_cache()
        await self.service.extract_metadata(ARTICLE_URL)

        # Assert
        assert self.mock_generic.extract.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "   ", None])
    async def test_blank_url_returns_placeholder(self, url):
        result = await self.service.extract_metadata(url)

        assert result.title == "Untitled link"
        assert len(self.cache) == 0
        self.mock_generic.extract.assert_not_called()


RENDERED_POST_HTML = """
<html><body>
    <article data-testid="tweet">
        <div data-testid="Tweet-User-Avatar"><img src="https://pbs.twimg.com/profile_images/1/jack_normal.jpg"></div>
        <div data-testid="tweetText">hello world</div>
    </article>
</body></html>
"""


class TestSocialExtractionWithMirrorDown:
    """MetadataService driving a real SocialPostStrategy whose mirror is unavailable"""

    def setup_method(self):
        self.cache = MetadataCache(maxsize=100, ttl=3600)
        self.mock_fetcher = AsyncMock(spec=WebFetcherInterface)
        self.mock_fetcher.fetch_html.side_effect = HTTPFetchError(status_code=503)
        self.mock_renderer = AsyncMock(spec=PageRendererInterface)
        self.render_calls = 0

    def _make_service(self, image_race_timeout):
        return MetadataService(
            url_classifier=UrlClassifier(social_domains=["twitter.com", "x.com"]),
            cache=self.cache,
            generic_strategy=AsyncMock(spec=GenericHtmlStrategy),
            rendered_strategy=AsyncMock(spec=RenderedPageStrategy),
            social_strategy=SocialPostStrategy(self.mock_fetcher, self.mock_renderer, mirror_host="mirror.test"),
            enrichment_timeout=0.5,
            image_race_timeout=image_race_timeout,
        )

    def _render_returning(self, html, delay=0.0):
        async def render(url):
            self.render_calls += 1
            await asyncio.sleep(delay)
            return html
        return render

    @pytest.mark.asyncio
    async def test_slow_render_returns_handle_fallback_within_budget(self):
        # Arrange
        self.mock_renderer.render.side_effect = self._render_returning(RENDERED_POST_HTML, delay=0.4)
        service = self._make_service(image_race_timeout=0.05)

        # Act
        started = time.monotonic()
        result = await service.extract_metadata(POST_URL)
        elapsed = time.monotonic() - started

        # Assert
        assert elapsed < 0.3
        assert result == LinkMetadata(title="@jack - X (Twitter)", description="Link from x.com")
        assert self.cache.get(POST_URL) == result

        await service.wait_for_background_tasks()

        assert self.render_calls == 1
        assert self.cache.get(POST_URL) == LinkMetadata(
            title="@jack: hello world", description="hello world", image_url=AVATAR_URL)

    @pytest.mark.asyncio
    async def test_fast_render_without_avatar_renders_once(self):
        # Arrange
        html = '<html><body><div data-testid="tweetText">hello world</div></body></html>'
        self.mock_renderer.render.side_effect = self._render_returning(html)
        service = self._make_service(image_race_timeout=0.5)

        # Act
        result = await service.extract_metadata(POST_URL)
        await service.wait_for_background_tasks()

        # Assert
        assert result == LinkMetadata(title="@jack: hello world", description="hello world")
        assert self.render_calls == 1

    @pytest.mark.asyncio
    async def test_render_failure_returns_handle_fallback(self):
        self.mock_renderer.render.side_effect = RenderError("browser failed to launch")
        service = self._make_service(image_race_timeout=0.5)

        result = await service.extract_metadata(POST_URL)

        assert result == LinkMetadata(title="@jack - X (Twitter)", description="Link from x.com")
        self.mock_renderer.render.assert_awaited_once_with(POST_URL)
