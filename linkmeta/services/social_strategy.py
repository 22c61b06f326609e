import logging
import re
from functools import partial
from typing import Optional
from urllib.parse import urlparse, urlunparse

from linkmeta.core.config import settings
from linkmeta.core.models import LinkMetadata
from linkmeta.utils.text_utils import truncate
from linkmeta.utils.url_utils import extract_user_handle, make_absolute_url
from .exceptions import FetchError, RenderError
from .extraction_strategy import ExtractionStrategy, fallback_metadata
from .html_parser import HTMLParser, first_match, TITLE_MAX_LENGTH, PARAGRAPH_MAX_LENGTH
from .page_renderer import PageRendererInterface
from .web_fetcher import WebFetcherInterface

logger = logging.getLogger(__name__)

PLATFORM_LABEL = "X (Twitter)"

PROFILE_BANNER_SELECTORS = (
    'a[href$="/header_photo"] img',
    'img[src*="profile_banners"]',
)
PROFILE_AVATAR_SELECTORS = (
    'a[href$="/photo"] img',
    'div[data-testid^="UserAvatar-Container"] img',
    'img[src*="profile_images"]',
)
POST_AVATAR_SELECTORS = (
    'article[data-testid="tweet"] div[data-testid="Tweet-User-Avatar"] img',
    'div[data-testid="Tweet-User-Avatar"] img',
    'div[data-testid^="UserAvatar-Container"] img',
    'img[src*="profile_images"]',
)
POST_TEXT_SELECTORS = (
    'article[data-testid="tweet"] div[data-testid="tweetText"]',
    'div[data-testid="tweetText"]',
)
PROFILE_BIO_SELECTORS = ('div[data-testid="UserDescription"]',)

# Avatar thumbnails carry a size token before the extension, e.g. abc_normal.jpg
_THUMBNAIL_SUFFIX_RE = re.compile(r"_(?:normal|bigger|mini)(?=\.\w+$|\.\w+\?|$)")
FULL_SIZE_SUFFIX = "_400x400"


def is_profile_page(url: str) -> bool:
    return "/status/" not in urlparse(url).path


def upgrade_avatar_url(src: str) -> str:
    """Swap a thumbnail size token for the high resolution variant"""
    return _THUMBNAIL_SUFFIX_RE.sub(FULL_SIZE_SUFFIX, src, count=1)


class SocialPostStrategy(ExtractionStrategy):
    """
    Extraction for the social post platform, whose pages block plain fetches.

    Title and description come from a read-only mirror host that serves
    ordinary meta tags. When the mirror has nothing, the original page is
    rendered once and both text and image are read from it. The two phases
    are public so MetadataService can race the render against its budget.
    """

    def __init__(self, web_fetcher: WebFetcherInterface, renderer: PageRendererInterface,
                 mirror_host: Optional[str] = None):
        self.web_fetcher = web_fetcher
        self.renderer = renderer
        self.mirror_host = mirror_host or settings.social_mirror_host

    def mirror_url(self, url: str) -> str:
        """Same path and query, served from the mirror host"""
        parsed = urlparse(url)
        return urlunparse(parsed._replace(scheme="https", netloc=self.mirror_host))

    async def extract(self, url: str) -> LinkMetadata:
        metadata = await self.extract_from_mirror(url)
        if metadata is not None:
            return metadata

        metadata = await self.extract_from_rendered_page(url)
        if metadata is not None:
            return metadata

        logger.warning(f"No usable social metadata for URL {url}, using fallback")
        return self.fallback(url)

    async def extract_image(self, url: str) -> Optional[str]:
        """
        Render the original page and pick a preview image.

        Raises:
            RenderError: when the page cannot be rendered
        """
        html = await self.renderer.render(url)
        return self.select_image(HTMLParser(html, url), url)

    def select_image(self, parser: HTMLParser, url: str) -> Optional[str]:
        """Profiles prefer the banner then the avatar; posts use the author's avatar"""
        if is_profile_page(url):
            chain = (
                partial(parser.select_first_image, PROFILE_BANNER_SELECTORS),
                partial(parser.select_first_image, PROFILE_AVATAR_SELECTORS),
            )
        else:
            chain = (partial(parser.select_first_image, POST_AVATAR_SELECTORS),)

        src = first_match(chain)
        if not src:
            return None
        return make_absolute_url(upgrade_avatar_url(src), url)

    def fallback(self, url: str) -> LinkMetadata:
        metadata = fallback_metadata(url)
        handle = extract_user_handle(url)
        if handle:
            return LinkMetadata(title=f"@{handle} - {PLATFORM_LABEL}", description=metadata.description)
        return metadata

    async def extract_from_mirror(self, url: str) -> Optional[LinkMetadata]:
        """Metadata from the mirror host, or None when it has no title or description"""
        mirror = self.mirror_url(url)
        try:
            html = await self.web_fetcher.fetch_html(mirror)
        except FetchError as e:
            logger.warning(f"Mirror fetch failed for {mirror}: {e.message}")
            return None

        parser = HTMLParser(html, mirror)
        title = parser.get_title()
        description = parser.get_description()
        if not title and not description:
            logger.info(f"Mirror returned no usable metadata for {mirror}")
            return None

        logger.info(f"Using mirror metadata for URL: {url}")
        return LinkMetadata(
            title=title or self.fallback(url).title,
            description=description,
            image_url=parser.get_image(),
        )

    async def extract_from_rendered_page(self, url: str) -> Optional[LinkMetadata]:
        """Text and image from a single render of the original page"""
        try:
            html = await self.renderer.render(url)
        except RenderError as e:
            logger.warning(f"Rendering failed for social URL {url}: {e.message}")
            return None

        parser = HTMLParser(html, url)
        handle = extract_user_handle(url)

        def post_title() -> Optional[str]:
            text = parser.select_first_text(POST_TEXT_SELECTORS)
            if text and handle:
                return f"@{handle}: {truncate(text, TITLE_MAX_LENGTH)}"
            return None

        def post_text() -> Optional[str]:
            text = parser.select_first_text(POST_TEXT_SELECTORS)
            return truncate(text, PARAGRAPH_MAX_LENGTH) if text else None

        title = first_match((
            partial(parser.get_meta_content, "og:title"),
            partial(parser.get_meta_content, "twitter:title"),
            post_title,
            parser.get_document_title,
        ))
        description = first_match((
            partial(parser.get_meta_content, "og:description"),
            partial(parser.get_meta_content, "twitter:description"),
            partial(parser.get_meta_content, "description"),
            post_text,
            partial(parser.select_first_text, PROFILE_BIO_SELECTORS),
            parser.get_first_paragraph,
        ))
        if not title and not description:
            return None

        return LinkMetadata(
            title=title or self.fallback(url).title,
            description=description,
            image_url=self.select_image(parser, url) or parser.get_image(),
        )
