from typing import Dict, Type, TypeVar
from .web_fetcher import WebFetcher, WebFetcherInterface
from .page_renderer import PageRenderer, PageRendererInterface
from .url_classifier import UrlClassifier, UrlClassifierInterface
from .cache_service import MetadataCache, CacheInterface
from .generic_strategy import GenericHtmlStrategy
from .rendered_strategy import RenderedPageStrategy
from .social_strategy import SocialPostStrategy
from .metadata_service import MetadataService

T = TypeVar('T')

class ServiceContainer:
    """Container for managing service dependencies with dependency injection"""

    def __init__(self):
        self._services: Dict[Type, object] = {}

        # Register services in dependency order
        self._register_services()

    def _register_services(self) -> None:
        """Register all services with proper dependency injection"""
        self._services[WebFetcherInterface] = WebFetcher()
        self._services[PageRendererInterface] = PageRenderer()
        self._services[UrlClassifierInterface] = UrlClassifier()
        self._services[CacheInterface] = MetadataCache()

        # Strategies
        self._services[GenericHtmlStrategy] = GenericHtmlStrategy(
            self._services[WebFetcherInterface]
        )
        self._services[RenderedPageStrategy] = RenderedPageStrategy(
            self._services[PageRendererInterface]
        )
        self._services[SocialPostStrategy] = SocialPostStrategy(
            self._services[WebFetcherInterface],
            self._services[PageRendererInterface]
        )

        # Main service that depends on others
        self._services[MetadataService] = MetadataService(
            self._services[UrlClassifierInterface],
            self._services[CacheInterface],
            self._services[GenericHtmlStrategy],
            self._services[RenderedPageStrategy],
            self._services[SocialPostStrategy]
        )

    def get_metadata_service(self) -> MetadataService:
        """Get the metadata service instance"""
        return self._services[MetadataService]  # type: ignore

    def get_service(self, interface: Type[T]) -> T:
        """Generic method to retrieve a service by its interface"""
        service = self._services.get(interface)
        if service is None:
            raise ValueError(f"Service for interface {interface.__name__} not found")
        return service  # type: ignore


container = ServiceContainer()
