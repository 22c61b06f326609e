from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlparse

from linkmeta.core.config import settings


class UrlClass(str, Enum):
    GENERIC = "generic"
    SOCIAL_POST = "social_post"


class UrlClassifierInterface(ABC):
    """Interface for URL classification following the Dependency Inversion Principle"""

    @abstractmethod
    def classify(self, url: str) -> UrlClass:
        """
        Decide which extraction strategy a URL needs.

        Args:
            url: The URL string to analyze

        Returns:
            The UrlClass for the URL
        """
        pass


class UrlClassifier(UrlClassifierInterface):
    """
    Classifies a URL as a social post when its host is one of the known
    social domains or a subdomain of one; everything else is generic.
    """

    def __init__(self, social_domains: Optional[Iterable[str]] = None):
        domains = settings.social_domains if social_domains is None else social_domains
        self.social_domains = tuple(d.lower() for d in domains)

    def classify(self, url: str) -> UrlClass:
        try:
            host = (urlparse(url).hostname or "").lower()
        except ValueError:
            return UrlClass.GENERIC

        for domain in self.social_domains:
            if host == domain or host.endswith("." + domain):
                return UrlClass.SOCIAL_POST

        return UrlClass.GENERIC
