import pytest
from linkmeta.utils.url_utils import get_domain, extract_user_handle, make_absolute_url, is_safe_url
from linkmeta.utils.text_utils import normalize_text, truncate
from linkmeta.services.url_classifier import UrlClassifier, UrlClass


class TestUrlUtils:
    """Unit tests for URL helpers"""

    @pytest.mark.parametrize("url,expected", [
        ("https://www.example.com/a", "example.com"),
        ("https://Blog.Example.com:8443/a", "blog.example.com"),
        ("https://wwwexample.com", "wwwexample.com"),
        ("not a url", "not a url"),
    ])
    def test_get_domain(self, url, expected):
        assert get_domain(url) == expected

    def test_extract_user_handle(self):
        assert extract_user_handle("https://x.com/jack/status/20") == "jack"
        assert extract_user_handle("https://x.com/jack") == "jack"
        assert extract_user_handle("https://x.com/") is None

    def test_make_absolute_url(self):
        assert make_absolute_url("/img/x.png", "https://site.test/a/b") == "https://site.test/img/x.png"
        assert make_absolute_url("https://cdn.test/x.png", "https://site.test") == "https://cdn.test/x.png"
        assert make_absolute_url("//cdn.test/x.png", "https://site.test") == "https://cdn.test/x.png"
        assert make_absolute_url(None, "https://site.test") is None

    def test_make_absolute_url_never_raises(self):
        """An unparseable base URL leaves the relative value untouched."""
        assert make_absolute_url("img/x.png", "http://[broken") == "img/x.png"

    @pytest.mark.parametrize("url,expected", [
        ("https://www.example.com", True),
        ("http://example.com/path?q=1", True),
        ("ftp://example.com", False),
        ("javascript:alert('xss')", False),
        ("https://", False),
        ("http://localhost", False),
        ("http://10.0.0.1", False),
        ("http://172.16.0.1", False),
        ("http://[::1]/", False),
        ("http://example.com:999999", False),
    ])
    def test_is_safe_url(self, url, expected):
        assert is_safe_url(url) == expected


class TestTextUtils:
    def test_normalize_text(self):
        assert normalize_text("  a\n\n b\t c  ") == "a b c"
        assert normalize_text("Tom &amp; Jerry") == "Tom & Jerry"
        assert normalize_text("   ") is None
        assert normalize_text(None) is None

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("abcdefghij", 5) == "abcde..."


class TestUrlClassifier:
    """Unit tests for UrlClassifier"""

    def setup_method(self):
        self.classifier = UrlClassifier(social_domains=["twitter.com", "x.com"])

    @pytest.mark.parametrize("url", [
        "https://x.com/jack/status/20",
        "https://twitter.com/jack",
        "https://mobile.twitter.com/jack",
        "https://X.com/jack",
    ])
    def test_social_urls(self, url):
        assert self.classifier.classify(url) is UrlClass.SOCIAL_POST

    @pytest.mark.parametrize("url", [
        "https://example.com",
        "https://fox.com/news",
        "https://x.com.evil.test/jack",
        "not a url",
    ])
    def test_generic_urls(self, url):
        assert self.classifier.classify(url) is UrlClass.GENERIC
