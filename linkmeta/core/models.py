from typing import Optional, Dict, Any
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class LinkMetadata:
    """
    Title, description and preview image describing a URL for display.
    Values are never mutated; use with_image() to derive an updated copy.
    """
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    def with_image(self, image_url: Optional[str]) -> "LinkMetadata":
        """Return a copy carrying the given preview image"""
        return replace(self, image_url=image_url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the metadata to a dictionary representation"""
        return {
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
        }
