from linkmeta.services.container import container
from linkmeta.services.metadata_service import MetadataService


def get_metadata_service() -> MetadataService:
    """Dependency for FastAPI"""
    return container.get_metadata_service()
