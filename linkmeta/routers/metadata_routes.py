from fastapi import APIRouter, Depends, Query
from linkmeta.config.logging_config import get_logger
from linkmeta.dependencies.metadata_deps import get_metadata_service
from linkmeta.services.metadata_service import MetadataService

logger = get_logger(__name__)

router = APIRouter()


@router.get("")
async def get_metadata(url: str = Query(...), service: MetadataService = Depends(get_metadata_service)):
    logger.info(f"Received request for link metadata: {url}")
    metadata = await service.extract_metadata(url)
    return metadata.to_dict()


@router.get("/clear")
async def clear_metadata_cache(service: MetadataService = Depends(get_metadata_service)):
    service.clear_cache()
    return {"message": "Metadata cache cleared"}
