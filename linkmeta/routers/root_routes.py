from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {"message": "Link metadata service is running!"}
