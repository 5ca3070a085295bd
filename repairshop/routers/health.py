from fastapi import APIRouter

router = APIRouter(prefix="/repair/v1/health", tags=["health"])


@router.get("")
def health():
    return {"ok": True}
