from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fliq.api.deps import get_current_user
from fliq.models.user import User
from fliq.services.storage_service import UploadError, store_upload

router = APIRouter(tags=["uploads"])


@router.post("/uploads")
async def upload(bucket: str = Form(...), file: UploadFile = File(...), me: User = Depends(get_current_user)):
    """Store an avatar or verification document; returns its public URL."""
    content = await file.read()
    try:
        key, url = store_upload(bucket=bucket, owner_id=me.id, content=content, content_type=file.content_type or "")
    except UploadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"objectKey": key, "url": url}
