from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from src.adapters.fs.blobstore import LocalBlobStore
from src.api.deps import get_blob_store
from src.domain.errors import NotFound

router = APIRouter()


@router.get("/{name}")
def serve_blob(name: str, blobs: LocalBlobStore = Depends(get_blob_store)) -> FileResponse:
    """Serve an uploaded image from the local blob store."""
    path = blobs.path_for(f"{blobs.public_url}/{name}")
    if path is None:
        raise NotFound("File not found")
    return FileResponse(path)
