"""
Folder routes: ordered folders that group feeds.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..config import get_db
from ..database import Database
from ..exceptions import require_folder
from ..schemas import CreateFolderRequest, FolderResponse, UpdateFolderRequest

router = APIRouter(prefix="/folders", tags=["folders"])

UserId = Annotated[str, Depends(get_current_user)]


@router.get("")
async def list_folders(db: Annotated[Database, Depends(get_db)], user_id: UserId) -> list[FolderResponse]:
    """List folders in display order."""
    return [FolderResponse.from_db(f) for f in db.get_folders(user_id)]


@router.post("")
async def create_folder(
    request: CreateFolderRequest,
    db: Annotated[Database, Depends(get_db)],
    user_id: UserId,
) -> FolderResponse:
    """Create a folder after the existing ones."""
    return FolderResponse.from_db(db.create_folder(user_id, request.name.strip()))


@router.put("/{folder_id}")
async def update_folder(
    folder_id: int,
    request: UpdateFolderRequest,
    db: Annotated[Database, Depends(get_db)],
    user_id: UserId,
) -> FolderResponse:
    """Rename or reposition a folder."""
    require_folder(db.get_folder(user_id, folder_id))
    folder = db.update_folder(user_id, folder_id, name=request.name, position=request.position)
    return FolderResponse.from_db(require_folder(folder))


@router.delete("/{folder_id}")
async def delete_folder(folder_id: int, db: Annotated[Database, Depends(get_db)], user_id: UserId) -> dict:
    """Delete a folder. Its feeds become unfiled."""
    require_folder(db.get_folder(user_id, folder_id))
    db.delete_folder(user_id, folder_id)
    return {"success": True}
