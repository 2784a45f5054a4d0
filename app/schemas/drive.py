"""
Pydantic models for Drive proxy requests.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateFolderRequest(BaseModel):
    """Incoming payload for creating a Drive folder."""

    model_config = ConfigDict(populate_by_name=True)

    folder_name: str = Field(..., min_length=1, alias="folderName")
    parent_folder_id: Optional[str] = Field(
        None,
        alias="parentFolderId",
        description="Folder to create the new folder in; Drive root when omitted.",
    )


class ShareFileRequest(BaseModel):
    """Role granted to anyone holding the file link."""

    role: Literal["reader", "commenter", "writer"] = "reader"


__all__ = ["CreateFolderRequest", "ShareFileRequest"]
