"""camelCase representations used by the HTTP API and data export/import."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserSchema(_Schema):
    id: UUID
    name: str
    email: str
    has_gallery: bool = False
    gallery_id: UUID | None = None
    accepted_terms: bool = False
    created_at: datetime | None = None


class GallerySchema(_Schema):
    id: UUID
    name: str
    owner: str = ""
    owner_id: UUID
    description: str = ""
    artwork_count: int = 0
    total_views: int = 0
    total_likes: int = 0
    thumbnail: str = ""
    is_public: bool = True
    has_adult_content: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArtworkSchema(_Schema):
    id: UUID
    title: str
    artist: str = ""
    artist_id: UUID | None = None
    price: float
    image: str
    description: str = ""
    category: str = ""
    likes: int = 0
    views: int = 0
    sales: int = 0
    has_adult_content: bool = False
    created_at: datetime | None = None
    gallery_id: UUID
    file_name: str | None = None


class FileRecordSchema(_Schema):
    id: UUID
    gallery_id: UUID
    folder_key: str = Field(alias="galleryFolder")
    file_name: str
    original_name: str = ""
    size: int
    content_type: str = Field(alias="type")
    path: str = Field(alias="filePath")
    created_at: datetime | None = Field(default=None, alias="uploadedAt")


class DataExport(_Schema):
    """The four persisted collections."""

    galleries: list[GallerySchema] = []
    artworks: list[ArtworkSchema] = []
    users: list[UserSchema] = []
    files: list[FileRecordSchema] = []


class CreateUserRequest(_Schema):
    name: str
    email: str
    accepted_terms: bool = False


class CreateGalleryRequest(_Schema):
    owner_id: UUID
    name: str
    description: str = ""
    is_public: bool = True
    thumbnail: str = ""


class UpdateGalleryRequest(_Schema):
    name: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    is_public: bool | None = None


class UpdateUserRequest(_Schema):
    name: str | None = None
    email: str | None = None
    accepted_terms: bool | None = None


class UpdateArtworkRequest(_Schema):
    title: str | None = None
    artist: str | None = None
    price: float | None = None
    description: str | None = None
    category: str | None = None
    sales: int | None = None
    has_adult_content: bool | None = None


class DeleteFileRequest(_Schema):
    gallery_id: str
    file_name: str


class DeleteGalleryFolderRequest(_Schema):
    gallery_id: str
    gallery_name: str
