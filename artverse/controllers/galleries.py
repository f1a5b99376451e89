"""User, gallery and artwork endpoints over the lifecycle orchestrator."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from litestar import Controller, Request, delete, get, patch, post
from litestar.datastructures import UploadFile
from litestar.response import Response

from artverse.controllers.helpers import get_lifecycle, json_response
from artverse.lib.exceptions import ValidationError
from artverse.lifecycle import ArtworkDraft, FileUpload, folder_key_for
from artverse.schemas import (
    ArtworkSchema,
    CreateGalleryRequest,
    CreateUserRequest,
    GallerySchema,
    UpdateArtworkRequest,
    UpdateGalleryRequest,
    UpdateUserRequest,
    UserSchema,
)

TRUTHY = frozenset({"1", "true", "on", "yes"})


def _form_flag(value: Any) -> bool:
    return str(value or "").strip().lower() in TRUTHY


async def _draft_from_form(request: Request) -> ArtworkDraft:
    form = await request.form()
    upload = form.get("file")

    file = None
    if isinstance(upload, UploadFile):
        file = FileUpload(
            data=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
            original_name=upload.filename or "",
        )

    try:
        price = float(form.get("price") or 0)
    except ValueError:
        raise ValidationError("Price must be a number") from None

    return ArtworkDraft(
        title=form.get("title") or "",
        price=price,
        file=file,
        image_url=form.get("imageUrl") or None,
        artist=form.get("artist") or None,
        description=form.get("description") or "",
        category=form.get("category") or "",
        has_adult_content=_form_flag(form.get("hasAdultContent")),
    )


class UserController(Controller):
    path = "/users"

    @post("/")
    async def create_user(self, request: Request, data: CreateUserRequest) -> Response:
        user = await get_lifecycle(request).register_user(data.name, data.email, data.accepted_terms)
        return json_response({"success": True, "user": UserSchema.model_validate(user).to_json()}, 201)

    @get("/{user_id:uuid}")
    async def get_user(self, request: Request, user_id: UUID) -> Response:
        user = await get_lifecycle(request).repository.get_user(user_id)
        return json_response({"success": True, "user": UserSchema.model_validate(user).to_json()})

    @patch("/{user_id:uuid}")
    async def update_user(self, request: Request, user_id: UUID, data: UpdateUserRequest) -> Response:
        user = await get_lifecycle(request).update_user(user_id, **data.model_dump(exclude_none=True))
        return json_response({"success": True, "user": UserSchema.model_validate(user).to_json()})


class GalleryController(Controller):
    """Gallery CRUD and the artworks nested under a gallery."""

    path = "/galleries"

    @get("/")
    async def list_galleries(self, request: Request) -> Response:
        galleries = await get_lifecycle(request).repository.list_galleries(public_only=True)
        return json_response(
            {"success": True, "galleries": [GallerySchema.model_validate(g).to_json() for g in galleries]}
        )

    @post("/")
    async def create_gallery(self, request: Request, data: CreateGalleryRequest) -> Response:
        gallery = await get_lifecycle(request).create_gallery(
            data.owner_id,
            data.name,
            data.description,
            is_public=data.is_public,
            thumbnail=data.thumbnail,
        )
        return json_response(
            {
                "success": True,
                "gallery": GallerySchema.model_validate(gallery).to_json(),
                "galleryFolder": folder_key_for(gallery),
            },
            201,
        )

    @get("/{gallery_id:uuid}")
    async def get_gallery(self, request: Request, gallery_id: UUID) -> Response:
        repository = get_lifecycle(request).repository
        gallery = await repository.get_gallery(gallery_id)
        artworks = await repository.list_artworks(gallery_id)
        return json_response(
            {
                "success": True,
                "gallery": GallerySchema.model_validate(gallery).to_json(),
                "artworks": [ArtworkSchema.model_validate(a).to_json() for a in artworks],
            }
        )

    @patch("/{gallery_id:uuid}")
    async def update_gallery(self, request: Request, gallery_id: UUID, data: UpdateGalleryRequest) -> Response:
        updates = data.model_dump(exclude_none=True)
        gallery = await get_lifecycle(request).update_gallery(gallery_id, **updates)
        return json_response({"success": True, "gallery": GallerySchema.model_validate(gallery).to_json()})

    @delete("/{gallery_id:uuid}", status_code=200)
    async def delete_gallery(self, request: Request, gallery_id: UUID) -> Response:
        deletion = await get_lifecycle(request).delete_gallery(gallery_id)
        return json_response(deletion.to_dict())

    @get("/{gallery_id:uuid}/artworks")
    async def list_artworks(self, request: Request, gallery_id: UUID) -> Response:
        repository = get_lifecycle(request).repository
        await repository.get_gallery(gallery_id)
        artworks = await repository.list_artworks(gallery_id)
        return json_response(
            {"success": True, "artworks": [ArtworkSchema.model_validate(a).to_json() for a in artworks]}
        )

    @post("/{gallery_id:uuid}/artworks")
    async def add_artwork(self, request: Request, gallery_id: UUID) -> Response:
        """Multipart: ``title``, ``price`` and either ``file`` or ``imageUrl``."""
        draft = await _draft_from_form(request)
        artwork = await get_lifecycle(request).add_artwork(gallery_id, draft)
        return json_response({"success": True, "artwork": ArtworkSchema.model_validate(artwork).to_json()}, 201)


class ArtworkController(Controller):
    path = "/artworks"

    @delete("/{artwork_id:uuid}", status_code=200)
    async def remove_artwork(self, request: Request, artwork_id: UUID) -> Response:
        result = await get_lifecycle(request).remove_artwork(artwork_id)
        return json_response(result.to_dict())

    @patch("/{artwork_id:uuid}")
    async def update_artwork(self, request: Request, artwork_id: UUID, data: UpdateArtworkRequest) -> Response:
        artwork = await get_lifecycle(request).update_artwork(artwork_id, **data.model_dump(exclude_none=True))
        return json_response({"success": True, "artwork": ArtworkSchema.model_validate(artwork).to_json()})

    @post("/{artwork_id:uuid}/like", status_code=200)
    async def like(self, request: Request, artwork_id: UUID) -> Response:
        artwork = await get_lifecycle(request).like_artwork(artwork_id)
        return json_response({"success": True, "artwork": ArtworkSchema.model_validate(artwork).to_json()})

    @post("/{artwork_id:uuid}/view", status_code=200)
    async def view(self, request: Request, artwork_id: UUID) -> Response:
        artwork = await get_lifecycle(request).view_artwork(artwork_id)
        return json_response({"success": True, "artwork": ArtworkSchema.model_validate(artwork).to_json()})
