# familyhub/routers/media_router.py

import json
import logging
import os
import re
import unicodedata
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from familyhub.auth import get_current_user
from familyhub.config import settings
from familyhub.core.access import is_valid_uuid, require_member, resolve_family
from familyhub.database import get_db
from familyhub.models.media import Media
from familyhub.models.post import Post, PostFamily
from familyhub.models.user import User
from familyhub.schemas.media_schema import MediaOut
from familyhub.schemas.post_schema import PostOut
from familyhub.storage import StorageBackend, delete_blobs, get_storage
from familyhub.utils.pagination import page_body, paginate
from familyhub.utils.thumbnails import generate_thumbnail

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Media"])


ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "video/mp4",
    "video/quicktime",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# ==========================================================
# Helpers
# ==========================================================

def media_type_for(mime_type: str) -> str:
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("audio/"):
        return "audio"
    return "document"


def _safe_filename(filename: str | None) -> str:
    # Storage keys stay ASCII so URLs read back from JSON columns unescaped
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "file"


def _file_size(file: UploadFile) -> int:
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


def _parse_metadata(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError as e:
        log.warning("Invalid metadata format: %s", e)
        return {}
    if not isinstance(value, dict):
        log.warning("Ignoring non-object metadata")
        return {}
    return value


def _resolve_media(db: Session, media_id: str) -> Media:
    media = None
    if is_valid_uuid(media_id):
        media = db.query(Media).filter(Media.id == media_id).first()
    if not media:
        raise HTTPException(404, "Media not found")
    return media


def _require_uploader(media: Media, user: User, detail: str) -> None:
    if media.uploaded_by != user.id:
        raise HTTPException(403, detail)


# ==========================================================
# UPLOAD
# ==========================================================
@router.post("/media/upload", status_code=201)
def upload_media(
    file: UploadFile | None = File(None),
    family_id: str | None = Form(None, alias="familyId"),
    metadata: str | None = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    if file is None or not file.filename:
        raise HTTPException(400, "No file uploaded")

    mime_type = (file.content_type or "").lower()
    if mime_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(400, "Invalid file type. Only images, videos, PDFs and Office documents are allowed")

    size = _file_size(file)
    if not size:
        raise HTTPException(400, "Uploaded file is empty")
    if size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(400, "File too large. Maximum size is 25MB")

    family = None
    if family_id:
        family = resolve_family(db, family_id)
        require_member(db, family.id, current_user.id, detail="Not authorized to upload to this family")

    media_type = media_type_for(mime_type)
    name = _safe_filename(file.filename)
    file_id = uuid.uuid4().hex

    # -------------------------------------------------
    # Store original + thumbnail
    # -------------------------------------------------
    data = file.file.read()
    url = storage.save_file(f"{current_user.id}/{media_type}/{file_id}-{name}", data, mime_type)

    thumb_url = None
    if media_type == "image":
        thumb = generate_thumbnail(data, mime_type)
        if thumb:
            thumb_url = storage.save_file(
                f"{current_user.id}/thumbnails/{file_id}.jpg", thumb, "image/jpeg"
            )

    meta = _parse_metadata(metadata)

    media = Media(
        url=url,
        thumb_url=thumb_url,
        type=media_type,
        name=file.filename,
        size=len(data),
        mime_type=mime_type,
        media_metadata=meta,
        uploaded_by=current_user.id,
    )
    db.add(media)

    # -------------------------------------------------
    # Share into the family feed
    # -------------------------------------------------
    post = None
    if family:
        tags = meta.get("tags")
        post = Post(
            content=meta.get("description") or f"{current_user.first_name} shared {media_type}",
            media_urls=[url],
            type="regular",
            privacy="family",
            tags=tags if isinstance(tags, list) else [],
            created_by=current_user.id,
        )
        db.add(post)
        db.flush()
        db.add(PostFamily(post_id=post.id, family_id=family.id))

    db.commit()
    db.refresh(media)

    log.info("Media %s uploaded by %s (%s, %d bytes)", media.id, current_user.id, mime_type, media.size)

    body = {"success": True, "media": MediaOut.model_validate(media)}
    if post:
        db.refresh(post)
        body["post"] = PostOut.model_validate(post)
    return body


# ==========================================================
# LIST
# ==========================================================
@router.get("/media")
def get_my_media(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Media).filter(Media.uploaded_by == current_user.id)
    if type:
        query = query.filter(Media.type == type)

    items, total, total_pages = paginate(query.order_by(Media.created_at.desc()), page, limit)

    return page_body("media", [MediaOut.model_validate(m) for m in items], total, total_pages, page)


@router.get("/families/{family_id}/media")
def get_family_media(
    family_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_member(db, family.id, current_user.id, detail="Not authorized to view media for this family")

    posts = (
        db.query(Post)
        .join(PostFamily, PostFamily.post_id == Post.id)
        .filter(PostFamily.family_id == family.id)
        .all()
    )

    urls = {url for post in posts for url in (post.media_urls or [])}
    if not urls:
        return page_body("media", [], 0, 0, page)

    query = db.query(Media).filter(Media.url.in_(urls))
    if type:
        query = query.filter(Media.type == type)

    items, total, total_pages = paginate(query.order_by(Media.created_at.desc()), page, limit)

    return page_body("media", [MediaOut.model_validate(m) for m in items], total, total_pages, page)


# ==========================================================
# SIGNED URL
# ==========================================================
@router.get("/media/{media_id}/url")
def get_media_url(
    media_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    media = _resolve_media(db, media_id)
    _require_uploader(media, current_user, "Not authorized to access this media")

    return {
        "success": True,
        "url": storage.signed_url(media.url, settings.SIGNED_URL_EXPIRES),
        "expiresIn": settings.SIGNED_URL_EXPIRES,
    }


# ==========================================================
# DELETE
# ==========================================================
@router.delete("/media/{media_id}")
def delete_media(
    media_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    media = _resolve_media(db, media_id)
    _require_uploader(media, current_user, "Not authorized to delete this media")

    url, thumb_url = media.url, media.thumb_url

    # Coarse text match on the ASCII key, then exact check on the decoded list
    candidates = db.query(Post).filter(cast(Post.media_urls, String).like(f"%{url}%")).all()
    for post in candidates:
        if url in (post.media_urls or []):
            post.media_urls = [u for u in post.media_urls if u != url]

    db.delete(media)
    db.commit()

    delete_blobs(storage, url, thumb_url)

    log.info("Media %s deleted by %s", media_id, current_user.id)
    return {"success": True, "message": "Media deleted successfully"}
