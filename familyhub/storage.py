import logging
import os
from functools import lru_cache
from pathlib import Path

from familyhub.config import settings

log = logging.getLogger(__name__)


# ==========================================================
# STORAGE PORT
# ==========================================================
class StorageBackend:
    """
    Where uploaded blobs live.

    ``save_file`` returns the URL that gets persisted on the Media row;
    ``delete_file`` and ``signed_url`` take that same URL back.
    """

    name = "base"

    def save_file(self, key: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete_file(self, url: str | None) -> bool:
        raise NotImplementedError

    def signed_url(self, url: str, expires_in: int | None = None) -> str:
        raise NotImplementedError


# ==========================================================
# LOCAL DISK
# ==========================================================
class LocalStorage(StorageBackend):
    name = "local"

    def __init__(self, root: str | os.PathLike | None = None, url_prefix: str = "/media"):
        self.root = Path(root or settings.LOCAL_MEDIA_PATH)
        self.url_prefix = url_prefix.rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{settings.BASE_URL.rstrip('/')}{self.url_prefix}/{key}"

    def _path_for(self, url: str) -> Path | None:
        rel = url
        if rel.startswith(("http://", "https://")):
            rel = rel.replace(settings.BASE_URL.rstrip("/"), "", 1)

        prefix = f"{self.url_prefix}/"
        if not rel.startswith(prefix):
            return None

        path = (self.root / rel[len(prefix):]).resolve()
        # Never step outside the media root
        if self.root.resolve() not in path.parents:
            return None
        return path

    def save_file(self, key: str, data: bytes, content_type: str) -> str:
        key = key.strip("/")
        file_path = self.root / key
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "wb") as buffer:
            buffer.write(data)

        log.info("Stored %s (%d bytes) on local disk", key, len(data))
        return self.public_url(key)

    def delete_file(self, url: str | None) -> bool:
        if not url:
            return True

        path = self._path_for(url)
        if path is None:
            log.warning("Refusing to delete %s: outside local media root", url)
            return False

        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Local delete failed for %s: %s", url, e)
            return False

        return True

    def signed_url(self, url: str, expires_in: int | None = None) -> str:
        # Local files are served as-is from /media
        return url


# ==========================================================
# SUPABASE OBJECT STORAGE
# ==========================================================
class SupabaseStorage(StorageBackend):
    name = "supabase"

    def __init__(self, client=None, bucket: str | None = None):
        if client is None:
            from supabase import create_client

            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)

        self.client = client
        self.bucket = bucket or settings.SUPABASE_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def extract_storage_key(self, url_or_path: str) -> str:
        """
        Converts Supabase public URL -> storage key.
        """
        if not url_or_path:
            return ""

        if url_or_path.startswith("http"):
            marker = f"/storage/v1/object/public/{self.bucket}/"
            if marker in url_or_path:
                return url_or_path.split(marker)[1]

        return url_or_path.strip("/")

    def save_file(self, key: str, data: bytes, content_type: str) -> str:
        key = key.strip("/")
        if not data:
            raise RuntimeError("File is empty - nothing to upload")

        res = self._bucket().upload(
            key,
            data,
            {
                "content-type": content_type or "application/octet-stream",
                "upsert": "true",
            },
        )
        if not res:
            raise RuntimeError("Supabase upload failed (no response)")

        log.info("Supabase upload OK: %s", key)
        return self._bucket().get_public_url(key)

    def delete_file(self, url: str | None) -> bool:
        if not url:
            return True

        key = self.extract_storage_key(url)
        try:
            self._bucket().remove([key])
        except Exception as e:
            log.warning("Supabase delete failed for %s: %s", key, e)
            return False

        log.info("Supabase delete OK: %s", key)
        return True

    def signed_url(self, url: str, expires_in: int | None = None) -> str:
        key = self.extract_storage_key(url)
        res = self._bucket().create_signed_url(
            key, expires_in or settings.SIGNED_URL_EXPIRES
        )
        return res.get("signedURL") or res.get("signedUrl")


# ==========================================================
# SELECTION
# ==========================================================
@lru_cache
def get_storage() -> StorageBackend:
    """Storage backend chosen once from STORAGE_BACKEND (also a FastAPI dependency)."""
    if settings.STORAGE_BACKEND == "local":
        backend = LocalStorage()
    elif settings.STORAGE_BACKEND == "supabase":
        backend = SupabaseStorage()
    else:
        raise ValueError(f"Invalid STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

    log.info("Using %s storage backend", backend.name)
    return backend


def delete_blobs(storage: StorageBackend, *urls: str | None) -> bool:
    """Best-effort removal of several blobs; failures are logged, never raised."""
    ok = True
    for url in urls:
        if not url:
            continue
        try:
            ok = storage.delete_file(url) and ok
        except Exception:
            log.exception("Storage delete raised for %s", url)
            ok = False
    return ok
