"""
Supabase Storage service for profile media uploads.
"""
import logging

from supabase import Client

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg"}
VIDEO_EXTENSIONS = {"video/mp4": "mp4", "video/webm": "webm", "video/quicktime": "mov"}


class StorageService:
    """Service for managing profile media in Supabase Storage."""

    PROFILES_BUCKET = "profiles"
    VIDEOS_BUCKET = "profile-videos"

    def __init__(self, db: Client):
        self.supabase = db

    def upload_file(
        self,
        bucket: str,
        path: str,
        file_data: bytes,
        content_type: str = "image/png",
    ) -> str:
        """
        Upload a file to Supabase Storage, replacing any existing file.

        Args:
            bucket: The storage bucket name
            path: The file path within the bucket (e.g., "{profile_id}/photo.png")
            file_data: The file content as bytes
            content_type: The MIME type of the file

        Returns:
            The public URL of the uploaded file
        """
        self.supabase.storage.from_(bucket).upload(
            path=path,
            file=file_data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return self.get_public_url(bucket, path)

    def delete_file(self, bucket: str, path: str) -> bool:
        """Delete a file. Returns False instead of raising if it fails."""
        try:
            self.supabase.storage.from_(bucket).remove([path])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete {bucket}/{path}: {e}")
            return False

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.supabase.storage.from_(bucket).get_public_url(path)

    def upload_profile_photo(self, profile_id: str, file_data: bytes, content_type: str) -> str:
        """Upload a profile photo (PNG or JPEG)."""
        ext = PHOTO_EXTENSIONS[content_type]
        return self.upload_file(
            bucket=self.PROFILES_BUCKET,
            path=f"{profile_id}/photo.{ext}",
            file_data=file_data,
            content_type=content_type,
        )

    def upload_profile_video(self, profile_id: str, file_data: bytes, content_type: str) -> str:
        """Upload a profile's video pitch. A profile holds one video at a time.

        Videos stored under another extension are removed only once the new
        one is in place, so a failed upload leaves the current video intact.
        """
        ext = VIDEO_EXTENSIONS[content_type]
        url = self.upload_file(
            bucket=self.VIDEOS_BUCKET,
            path=f"{profile_id}/pitch.{ext}",
            file_data=file_data,
            content_type=content_type,
        )
        for other in VIDEO_EXTENSIONS.values():
            if other != ext:
                self.delete_file(self.VIDEOS_BUCKET, f"{profile_id}/pitch.{other}")
        return url
