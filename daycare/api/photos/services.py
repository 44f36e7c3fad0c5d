# daycare/api/photos/services.py
import base64
import json
import logging
import random
import string
from typing import List, Optional

from daycare.core.exceptions import StorageError
from daycare.models.photo import PetPhoto, PhotoUploadResult
from daycare.services.local_storage import LocalStorage
from daycare.utils.datetime_utils import DateTimeUtils

PHOTOS_STORAGE_KEY = "pet_photos"
BYTES_PER_MB = 1024 * 1024


def generate_photo_id() -> str:
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"photo_{DateTimeUtils.now_ms()}_{suffix}"


class PhotoService:
    """Pet photo attachments, stored inline as data URLs under one local storage key."""

    def __init__(self, storage: LocalStorage, key: str = PHOTOS_STORAGE_KEY,
                 max_photos_per_customer: int = 50, max_file_size: int = 5 * BYTES_PER_MB):
        self.storage = storage
        self.key = key
        self.max_photos_per_customer = max_photos_per_customer
        self.max_file_size = max_file_size

    def _save_all(self, photos: List[PetPhoto]) -> None:
        self.storage.set_item(self.key, json.dumps([p.to_dict() for p in photos], ensure_ascii=False))

    def get_all_photos(self) -> List[PetPhoto]:
        try:
            stored = self.storage.get_item(self.key)
            return [PetPhoto.from_dict(item) for item in json.loads(stored)] if stored else []
        except (ValueError, TypeError, KeyError) as e:
            logging.error(f"Failed to read photo data: {e}")
            return []

    def get_photos_by_customer_id(self, customer_id: str) -> List[PetPhoto]:
        return [p for p in self.get_all_photos() if p.customer_id == customer_id]

    def get_photo(self, photo_id: str) -> Optional[PetPhoto]:
        return next((p for p in self.get_all_photos() if p.id == photo_id), None)

    def upload_photo(self, customer_id: str, file_name: str, content: bytes,
                     content_type: str, description: Optional[str] = None) -> PhotoUploadResult:
        if not content_type or not content_type.startswith('image/'):
            return PhotoUploadResult(False, error="Only image files can be uploaded.")

        if len(content) > self.max_file_size:
            return PhotoUploadResult(
                False, error=f"File is too large. The limit is {self.max_file_size // BYTES_PER_MB}MB.")

        encoded = base64.b64encode(content).decode('ascii')
        photo = PetPhoto(
            id=generate_photo_id(),
            customer_id=customer_id,
            file_name=file_name,
            data_url=f"data:{content_type};base64,{encoded}",
            file_size=len(content),
            uploaded_at=DateTimeUtils.to_iso_string(DateTimeUtils.now()),
            description=description,
        )

        # Count check and append happen under one lock.
        with self.storage.locked():
            photos = self.get_all_photos()
            if sum(1 for p in photos if p.customer_id == customer_id) >= self.max_photos_per_customer:
                return PhotoUploadResult(
                    False, error=f"A customer can have at most {self.max_photos_per_customer} photos.")
            photos.append(photo)
            try:
                self._save_all(photos)
            except StorageError as e:
                logging.error(f"Photo upload failed for customer {customer_id}: {e}", exc_info=True)
                return PhotoUploadResult(False, error="Failed to upload the photo.")

        logging.info(f"Photo {photo.id} uploaded for customer {customer_id} ({photo.file_size} bytes)")
        return PhotoUploadResult(True, photo=photo)

    def delete_photo(self, photo_id: str) -> bool:
        with self.storage.locked():
            photos = self.get_all_photos()
            remaining = [p for p in photos if p.id != photo_id]
            if len(remaining) == len(photos):
                return False
            self._save_all(remaining)
        return True

    def delete_photos_by_customer_id(self, customer_id: str) -> int:
        with self.storage.locked():
            photos = self.get_all_photos()
            remaining = [p for p in photos if p.customer_id != customer_id]
            deleted = len(photos) - len(remaining)
            if deleted:
                self._save_all(remaining)
        return deleted

    def get_storage_usage(self) -> float:
        """Total size of stored photos in MB."""
        return sum(p.file_size for p in self.get_all_photos()) / BYTES_PER_MB

    def clear_all_photos(self) -> None:
        self.storage.remove_item(self.key)

    def update_photo_description(self, photo_id: str, description: str) -> Optional[PetPhoto]:
        with self.storage.locked():
            photos = self.get_all_photos()
            for photo in photos:
                if photo.id == photo_id:
                    photo.description = description
                    self._save_all(photos)
                    return photo
        return None
