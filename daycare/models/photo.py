# daycare/models/photo.py
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class PetPhoto:
    """A photo attachment kept in local storage, owned by exactly one customer."""
    id: str
    customer_id: str
    file_name: str
    data_url: str
    file_size: int
    uploaded_at: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PetPhoto":
        return cls(
            id=data['id'],
            customer_id=data.get('customerId', data.get('customer_id', '')),
            file_name=data.get('fileName', data.get('file_name', '')),
            data_url=data.get('dataUrl', data.get('data_url', '')),
            file_size=int(data.get('fileSize', data.get('file_size', 0)) or 0),
            uploaded_at=data.get('uploadedAt', data.get('uploaded_at', '')),
            description=data.get('description'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customerId': self.customer_id,
            'fileName': self.file_name,
            'dataUrl': self.data_url,
            'fileSize': self.file_size,
            'uploadedAt': self.uploaded_at,
            'description': self.description,
        }


@dataclass
class PhotoUploadResult:
    success: bool
    photo: Optional[PetPhoto] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['photo'] = self.photo.to_dict() if self.photo else None
        return result
