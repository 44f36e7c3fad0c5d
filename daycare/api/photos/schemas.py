# daycare/api/photos/schemas.py
from marshmallow import Schema, fields, validate


class PhotoUploadFormSchema(Schema):
    """Form fields sent next to the multipart `file` part."""
    description = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))


class PhotoDescriptionSchema(Schema):
    """PATCH /api/photos/<photo_id> body."""
    description = fields.Str(required=True, validate=validate.Length(max=500),
                             error_messages={"required": "description is required."})


class PhotoResponseSchema(Schema):
    id = fields.Str()
    customerId = fields.Str()
    fileName = fields.Str()
    dataUrl = fields.Str()
    fileSize = fields.Int()
    uploadedAt = fields.Str()
    description = fields.Str(allow_none=True)


class StorageUsageResponseSchema(Schema):
    photo_count = fields.Int()
    usage_mb = fields.Float()
