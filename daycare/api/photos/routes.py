# daycare/api/photos/routes.py

import logging
from flask import request, jsonify, Blueprint, current_app
from marshmallow import ValidationError

from daycare.core.exceptions import StorageError
from daycare.core.security import api_key_required
from .schemas import (
    PhotoUploadFormSchema,
    PhotoDescriptionSchema,
    PhotoResponseSchema,
    StorageUsageResponseSchema
)

# All routes are registered under the '/api' prefix.
photos_bp = Blueprint('photos_bp', __name__)


@photos_bp.route('/customers/<string:customer_id>/photos', methods=['GET'])
def list_customer_photos(customer_id: str):
    photo_service = current_app.services['photos']
    photos = photo_service.get_photos_by_customer_id(customer_id)
    return jsonify(PhotoResponseSchema(many=True).dump([p.to_dict() for p in photos])), 200


@photos_bp.route('/customers/<string:customer_id>/photos', methods=['POST'])
@api_key_required
def upload_customer_photo(customer_id: str):
    """
    Attaches a photo to a customer.
    Expects multipart/form-data with an image in the `file` part and an optional `description`.
    """
    photo_service = current_app.services['photos']
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({"error_code": "INVALID_PARAMETERS", "message": "A 'file' part is required."}), 400

    try:
        form = PhotoUploadFormSchema().load(request.form.to_dict())
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = photo_service.upload_photo(
        customer_id,
        upload.filename,
        upload.read(),
        upload.mimetype or '',
        form.get('description')
    )
    if not result.success:
        return jsonify({"error_code": "PHOTO_UPLOAD_REJECTED", "message": result.error}), 400
    return jsonify(PhotoResponseSchema().dump(result.photo.to_dict())), 201


@photos_bp.route('/photos/<string:photo_id>', methods=['PATCH'])
@api_key_required
def update_photo_description(photo_id: str):
    photo_service = current_app.services['photos']
    try:
        data = PhotoDescriptionSchema().load(request.get_json(silent=True) or {})
        photo = photo_service.update_photo_description(photo_id, data['description'])
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except StorageError as e:
        logging.error(f"Photo description update failed (photo_id: {photo_id}): {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save photo data."}), 500

    if photo is None:
        return jsonify({"error_code": "PHOTO_NOT_FOUND", "message": "Photo not found."}), 404
    return jsonify(PhotoResponseSchema().dump(photo.to_dict())), 200


@photos_bp.route('/photos/<string:photo_id>', methods=['DELETE'])
@api_key_required
def delete_photo(photo_id: str):
    photo_service = current_app.services['photos']
    if not photo_service.delete_photo(photo_id):
        return jsonify({"error_code": "PHOTO_NOT_FOUND", "message": "Photo not found."}), 404
    return jsonify({"success": True}), 200


@photos_bp.route('/photos', methods=['DELETE'])
@api_key_required
def clear_all_photos():
    current_app.services['photos'].clear_all_photos()
    return jsonify({"success": True}), 200


@photos_bp.route('/photos/usage', methods=['GET'])
def get_storage_usage():
    photo_service = current_app.services['photos']
    usage = {
        "photo_count": len(photo_service.get_all_photos()),
        "usage_mb": round(photo_service.get_storage_usage(), 3),
    }
    return jsonify(StorageUsageResponseSchema().dump(usage)), 200
