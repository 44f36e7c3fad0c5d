# daycare/api/customers/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from daycare.core.exceptions import CustomerNotFoundError, StorageError
from daycare.core.security import api_key_required
from daycare.utils.datetime_utils import DateTimeUtils
from .schemas import (
    CustomerCreateSchema,
    CustomerUpdateSchema,
    CustomerQuerySchema,
    dump_customer,
    dump_customers
)

customers_bp = Blueprint('customers_bp', __name__)


@customers_bp.route('/customers', methods=['GET'])
def list_customers():
    """Customer list with optional `search`, `petType` and `status` filters."""
    repository = current_app.services['customers']
    try:
        filters = CustomerQuerySchema().load(request.args)
        return jsonify(dump_customers(repository.list_customers(filters))), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"Customer list API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load customers."}), 500


@customers_bp.route('/customers/<string:customer_id>', methods=['GET'])
def get_customer(customer_id: str):
    repository = current_app.services['customers']
    customer = repository.get_customer(customer_id)
    if customer is None:
        return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    return jsonify(dump_customer(customer)), 200


@customers_bp.route('/customers', methods=['POST'])
@api_key_required
def create_customer():
    """Creates a customer from a form submission."""
    repository = current_app.services['customers']
    try:
        validated_data = CustomerCreateSchema().load(request.get_json(silent=True) or {})
        customer = repository.create_customer(validated_data)
        return jsonify({
            "success": True,
            "id": customer.id,
            "message": "Customer created."
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except StorageError as e:
        logging.error(f"Customer create save failed: {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save customer data."}), 500


@customers_bp.route('/customers/<string:customer_id>', methods=['PUT'])
@api_key_required
def update_customer(customer_id: str):
    repository = current_app.services['customers']
    try:
        changes = CustomerUpdateSchema().load(request.get_json(silent=True) or {})
        customer = repository.update_customer(customer_id, changes)
        return jsonify({"success": True, "message": "Customer updated.", "customer": dump_customer(customer)}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except CustomerNotFoundError:
        return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    except StorageError as e:
        logging.error(f"Customer update save failed (id: {customer_id}): {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save customer data."}), 500


@customers_bp.route('/customers/<string:customer_id>', methods=['DELETE'])
@api_key_required
def delete_customer(customer_id: str):
    repository = current_app.services['customers']
    photo_service = current_app.services['photos']
    try:
        repository.delete_customer(customer_id)
        photo_service.delete_photos_by_customer_id(customer_id)
        return jsonify({"success": True, "message": "Customer deleted."}), 200
    except CustomerNotFoundError:
        return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    except StorageError as e:
        logging.error(f"Customer delete save failed (id: {customer_id}): {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save customer data."}), 500


@customers_bp.route('/health', methods=['GET'])
def health_check():
    return jsonify({"status": "OK", "timestamp": DateTimeUtils.to_iso_string(DateTimeUtils.now())}), 200
