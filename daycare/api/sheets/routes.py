# daycare/api/sheets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from daycare.api.customers.schemas import (
    CustomerQuerySchema,
    CustomerUpdateSchema,
    dump_customer,
    dump_customers
)
from daycare.api.customers.services import filter_customers
from daycare.core.exceptions import CustomerNotFoundError, SheetsError, StorageError
from daycare.core.security import api_key_required
from daycare.models.customer import Customer

sheets_bp = Blueprint('sheets_bp', __name__)


@sheets_bp.route('/customers', methods=['GET'])
def list_sheet_customers():
    """
    Customers from the form-responses sheet, falling back to the local cache.
    Accepts the same `search`, `petType` and `status` filters as /api/customers.
    """
    sync_service = current_app.services['customer_sync']
    try:
        filters = CustomerQuerySchema().load(request.args)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    customers = filter_customers(sync_service.get_customers(), filters.get('search'),
                                 filters.get('pet_type'), filters.get('status'))
    return jsonify(dump_customers(customers)), 200


@sheets_bp.route('/refresh', methods=['POST'])
def refresh_sheet_customers():
    sync_service = current_app.services['customer_sync']
    customers = sync_service.refresh_from_sheets()
    return jsonify({"count": len(customers), "customers": dump_customers(customers)}), 200


@sheets_bp.route('/customers/<string:customer_id>', methods=['GET'])
def get_sheet_customer(customer_id: str):
    sync_service = current_app.services['customer_sync']
    customer = sync_service.get_customer_by_id(customer_id)
    if customer is None:
        return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    return jsonify(dump_customer(customer)), 200


@sheets_bp.route('/customers/<string:customer_id>', methods=['PUT'])
@api_key_required
def update_sheet_customer(customer_id: str):
    """Edits a cached customer and writes the row back to the sheet when configured."""
    sync_service = current_app.services['customer_sync']
    try:
        changes = CustomerUpdateSchema().load(request.get_json(silent=True) or {})
        current = next((c for c in sync_service.cache.load() if c.id == customer_id), None)
        if current is None:
            raise CustomerNotFoundError(customer_id)

        merged = vars(current).copy()
        merged.update(changes)
        merged['id'] = customer_id
        updated = sync_service.update_customer(Customer.from_dict(merged))
        return jsonify(dump_customer(updated)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except CustomerNotFoundError:
        return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    except SheetsError as e:
        logging.error(f"Sheet update failed (id: {customer_id}): {e}", exc_info=True)
        return jsonify({"error_code": "SHEET_UPDATE_FAILED", "message": str(e)}), 502
    except StorageError as e:
        logging.error(f"Local storage update failed (id: {customer_id}): {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save customer data."}), 500


@sheets_bp.route('/customers/<string:customer_id>', methods=['DELETE'])
@api_key_required
def delete_sheet_customer(customer_id: str):
    """Removes the customer from the local cache only; the sheet row stays."""
    sync_service = current_app.services['customer_sync']
    try:
        if not sync_service.delete_customer(customer_id):
            return jsonify({"error_code": "CUSTOMER_NOT_FOUND", "message": "Customer not found."}), 404
    except StorageError as e:
        logging.error(f"Local storage delete failed (id: {customer_id}): {e}")
        return jsonify({"error_code": "SAVE_FAILED", "message": "Failed to save customer data."}), 500
    return jsonify({"success": True, "message": "Customer removed from local storage. The sheet row was not deleted."}), 200


@sheets_bp.route('/cache', methods=['DELETE'])
@api_key_required
def clear_sheet_cache():
    current_app.services['customer_sync'].clear_local_data()
    return jsonify({"success": True}), 200
