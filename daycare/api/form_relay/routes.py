# daycare/api/form_relay/routes.py
import json
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import Schema, fields, ValidationError

form_relay_bp = Blueprint('form_relay_bp', __name__)


class FormSubmissionSchema(Schema):
    """Form answers in the responses-sheet column order."""
    values = fields.List(fields.Raw(allow_none=True), required=True,
                         error_messages={"required": "values is required."})


def _submission_from_request() -> dict:
    if request.method == 'GET':
        # The web-app trigger passes the answers as a JSON-encoded `values` query parameter.
        raw = request.args.get('values')
        if raw is None:
            return {}
        try:
            return {"values": json.loads(raw)}
        except ValueError:
            raise ValidationError({"values": ["values must be a JSON array."]})
    return request.get_json(silent=True) or {}


@form_relay_bp.route('', methods=['GET', 'POST'])
def relay_form_submission():
    relay_service = current_app.services['form_relay']
    try:
        submission = FormSubmissionSchema().load(_submission_from_request())
    except ValidationError as err:
        return jsonify({"success": False, "error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = relay_service.relay(submission['values'])
    if result.success:
        return jsonify({"success": True, "message": "Submission forwarded.", "result": result.body}), 200

    logging.warning(f"Form submission not forwarded: {result.error}")
    return jsonify({"success": False, "error": result.error}), 200
