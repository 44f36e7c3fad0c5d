# daycare/__init__.py

# =====================================================================================
# 1. Environment variables (loaded first)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import logging
from typing import Any, Dict, Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

# - Settings
from daycare.core.config import config_by_name

# - API blueprints
from daycare.api.customers.routes import customers_bp
from daycare.api.sheets.routes import sheets_bp
from daycare.api.photos.routes import photos_bp
from daycare.api.form_relay.routes import form_relay_bp

# - Services
from daycare.api.customers.services import CustomerRepository
from daycare.api.photos.services import PhotoService
from daycare.api.form_relay.services import FormRelayService
from daycare.services.customer_sync import CustomerSyncService
from daycare.services.local_storage import LocalStorage, CustomerCache
from daycare.services.rate_limiter import RateLimiter
from daycare.services.retry import RetryController
from daycare.services.sheets_client import SheetsClient, build_service_account_credentials


def create_app(config_overrides: Optional[Dict[str, Any]] = None, services: Optional[Dict[str, Any]] = None):
    """
    Flask application factory.

    :param config_overrides: values applied on top of the selected config class
    :param services: prebuilt service instances replacing the defaults (tests)
    """
    # =====================================================================================
    # 3. App and base settings
    # =====================================================================================
    config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name.get(config_name, config_by_name['development']))
    if config_overrides:
        app.config.update(config_overrides)
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. Service instances stored on 'app.services' (dependency injection)
    # =====================================================================================
    app.services = {}

    # 4-1. Shared infrastructure
    local_storage = LocalStorage(app.config['LOCAL_STORAGE_FILE'])
    app.services['local_storage'] = local_storage

    # One limiter for the whole process; every Sheets caller goes through it.
    rate_limiter = RateLimiter(min_interval=app.config['MIN_API_INTERVAL'])
    app.services['rate_limiter'] = rate_limiter

    try:
        credentials = build_service_account_credentials(
            app.config['GOOGLE_CLIENT_EMAIL'], app.config['GOOGLE_PRIVATE_KEY'])
    except ValueError as e:
        logging.warning(f"Service account credentials are invalid, sheet writes will use the API key: {e}")
        credentials = None

    app.services['sheets_client'] = SheetsClient(
        spreadsheet_id=app.config['SPREADSHEET_ID'],
        api_key=app.config['GOOGLE_API_KEY'],
        sheet_name=app.config['SHEET_NAME'],
        timeout=app.config['HTTP_TIMEOUT'],
        credentials=credentials
    )

    # 4-2. Domain services
    app.services['photos'] = PhotoService(
        local_storage,
        max_photos_per_customer=app.config['MAX_PHOTOS_PER_CUSTOMER'],
        max_file_size=app.config['MAX_PHOTO_SIZE']
    )
    app.services['customers'] = CustomerRepository(app.config['CUSTOMERS_FILE'])
    app.services['customer_sync'] = CustomerSyncService(
        client=app.services['sheets_client'],
        cache=CustomerCache(local_storage),
        retry_controller=RetryController(
            rate_limiter,
            max_attempts=app.config['MAX_RETRIES'],
            base_delay=app.config['RETRY_DELAY']
        ),
        photo_service=app.services['photos']
    )
    app.services['form_relay'] = FormRelayService(
        api_url=app.config['FORM_RELAY_API_URL'],
        api_key=app.config['API_KEY'],
        timeout=app.config['HTTP_TIMEOUT']
    )

    if services:
        app.services.update(services)

    if not app.services['sheets_client'].is_configured:
        logging.info("SPREADSHEET_ID / GOOGLE_API_KEY not set; sheet reads will serve local storage only.")

    # =====================================================================================
    # 5. Blueprints
    # =====================================================================================
    app.register_blueprint(customers_bp, url_prefix='/api')
    app.register_blueprint(photos_bp, url_prefix='/api')
    app.register_blueprint(sheets_bp, url_prefix='/api/sheets')
    app.register_blueprint(form_relay_bp, url_prefix='/api/form-relay')

    # =====================================================================================
    # 6. Global error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {"error_code": err.name.upper().replace(' ', '_'), "message": err.description}
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # Anything not handled by a route or the handlers above
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    # =====================================================================================
    # 7. Logging
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
