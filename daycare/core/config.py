# daycare/core/config.py

import os

basedir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))


class Config:
    """Settings shared by every environment, read from environment variables (.env)."""
    # Static bearer token expected from the form relay and admin clients.
    API_KEY = os.getenv('API_KEY', '')

    # Google Sheets source (form responses sheet).
    SPREADSHEET_ID = os.getenv('SPREADSHEET_ID', '').strip()
    GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY', '').strip()
    GOOGLE_CLIENT_EMAIL = os.getenv('GOOGLE_CLIENT_EMAIL', '').strip()
    # Private keys pasted into .env usually carry literal "\n" sequences.
    GOOGLE_PRIVATE_KEY = os.getenv('GOOGLE_PRIVATE_KEY', '').strip().replace('\\n', '\n')
    SHEET_NAME = os.getenv('SHEET_NAME', 'フォームの回答')

    # Local persistence.
    DATA_DIR = os.getenv('DATA_DIR', os.path.join(basedir, 'data'))
    CUSTOMERS_FILE = os.getenv('CUSTOMERS_FILE') or os.path.join(DATA_DIR, 'customers.json')
    LOCAL_STORAGE_FILE = os.getenv('LOCAL_STORAGE_FILE') or os.path.join(DATA_DIR, 'local_storage.json')

    # Where the form relay forwards submissions (the customers API of this app by default).
    FORM_RELAY_API_URL = os.getenv('FORM_RELAY_API_URL', 'http://localhost:3001/api/customers')

    # Remote fetch throttling and retry policy.
    MIN_API_INTERVAL = float(os.getenv('MIN_API_INTERVAL', '1.0'))
    MAX_RETRIES = int(os.getenv('MAX_RETRIES', '3'))
    RETRY_DELAY = float(os.getenv('RETRY_DELAY', '2.0'))
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '30'))

    # Photo attachments.
    MAX_PHOTOS_PER_CUSTOMER = int(os.getenv('MAX_PHOTOS_PER_CUSTOMER', '50'))
    MAX_PHOTO_SIZE = int(os.getenv('MAX_PHOTO_SIZE', str(5 * 1024 * 1024)))

    # Multipart uploads are capped a little above the photo limit.
    MAX_CONTENT_LENGTH = 8 * 1024 * 1024


class DevelopmentConfig(Config):
    """Development settings."""
    DEBUG = True


class TestingConfig(Config):
    """Test settings. Remote access is disabled unless a test opts in."""
    TESTING = True
    DEBUG = False
    API_KEY = 'test-api-key'
    SPREADSHEET_ID = ''
    GOOGLE_API_KEY = ''
    MIN_API_INTERVAL = 0.0
    RETRY_DELAY = 0.0


class ProductionConfig(Config):
    """Production settings."""
    DEBUG = False


# Selected in daycare/__init__.py from the FLASK_ENV value.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
