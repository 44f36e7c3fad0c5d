# daycare/services/sheets_client.py
import logging
from typing import Any, List, Optional
from urllib.parse import quote

import requests
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from daycare.core.exceptions import SheetsFetchError, SheetsParseError
from daycare.models.customer import Customer
from daycare.services.sheet_parser import parse_sheet_values

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def build_service_account_credentials(client_email: str, private_key: str):
    """
    Service-account credentials for authenticated writes.
    google-auth signs the RS256 assertion and exchanges it for an access token.
    Returns None when either value is missing.
    """
    if not client_email or not private_key:
        return None
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)


class SheetsClient:
    """
    Reads the Google Form responses sheet through the public Sheets values API
    and writes single rows back.
    """

    def __init__(self, spreadsheet_id: str, api_key: str, sheet_name: str = "フォームの回答",
                 session: Optional[requests.Session] = None, timeout: float = 30,
                 credentials=None):
        self.spreadsheet_id = (spreadsheet_id or '').strip()
        self.api_key = (api_key or '').strip()
        self.sheet_name = sheet_name
        self.session = session or requests.Session()
        self.timeout = timeout
        self.credentials = credentials

    @property
    def is_configured(self) -> bool:
        return bool(self.spreadsheet_id and self.api_key)

    def _values_url(self, range_name: str) -> str:
        return f"{SHEETS_API_BASE}/{self.spreadsheet_id}/values/{quote(range_name, safe='')}"

    def fetch_values(self) -> List[List[Any]]:
        """GETs the raw row grid of the responses sheet."""
        url = self._values_url(self.sheet_name)
        logging.info(f"Fetching sheet '{self.sheet_name}' of spreadsheet {self.spreadsheet_id}")
        try:
            response = self.session.get(url, params={"key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            raise SheetsFetchError(None, str(e)) from e

        if not response.ok:
            logging.error(f"Sheets API error response: {response.status_code} {response.text}")
            raise SheetsFetchError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise SheetsParseError(f"Malformed JSON from Sheets API: {e}") from e

        if not isinstance(data, dict):
            raise SheetsParseError(f"Unexpected Sheets API payload type: {type(data).__name__}")
        values = data.get("values", [])
        if not isinstance(values, list):
            raise SheetsParseError("Sheets API 'values' is not a row grid")
        return values

    def fetch_customers(self) -> List[Customer]:
        customers = parse_sheet_values(self.fetch_values())
        logging.info(f"Parsed {len(customers)} customers from the sheet")
        return customers

    def _access_token(self) -> Optional[str]:
        if self.credentials is None:
            return None
        if not self.credentials.valid:
            self.credentials.refresh(GoogleAuthRequest(session=self.session))
        return self.credentials.token

    def update_row(self, row_number: int, row: List[Any]) -> None:
        """Overwrites columns A..M of one sheet row (1-based row number)."""
        url = self._values_url(f"A{row_number}:M{row_number}")
        params = {"valueInputOption": "RAW"}
        headers = {"Content-Type": "application/json"}

        token = self._access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            params["key"] = self.api_key

        try:
            response = self.session.put(url, params=params, headers=headers,
                                        json={"values": [row]}, timeout=self.timeout)
        except requests.RequestException as e:
            raise SheetsFetchError(None, str(e)) from e

        if not response.ok:
            raise SheetsFetchError(response.status_code, response.text)
        logging.info(f"Sheet row {row_number} updated")
