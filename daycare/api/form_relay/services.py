# daycare/api/form_relay/services.py
"""
Forwards Google Form submissions to the customers API.

The form posts its answers as a positional `values` list in the same column
order as the responses sheet (timestamp first). The relay maps them to the
customers API payload and POSTs it with the shared bearer token.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

import requests

from daycare.models.customer import PetType, to_int, to_float
from daycare.services import sheet_parser as cols

REQUIRED_FIELDS = ('name', 'email', 'phone', 'petName')


@dataclass
class RelayResult:
    success: bool
    status_code: Optional[int] = None
    body: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _value(values: Sequence[Any], index: int) -> str:
    if index >= len(values) or values[index] is None:
        return ''
    return str(values[index]).strip()


def build_payload(values: Sequence[Any]) -> Dict[str, Any]:
    return {
        'name': _value(values, cols.COL_NAME),
        'furigana': _value(values, cols.COL_FURIGANA),
        'email': _value(values, cols.COL_EMAIL),
        'phone': _value(values, cols.COL_PHONE),
        'address': _value(values, cols.COL_ADDRESS),
        'petName': _value(values, cols.COL_PET_NAME),
        'petType': _value(values, cols.COL_PET_TYPE) or PetType.OTHER.value,
        'age': to_int(_value(values, cols.COL_AGE)),
        'weight': to_float(_value(values, cols.COL_WEIGHT)),
        'notes': _value(values, cols.COL_NOTES),
    }


def missing_fields(payload: Dict[str, Any]) -> List[str]:
    return [field for field in REQUIRED_FIELDS if not payload.get(field)]


class FormRelayService:
    def __init__(self, api_url: str, api_key: str,
                 session: Optional[requests.Session] = None, timeout: float = 30):
        self.api_url = api_url
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def relay(self, values: Sequence[Any]) -> RelayResult:
        """Validates one submission and forwards it. Failures are reported in the result, not raised."""
        payload = build_payload(values)

        missing = missing_fields(payload)
        if missing:
            logging.error(f"Form submission is missing required fields: {missing}")
            return RelayResult(False, error=f"Missing required fields: {', '.join(missing)}")

        if not self.api_key:
            logging.error("API_KEY is not configured; form submission was not forwarded")
            return RelayResult(False, error="API_KEY is not configured")

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={'Authorization': f'Bearer {self.api_key}'},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logging.error(f"Form relay request failed: {e}", exc_info=True)
            return RelayResult(False, error=str(e))

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if not response.ok:
            logging.error(f"Form relay API error: {response.status_code} {response.text}")
            return RelayResult(False, status_code=response.status_code, body=body,
                               error=f"API responded with {response.status_code}")

        logging.info(f"Form submission forwarded: {body}")
        return RelayResult(True, status_code=response.status_code, body=body)
