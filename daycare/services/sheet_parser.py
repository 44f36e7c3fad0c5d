# daycare/services/sheet_parser.py
"""
Mapping between the Google Form responses sheet and Customer records.

Column order of the responses sheet (A..M):
    timestamp, name, furigana, email, phone, address, pet name, pet type,
    age, weight, notes, created date, last visit
"""

import logging
from typing import Any, List, Optional, Sequence

from daycare.models.customer import Customer, parse_pet_type, to_int, to_float
from daycare.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

COL_TIMESTAMP = 0
COL_NAME = 1
COL_FURIGANA = 2
COL_EMAIL = 3
COL_PHONE = 4
COL_ADDRESS = 5
COL_PET_NAME = 6
COL_PET_TYPE = 7
COL_AGE = 8
COL_WEIGHT = 9
COL_NOTES = 10
COL_CREATED_AT = 11
COL_LAST_VISIT = 12

COLUMN_COUNT = 13

# Sheet row 1 is the header, so data index 0 lives on row 2.
HEADER_ROW_OFFSET = 2


def format_customer_id(position: int) -> str:
    """1-based data row position -> 'C001' style identifier."""
    return f"C{position:03d}"


class HeaderIndex:
    """
    Header-name lookup over the first sheet row (case-insensitive substring match).
    Positional mapping stays authoritative; this is for diagnostics and ad-hoc reads.
    """

    def __init__(self, headers: Sequence[Any]):
        self.headers = [str(h) if h is not None else '' for h in headers]

    def index_of(self, header_name: str) -> int:
        needle = header_name.lower()
        for i, header in enumerate(self.headers):
            if header and needle in header.lower():
                return i
        return -1

    def get(self, row: Sequence[Any], header_name: str) -> str:
        i = self.index_of(header_name)
        if i < 0 or i >= len(row):
            return ''
        return str(row[i] or '').strip()


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ''
    return str(row[index])


def parse_row(row: Sequence[Any], position: int) -> Optional[Customer]:
    """Maps one data row; returns None when owner name or pet name is blank."""
    name = _cell(row, COL_NAME).strip()
    pet_name = _cell(row, COL_PET_NAME).strip()
    if not name or not pet_name:
        return None

    return Customer(
        id=format_customer_id(position),
        name=name,
        furigana=_cell(row, COL_FURIGANA).strip(),
        email=_cell(row, COL_EMAIL).strip(),
        phone=_cell(row, COL_PHONE).strip(),
        address=_cell(row, COL_ADDRESS).strip(),
        pet_name=pet_name,
        pet_type=parse_pet_type(_cell(row, COL_PET_TYPE)),
        age=to_int(_cell(row, COL_AGE)),
        weight=to_float(_cell(row, COL_WEIGHT)),
        notes=_cell(row, COL_NOTES),
        created_at=_cell(row, COL_CREATED_AT).strip() or DateTimeUtils.today_iso(),
        last_visit=_cell(row, COL_LAST_VISIT).strip(),
    )


def parse_sheet_values(values: List[List[Any]]) -> List[Customer]:
    """
    Converts the raw `values` grid of the Sheets API into customers.
    The header row is dropped; identifiers follow the data row position, so a
    filtered-out row still consumes its number.
    """
    if not values or len(values) < 2:
        return []

    header_index = HeaderIndex(values[0])
    logger.debug(f"Sheet headers: {header_index.headers}, data rows: {len(values) - 1}")

    customers = []
    for position, row in enumerate(values[1:], start=1):
        customer = parse_row(row or [], position)
        if customer is None:
            logger.debug(f"Skipping row {position}: owner name or pet name is empty")
            continue
        customers.append(customer)
    return customers


def customer_to_row(customer: Customer) -> List[Any]:
    """13-column row written back to the sheet. The timestamp column is left blank."""
    return [
        '',
        customer.name,
        customer.furigana or '',
        customer.email,
        customer.phone,
        customer.address,
        customer.pet_name,
        customer.pet_type.value,
        customer.age,
        customer.weight,
        customer.notes,
        customer.created_at,
        customer.last_visit or '',
    ]
