# daycare/core/exceptions.py
from typing import Optional


class SheetsError(Exception):
    """Base class for failures talking to the Google Sheets source."""


class SheetsFetchError(SheetsError):
    """Network failure or non-success HTTP status from the Sheets API."""

    def __init__(self, status_code: Optional[int], body: str = ""):
        self.status_code = status_code
        self.body = body or ""
        super().__init__(f"HTTP error! status: {status_code}, message: {self.body}")


class SheetsParseError(SheetsError):
    """The Sheets API answered with a body that is not the expected JSON."""


class CustomerNotFoundError(LookupError):
    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class StorageError(Exception):
    """A local JSON store could not be written."""
