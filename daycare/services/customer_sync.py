# daycare/services/customer_sync.py
import logging
from typing import List, Optional

from daycare.core.exceptions import CustomerNotFoundError, SheetsFetchError, StorageError
from daycare.models.customer import Customer
from daycare.services.local_storage import CustomerCache
from daycare.services.retry import RetryController
from daycare.services.sheet_parser import HEADER_ROW_OFFSET, customer_to_row
from daycare.services.sheets_client import SheetsClient


class CustomerSyncService:
    """
    Single entry point for reading the customer list that originates in the
    form-responses sheet.

    Reads go remote first and fall back to the local cache (or an empty list);
    fetch failures never escape get_customers(). Writes go to the cache first
    and, when the sheet is configured, to the matching sheet row. Write failures
    propagate to the caller.
    """

    def __init__(self, client: SheetsClient, cache: CustomerCache,
                 retry_controller: RetryController, photo_service=None):
        self.client = client
        self.cache = cache
        self.retry_controller = retry_controller
        self.photo_service = photo_service
        logging.info("CustomerSyncService initialized.")

    def _fallback(self) -> List[Customer]:
        cached = self.cache.load()
        if cached:
            logging.warning(f"Serving {len(cached)} customers from local storage")
            return cached
        logging.warning("Local storage is empty as well, returning an empty list")
        return []

    def get_customers(self) -> List[Customer]:
        if not self.client.is_configured:
            logging.info("Google Sheets is not configured, skipping remote fetch")
            return self._fallback()

        try:
            outcome = self.retry_controller.run(self.client.fetch_customers)
        except Exception as e:
            logging.error(f"Google Sheets API error: {e}", exc_info=True)
            return self._fallback()

        if not outcome.succeeded:
            logging.warning("Google Sheets API unavailable after retries, using local storage")
            return self._fallback()

        customers = outcome.result
        try:
            self.cache.save(customers)
        except StorageError as e:
            logging.error(f"Failed to cache customers in local storage: {e}")
        logging.info(f"Fetched {len(customers)} customers from Google Sheets")
        return customers

    def refresh_from_sheets(self) -> List[Customer]:
        logging.info("Refreshing customers from the spreadsheet...")
        return self.get_customers()

    def get_customer_by_id(self, customer_id: str) -> Optional[Customer]:
        for customer in self.get_customers():
            if customer.id == customer_id:
                return customer
        return None

    def update_customer(self, updated: Customer) -> Customer:
        """Writes through to the cache, then to the sheet row when a sheet is configured."""
        with self.cache.locked():
            customers = self.cache.load()
            index = next((i for i, c in enumerate(customers) if c.id == updated.id), -1)
            if index == -1:
                raise CustomerNotFoundError(updated.id)

            customers[index] = updated
            self.cache.save(customers)
        logging.info(f"Customer {updated.id} updated in local storage")

        if self.client.is_configured:
            self._update_in_sheet(updated)
        return updated

    def _update_in_sheet(self, customer: Customer) -> None:
        # The row is located from a fresh read on every update; edits made to the
        # sheet between this read and the PUT are not detected.
        outcome = self.retry_controller.run(self.client.fetch_customers)
        if not outcome.succeeded:
            raise SheetsFetchError(429, "Rate limited while locating the customer row")

        index = next((i for i, c in enumerate(outcome.result) if c.id == customer.id), -1)
        if index == -1:
            raise CustomerNotFoundError(customer.id)

        row_number = index + HEADER_ROW_OFFSET
        self.client.update_row(row_number, customer_to_row(customer))
        logging.info(f"Customer {customer.id} updated in Google Sheets (row {row_number})")

    def delete_customer(self, customer_id: str) -> bool:
        """
        Removes a customer from local storage only; the sheet row is left in place.
        Photos owned by the customer are removed as well.
        """
        with self.cache.locked():
            customers = self.cache.load()
            remaining = [c for c in customers if c.id != customer_id]
            if len(remaining) == len(customers):
                return False
            self.cache.save(remaining)

        if self.photo_service is not None:
            removed = self.photo_service.delete_photos_by_customer_id(customer_id)
            logging.info(f"Removed {removed} photos of customer {customer_id}")
        logging.info(f"Customer {customer_id} deleted from local storage (sheet row untouched)")
        return True

    def clear_local_data(self) -> None:
        self.cache.clear()
