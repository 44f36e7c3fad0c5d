# daycare/api/customers/services.py
import json
import logging
import os
import threading
from typing import Any, Dict, List, Optional

from daycare.core.exceptions import CustomerNotFoundError, StorageError
from daycare.models.customer import Customer, CustomerStatus, PetType
from daycare.services.local_storage import write_json_atomic
from daycare.utils.datetime_utils import DateTimeUtils


def next_customer_id(customers: List[Customer]) -> str:
    """'C' + (highest numeric id + 1), zero-padded to three digits."""
    max_id = 0
    for customer in customers:
        digits = customer.id[1:] if customer.id.startswith('C') else customer.id
        if digits.isdigit():
            max_id = max(max_id, int(digits))
    return f"C{max_id + 1:03d}"


def filter_customers(customers: List[Customer], search: Optional[str] = None,
                     pet_type: Optional[str] = None, status: Optional[str] = None) -> List[Customer]:
    """List-view filters: free-text search, pet type and status."""
    result = list(customers)
    if search:
        needle = search.lower()
        result = [
            c for c in result
            if needle in c.name.lower()
            or needle in (c.furigana or '').lower()
            or needle in c.pet_name.lower()
            or needle in c.email.lower()
            or needle in c.phone
        ]
    if pet_type:
        result = [c for c in result if c.pet_type.value == pet_type]
    if status:
        result = [c for c in result if c.status.value == status]
    return result


class CustomerRepository:
    """Customer records persisted as one JSON array on disk (data/customers.json)."""

    def __init__(self, data_file: str):
        self.data_file = data_file
        self._lock = threading.RLock()
        os.makedirs(os.path.dirname(os.path.abspath(data_file)), exist_ok=True)
        logging.info(f"CustomerRepository initialized ({data_file}).")

    def load_customers(self) -> List[Customer]:
        with self._lock:
            if not os.path.exists(self.data_file):
                return []
            try:
                with open(self.data_file, 'r', encoding='utf-8') as f:
                    return [Customer.from_dict(item) for item in json.load(f)]
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logging.error(f"Failed to load customers from {self.data_file}: {e}")
                return []

    def save_customers(self, customers: List[Customer]) -> None:
        with self._lock:
            try:
                write_json_atomic(self.data_file, [c.to_dict() for c in customers], indent=2)
            except (OSError, TypeError, ValueError) as e:
                logging.error(f"Failed to save customers to {self.data_file}: {e}")
                raise StorageError(str(e)) from e

    def list_customers(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        filters = filters or {}
        return filter_customers(self.load_customers(), filters.get('search'),
                                filters.get('pet_type'), filters.get('status'))

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self.load_customers() if c.id == customer_id), None)

    def create_customer(self, data: Dict[str, Any]) -> Customer:
        """`data` is the validated form payload (see CustomerCreateSchema)."""
        with self._lock:
            customers = self.load_customers()
            customer = Customer(
                id=next_customer_id(customers),
                name=data['name'],
                furigana=data.get('furigana') or '',
                email=data['email'],
                phone=data['phone'],
                address=data.get('address') or '',
                pet_name=data['pet_name'],
                pet_type=data.get('pet_type') or PetType.OTHER,
                age=data.get('age', 0),
                weight=data.get('weight', 0.0),
                notes=data.get('notes') or '',
                created_at=DateTimeUtils.today_iso(),
                last_visit='',
                status=CustomerStatus.ACTIVE,
            )
            customers.append(customer)
            self.save_customers(customers)
        logging.info(f"New customer added: {customer.id} - {customer.name}")
        return customer

    def update_customer(self, customer_id: str, changes: Dict[str, Any]) -> Customer:
        """Shallow merge of validated `changes` (attribute names) into the stored record; the id never changes."""
        with self._lock:
            customers = self.load_customers()
            index = next((i for i, c in enumerate(customers) if c.id == customer_id), -1)
            if index == -1:
                raise CustomerNotFoundError(customer_id)

            merged = vars(customers[index]).copy()
            merged.update(changes)
            merged['id'] = customer_id
            customers[index] = Customer.from_dict(merged)
            self.save_customers(customers)
        logging.info(f"Customer updated: {customer_id}")
        return customers[index]

    def delete_customer(self, customer_id: str) -> Customer:
        with self._lock:
            customers = self.load_customers()
            index = next((i for i, c in enumerate(customers) if c.id == customer_id), -1)
            if index == -1:
                raise CustomerNotFoundError(customer_id)

            deleted = customers.pop(index)
            self.save_customers(customers)
        logging.info(f"Customer deleted: {deleted.id} - {deleted.name}")
        return deleted
