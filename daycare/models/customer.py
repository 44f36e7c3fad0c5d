# daycare/models/customer.py
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict
import logging
import re

_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')
_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


class PetType(Enum):
    DOG = "犬"
    CAT = "猫"
    OTHER = "その他"


class CustomerStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def to_int(value: Any) -> int:
    """Leading-integer parse ("3", "3.7", "3歳" -> 3); anything unparsable becomes 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _INT_PREFIX.match(str(value or ''))
    return int(match.group(1)) if match else 0


def to_float(value: Any) -> float:
    """Leading-float parse ("8.5", "8.5kg" -> 8.5); anything unparsable becomes 0.0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value or ''))
    return float(match.group(1)) if match else 0.0


def parse_pet_type(value: Any) -> PetType:
    if isinstance(value, PetType):
        return value
    text = str(value or '').strip()
    if not text:
        return PetType.OTHER
    try:
        return PetType(text)
    except ValueError:
        logging.warning(f"Unknown pet type '{text}', falling back to '{PetType.OTHER.value}'.")
        return PetType.OTHER


def parse_status(value: Any) -> CustomerStatus:
    if isinstance(value, CustomerStatus):
        return value
    try:
        return CustomerStatus(str(value or '').strip() or CustomerStatus.ACTIVE.value)
    except ValueError:
        logging.warning(f"Unknown customer status '{value}', falling back to 'active'.")
        return CustomerStatus.ACTIVE


# Python attribute name -> JSON key used by the cache, the customers file and the API.
WIRE_KEYS = {
    'id': 'id',
    'name': 'name',
    'furigana': 'furigana',
    'email': 'email',
    'phone': 'phone',
    'address': 'address',
    'pet_name': 'petName',
    'pet_type': 'petType',
    'breed': 'breed',
    'age': 'age',
    'weight': 'weight',
    'image_url': 'imageUrl',
    'notes': 'notes',
    'created_at': 'createdAt',
    'last_visit': 'lastVisit',
    'status': 'status',
}


@dataclass
class Customer:
    """
    One customer/pet entry.
    `id` is assigned from the row position in the form-responses sheet (or by the
    customers file for API-created records), so it is not a durable key.
    """
    id: str
    name: str
    pet_name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    furigana: str = ""
    pet_type: PetType = PetType.OTHER
    breed: str = ""
    age: int = 0
    weight: float = 0.0
    image_url: str = ""
    notes: str = ""
    created_at: str = ""
    last_visit: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        """
        Builds a Customer from a JSON dict. Both camelCase wire keys and
        snake_case attribute names are accepted; enum and numeric values are coerced.
        """
        values = {}
        for attr, key in WIRE_KEYS.items():
            if key in data:
                values[attr] = data[key]
            elif attr in data:
                values[attr] = data[attr]

        for attr in ('name', 'pet_name', 'email', 'phone', 'address', 'furigana',
                     'breed', 'image_url', 'notes', 'created_at', 'last_visit'):
            if values.get(attr) is None:
                values[attr] = ""
            else:
                values[attr] = str(values[attr])
        values['id'] = str(values.get('id') or '')
        values['pet_type'] = parse_pet_type(values.get('pet_type'))
        values['status'] = parse_status(values.get('status'))
        values['age'] = to_int(values.get('age'))
        values['weight'] = to_float(values.get('weight'))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serializes to the camelCase JSON shape."""
        raw = asdict(self)
        raw['pet_type'] = self.pet_type.value
        raw['status'] = self.status.value
        return {WIRE_KEYS[attr]: value for attr, value in raw.items()}
