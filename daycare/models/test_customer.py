# daycare/models/test_customer.py
import pytest

from daycare.models.customer import (
    Customer, CustomerStatus, PetType, parse_pet_type, parse_status, to_float, to_int
)
from daycare.models.photo import PetPhoto


@pytest.mark.parametrize("value, expected", [
    ("3", 3), ("3.7", 3), ("3歳", 3), (" 12", 12), ("", 0), ("abc", 0), (None, 0), (5, 5), (2.9, 2),
])
def test_to_int(value, expected):
    assert to_int(value) == expected


@pytest.mark.parametrize("value, expected", [
    ("8.5", 8.5), ("8.5kg", 8.5), ("10", 10.0), (".5", 0.5), ("", 0.0), ("kg", 0.0), (None, 0.0),
])
def test_to_float(value, expected):
    assert to_float(value) == expected


def test_parse_pet_type():
    assert parse_pet_type("犬") is PetType.DOG
    assert parse_pet_type(" 猫 ") is PetType.CAT
    assert parse_pet_type("柴犬") is PetType.OTHER
    assert parse_pet_type("") is PetType.OTHER
    assert parse_pet_type(PetType.CAT) is PetType.CAT


def test_parse_status():
    assert parse_status("inactive") is CustomerStatus.INACTIVE
    assert parse_status("") is CustomerStatus.ACTIVE
    assert parse_status("archived") is CustomerStatus.ACTIVE


def test_from_dict_accepts_wire_and_attribute_keys():
    wire = Customer.from_dict({"id": "C001", "name": "山田太郎", "petName": "ポチ", "petType": "犬",
                               "age": "3", "weight": "8.5", "lastVisit": None})
    snake = Customer.from_dict({"id": "C001", "name": "山田太郎", "pet_name": "ポチ", "pet_type": PetType.DOG,
                                "age": 3, "weight": 8.5})

    assert wire == snake
    assert wire.last_visit == ""
    assert wire.status is CustomerStatus.ACTIVE


def test_to_dict_uses_wire_keys():
    data = Customer(id="C001", name="山田太郎", pet_name="ポチ", pet_type=PetType.CAT,
                    status=CustomerStatus.INACTIVE).to_dict()

    assert data["petName"] == "ポチ"
    assert data["petType"] == "猫"
    assert data["status"] == "inactive"
    assert "pet_name" not in data
    assert Customer.from_dict(data).pet_type is PetType.CAT


def test_photo_from_dict_defaults():
    photo = PetPhoto.from_dict({"id": "photo_1", "customerId": "C001", "fileSize": "42"})

    assert photo.file_size == 42
    assert photo.description is None
    assert photo.to_dict()["customerId"] == "C001"
