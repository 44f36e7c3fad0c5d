# daycare/api/customers/schemas.py
from marshmallow import Schema, fields, validate, post_load, EXCLUDE, ValidationError

from daycare.models.customer import PetType, CustomerStatus, parse_pet_type, parse_status, to_int, to_float
from daycare.utils.datetime_utils import DateTimeUtils

PET_TYPE_VALUES = [e.value for e in PetType]
STATUS_VALUES = [e.value for e in CustomerStatus]


class DateString(fields.Str):
    """Date-only string. Accepts anything dateutil can read and stores it as YYYY-MM-DD; blank stays blank."""

    def _deserialize(self, value, attr, data, **kwargs):
        text = super()._deserialize(value, attr, data, **kwargs).strip()
        if not text:
            return ''
        try:
            return DateTimeUtils.to_date_string(DateTimeUtils.parse_date_string(text))
        except ValueError:
            raise ValidationError("Not a valid date.")


def _coerce_fields(data):
    """Normalizes enum and numeric fields the same way sheet rows are parsed."""
    if 'pet_type' in data:
        data['pet_type'] = parse_pet_type(data['pet_type'])
    if 'status' in data:
        data['status'] = parse_status(data['status'])
    if 'age' in data:
        data['age'] = to_int(data['age'])
    if 'weight' in data:
        data['weight'] = to_float(data['weight'])
    return data


class CustomerCreateSchema(Schema):
    """POST /api/customers request body (sent by the form relay)."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1),
                      error_messages={"required": "name is required."})
    furigana = fields.Str(load_default='')
    email = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "email is required."})
    phone = fields.Str(required=True, validate=validate.Length(min=1),
                       error_messages={"required": "phone is required."})
    address = fields.Str(load_default='')
    pet_name = fields.Str(required=True, data_key='petName', validate=validate.Length(min=1),
                          error_messages={"required": "petName is required."})
    # Free text from the form ("柴犬" etc.); anything outside the known types becomes "その他".
    pet_type = fields.Str(data_key='petType', load_default=PetType.OTHER.value, allow_none=True)
    age = fields.Raw(load_default=0, allow_none=True)
    weight = fields.Raw(load_default=0, allow_none=True)
    notes = fields.Str(load_default='', allow_none=True)

    @post_load
    def coerce(self, data, **kwargs):
        return _coerce_fields(data)


class CustomerUpdateSchema(Schema):
    """PUT body for a customer. Every field is optional; `id` is ignored."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1))
    furigana = fields.Str()
    email = fields.Str()
    phone = fields.Str()
    address = fields.Str()
    pet_name = fields.Str(data_key='petName', validate=validate.Length(min=1))
    pet_type = fields.Str(data_key='petType', validate=validate.OneOf(PET_TYPE_VALUES))
    age = fields.Raw()
    weight = fields.Raw()
    notes = fields.Str()
    created_at = DateString(data_key='createdAt', validate=validate.Length(min=1))
    last_visit = DateString(data_key='lastVisit', allow_none=True)
    status = fields.Str(validate=validate.OneOf(STATUS_VALUES))

    @post_load
    def coerce(self, data, **kwargs):
        if data.get('last_visit') is None and 'last_visit' in data:
            data['last_visit'] = ''
        return _coerce_fields(data)


class CustomerQuerySchema(Schema):
    """List filters shared by the customers and sheets endpoints."""
    class Meta:
        unknown = EXCLUDE

    search = fields.Str()
    pet_type = fields.Str(data_key='petType', validate=validate.OneOf(PET_TYPE_VALUES))
    status = fields.Str(validate=validate.OneOf(STATUS_VALUES))


class CustomerResponseSchema(Schema):
    """Customer JSON as returned to clients (input is Customer.to_dict())."""
    id = fields.Str()
    name = fields.Str()
    furigana = fields.Str()
    email = fields.Str()
    phone = fields.Str()
    address = fields.Str()
    petName = fields.Str()
    petType = fields.Str()
    breed = fields.Str()
    age = fields.Int()
    weight = fields.Float()
    imageUrl = fields.Str()
    notes = fields.Str()
    createdAt = fields.Str()
    lastVisit = fields.Str()
    status = fields.Str()


def dump_customers(customers):
    return CustomerResponseSchema(many=True).dump([c.to_dict() for c in customers])


def dump_customer(customer):
    return CustomerResponseSchema().dump(customer.to_dict())
