# daycare/services/test_customer_sync.py
import threading
import time

import pytest

from conftest import FakeResponse, FakeSession, HEADER_ROW, sheet_row
from daycare.api.photos.services import PhotoService
from daycare.core.exceptions import CustomerNotFoundError, SheetsFetchError, StorageError
from daycare.models.customer import Customer, CustomerStatus
from daycare.services.customer_sync import CustomerSyncService
from daycare.services.local_storage import LocalStorage, CustomerCache
from daycare.services.rate_limiter import RateLimiter
from daycare.services.retry import RetryController
from daycare.services.sheets_client import SheetsClient


def sheet_response(*rows):
    return FakeResponse(200, {"range": "A1:M10", "values": [HEADER_ROW, *rows]})


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "local_storage.json"))


@pytest.fixture
def cache(storage):
    return CustomerCache(storage)


def build_service(fake_clock, cache, session, configured=True, photo_service=None):
    client = SheetsClient(
        spreadsheet_id="sheet-id" if configured else "",
        api_key="api-key" if configured else "",
        session=session
    )
    limiter = RateLimiter(min_interval=1.0, clock=fake_clock, sleep=fake_clock.sleep)
    controller = RetryController(limiter, max_attempts=3, base_delay=2.0, sleep=fake_clock.sleep)
    return CustomerSyncService(client, cache, controller, photo_service=photo_service)


def cached_customer(customer_id="C099", name="Old Owner"):
    return Customer(id=customer_id, name=name, pet_name="Old Pet", created_at="2023-01-01")


def test_success_replaces_cache_entirely(fake_clock, cache):
    cache.save([cached_customer()])
    session = FakeSession(get_responses=[sheet_response(sheet_row(), sheet_row(name="佐藤花子", pet_name="タマ"))])
    service = build_service(fake_clock, cache, session)

    customers = service.get_customers()

    assert [c.id for c in customers] == ["C001", "C002"]
    assert [c.id for c in cache.load()] == ["C001", "C002"]


def test_exhausted_retries_serve_cache(fake_clock, cache):
    cache.save([cached_customer()])
    session = FakeSession(get_responses=[FakeResponse(429, text='{"error": "RATE_LIMIT_EXCEEDED"}')])
    service = build_service(fake_clock, cache, session)

    customers = service.get_customers()

    assert [c.id for c in customers] == ["C099"]
    assert len(session.calls_for('GET')) == 3
    assert fake_clock.sleeps == [2.0, 4.0]


def test_exhausted_retries_with_empty_cache_return_empty(fake_clock, cache):
    session = FakeSession(get_responses=[FakeResponse(429, text="Too Many Requests")])
    service = build_service(fake_clock, cache, session)

    assert service.get_customers() == []


def test_malformed_json_falls_back_without_retry(fake_clock, cache):
    cache.save([cached_customer()])
    session = FakeSession(get_responses=[FakeResponse(200, text="<html>not json</html>")])
    service = build_service(fake_clock, cache, session)

    customers = service.get_customers()

    assert [c.id for c in customers] == ["C099"]
    assert len(session.calls_for('GET')) == 1
    assert fake_clock.sleeps == []


def test_network_error_falls_back(fake_clock, cache):
    import requests
    session = FakeSession(get_responses=[requests.ConnectionError("connection refused")])
    service = build_service(fake_clock, cache, session)

    assert service.get_customers() == []


def test_unconfigured_client_never_calls_remote(fake_clock, cache):
    cache.save([cached_customer()])
    session = FakeSession()
    service = build_service(fake_clock, cache, session, configured=False)

    customers = service.get_customers()

    assert [c.id for c in customers] == ["C099"]
    assert session.calls == []


def test_get_customer_by_id(fake_clock, cache):
    session = FakeSession(get_responses=[sheet_response(sheet_row(), sheet_row(name="佐藤花子", pet_name="タマ"))])
    service = build_service(fake_clock, cache, session)

    assert service.get_customer_by_id("C002").name == "佐藤花子"
    assert service.get_customer_by_id("C404") is None


def test_update_writes_cache_and_sheet_row(fake_clock, cache):
    rows = (sheet_row(), sheet_row(name="佐藤花子", pet_name="タマ", pet_type="猫"))
    session = FakeSession(
        get_responses=[sheet_response(*rows)],
        put_responses=[FakeResponse(200, {"updatedRows": 1})]
    )
    service = build_service(fake_clock, cache, session)
    customer = service.get_customers()[1]
    customer.notes = "Allergic to chicken"
    customer.status = CustomerStatus.INACTIVE

    service.update_customer(customer)

    assert cache.load()[1].notes == "Allergic to chicken"
    method, url, kwargs = session.calls_for('PUT')[0]
    assert url.endswith("/values/A3%3AM3")
    assert kwargs['params'] == {"valueInputOption": "RAW", "key": "api-key"}
    row = kwargs['json']['values'][0]
    assert len(row) == 13
    assert row[1] == "佐藤花子"
    assert row[10] == "Allergic to chicken"


def test_update_unknown_customer_raises(fake_clock, cache):
    service = build_service(fake_clock, cache, FakeSession())

    with pytest.raises(CustomerNotFoundError):
        service.update_customer(cached_customer("C404"))


def test_update_propagates_sheet_write_failure(fake_clock, cache):
    session = FakeSession(
        get_responses=[sheet_response(sheet_row())],
        put_responses=[FakeResponse(403, {"error": {"status": "PERMISSION_DENIED"}})]
    )
    service = build_service(fake_clock, cache, session)
    customer = service.get_customers()[0]

    with pytest.raises(SheetsFetchError) as exc_info:
        service.update_customer(customer)

    assert exc_info.value.status_code == 403
    # The local edit stays even when the sheet write fails.
    assert cache.load()[0].id == customer.id


def test_update_when_unconfigured_only_touches_cache(fake_clock, cache):
    cache.save([cached_customer()])
    session = FakeSession()
    service = build_service(fake_clock, cache, session, configured=False)

    service.update_customer(cached_customer(name="New Owner"))

    assert cache.load()[0].name == "New Owner"
    assert session.calls == []


def test_delete_is_local_only_and_removes_photos(fake_clock, cache, storage):
    photos = PhotoService(storage)
    photos.upload_photo("C099", "pochi.png", b"\x89PNG", "image/png")
    photos.upload_photo("C100", "tama.png", b"\x89PNG", "image/png")
    cache.save([cached_customer("C099"), cached_customer("C100")])
    session = FakeSession()
    service = build_service(fake_clock, cache, session, photo_service=photos)

    assert service.delete_customer("C099") is True
    assert service.delete_customer("C099") is False

    assert [c.id for c in cache.load()] == ["C100"]
    assert photos.get_photos_by_customer_id("C099") == []
    assert len(photos.get_photos_by_customer_id("C100")) == 1
    assert session.calls == []


def test_clear_local_data(fake_clock, cache):
    cache.save([cached_customer()])
    service = build_service(fake_clock, cache, FakeSession())

    service.clear_local_data()

    assert cache.load() == []


class FullDiskStorage(LocalStorage):
    def set_item(self, key, value):
        raise StorageError("No space left on device")


class SlowReadStorage(LocalStorage):
    """Pauses after each read so unsynchronised read-modify-writes overlap."""

    def get_item(self, key):
        value = super().get_item(key)
        time.sleep(0.05)
        return value


def test_cache_write_failure_still_returns_sheet_data(fake_clock, tmp_path):
    cache = CustomerCache(FullDiskStorage(str(tmp_path / "local_storage.json")))
    session = FakeSession(get_responses=[sheet_response(sheet_row())])
    service = build_service(fake_clock, cache, session)

    customers = service.get_customers()

    assert [c.id for c in customers] == ["C001"]


def test_concurrent_updates_keep_both_edits(fake_clock, tmp_path):
    cache = CustomerCache(SlowReadStorage(str(tmp_path / "local_storage.json")))
    cache.save([cached_customer("C001"), cached_customer("C002")])
    service = build_service(fake_clock, cache, FakeSession(), configured=False)

    threads = [
        threading.Thread(target=service.update_customer, args=(cached_customer("C001", name="Owner One"),)),
        threading.Thread(target=service.update_customer, args=(cached_customer("C002", name="Owner Two"),)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [c.name for c in cache.load()] == ["Owner One", "Owner Two"]
