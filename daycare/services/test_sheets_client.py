# daycare/services/test_sheets_client.py
import pytest
import requests

from conftest import FakeResponse, FakeSession, HEADER_ROW, sheet_row
from daycare.core.exceptions import SheetsFetchError, SheetsParseError
from daycare.services.sheets_client import SheetsClient, build_service_account_credentials


class FakeCredentials:
    def __init__(self):
        self.valid = False
        self.token = None
        self.refresh_count = 0

    def refresh(self, request):
        self.refresh_count += 1
        self.valid = True
        self.token = "ya29.test-token"


def test_is_configured_requires_both_values():
    assert SheetsClient("sheet-id", "api-key").is_configured
    assert not SheetsClient("sheet-id", "").is_configured
    assert not SheetsClient("  ", "api-key").is_configured


def test_fetch_values_requests_the_responses_sheet():
    session = FakeSession(get_responses=[FakeResponse(200, {"values": [HEADER_ROW, sheet_row()]})])
    client = SheetsClient(" sheet-id ", "api-key", session=session)

    values = client.fetch_values()

    assert len(values) == 2
    method, url, kwargs = session.calls[0]
    assert url == ("https://sheets.googleapis.com/v4/spreadsheets/sheet-id/values/"
                   "%E3%83%95%E3%82%A9%E3%83%BC%E3%83%A0%E3%81%AE%E5%9B%9E%E7%AD%94")
    assert kwargs['params'] == {"key": "api-key"}


def test_fetch_customers_parses_rows():
    session = FakeSession(get_responses=[FakeResponse(200, {"values": [HEADER_ROW, sheet_row()]})])

    customers = SheetsClient("sheet-id", "api-key", session=session).fetch_customers()

    assert [c.id for c in customers] == ["C001"]


def test_missing_values_key_means_no_rows():
    session = FakeSession(get_responses=[FakeResponse(200, {"range": "A1:M1"})])
    assert SheetsClient("sheet-id", "api-key", session=session).fetch_values() == []


def test_http_error_carries_status_and_body():
    session = FakeSession(get_responses=[FakeResponse(403, text="API key not valid")])

    with pytest.raises(SheetsFetchError) as exc_info:
        SheetsClient("sheet-id", "api-key", session=session).fetch_values()

    assert exc_info.value.status_code == 403
    assert exc_info.value.body == "API key not valid"


def test_transport_error_becomes_fetch_error():
    session = FakeSession(get_responses=[requests.Timeout("read timed out")])

    with pytest.raises(SheetsFetchError) as exc_info:
        SheetsClient("sheet-id", "api-key", session=session).fetch_values()

    assert exc_info.value.status_code is None


@pytest.mark.parametrize("response", [
    FakeResponse(200, text="{not json"),
    FakeResponse(200, text="[1, 2, 3]"),
    FakeResponse(200, {"values": "A1"}),
])
def test_malformed_payload_raises_parse_error(response):
    session = FakeSession(get_responses=[response])

    with pytest.raises(SheetsParseError):
        SheetsClient("sheet-id", "api-key", session=session).fetch_values()


def test_update_row_uses_service_account_token_when_available():
    credentials = FakeCredentials()
    session = FakeSession(put_responses=[FakeResponse(200, {"updatedCells": 13})])
    client = SheetsClient("sheet-id", "api-key", session=session, credentials=credentials)

    client.update_row(5, ["", "Owner"])
    client.update_row(6, ["", "Owner"])

    assert credentials.refresh_count == 1
    method, url, kwargs = session.calls_for('PUT')[0]
    assert url.endswith("/values/A5%3AM5")
    assert kwargs['params'] == {"valueInputOption": "RAW"}
    assert kwargs['headers']['Authorization'] == "Bearer ya29.test-token"
    assert kwargs['json'] == {"values": [["", "Owner"]]}


def test_update_row_error_raises():
    session = FakeSession(put_responses=[FakeResponse(401, {"error": {"code": 401}})])

    with pytest.raises(SheetsFetchError):
        SheetsClient("sheet-id", "api-key", session=session).update_row(2, [])


def test_service_account_credentials_need_email_and_key():
    assert build_service_account_credentials("", "key") is None
    assert build_service_account_credentials("svc@example.iam.gserviceaccount.com", "") is None
