"""
Shared pytest fixtures.

No test touches the network: HTTP goes through FakeSession, and time goes
through FakeClock so backoff delays are observed without sleeping.
"""
import json

import pytest

from daycare import create_app

TEST_API_KEY = "test-api-key"


class FakeClock:
    """Monotonic clock whose sleep() only advances the time and records the delay."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json_data = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._json_data is None:
            return json.loads(self.text)
        return self._json_data


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records every request."""

    def __init__(self, get_responses=None, put_responses=None, post_responses=None):
        self.queues = {
            'GET': list(get_responses or []),
            'PUT': list(put_responses or []),
            'POST': list(post_responses or []),
        }
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        queue = self.queues[method]
        if not queue:
            raise AssertionError(f"Unexpected {method} {url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next('GET', url, **kwargs)

    def put(self, url, **kwargs):
        return self._next('PUT', url, **kwargs)

    def post(self, url, **kwargs):
        return self._next('POST', url, **kwargs)

    def calls_for(self, method):
        return [call for call in self.calls if call[0] == method]


HEADER_ROW = ["タイムスタンプ", "お名前", "ふりがな", "メール", "電話", "住所", "ペット名",
              "犬種", "年齢", "体重", "備考", "登録日", "最終来店"]


def sheet_row(name="山田太郎", pet_name="ポチ", pet_type="犬", age="3", weight="8.5",
              created_at="2024-04-01", last_visit=""):
    return ["2024/04/01 10:00:00", name, "やまだたろう", "taro@example.com", "090-1234-5678",
            "東京都渋谷区", pet_name, pet_type, age, weight, "よく吠えます", created_at, last_visit]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DEBUG': False,
        'API_KEY': TEST_API_KEY,
        'SPREADSHEET_ID': '',
        'GOOGLE_API_KEY': '',
        'GOOGLE_CLIENT_EMAIL': '',
        'GOOGLE_PRIVATE_KEY': '',
        'MIN_API_INTERVAL': 0.0,
        'RETRY_DELAY': 0.0,
        'CUSTOMERS_FILE': str(tmp_path / "customers.json"),
        'LOCAL_STORAGE_FILE': str(tmp_path / "local_storage.json"),
        'FORM_RELAY_API_URL': 'http://relay.test/api/customers',
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_API_KEY}"}
