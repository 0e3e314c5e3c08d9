"""Shared test fixtures."""
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

import mock_api
from clinic_booking.api_client import ClinicApiClient
from clinic_booking.cache import TTLCache
from clinic_booking.circuit_breaker import CircuitBreaker
from clinic_booking.http_client import create_http_session
from clinic_booking.models import Doctor, Shift

MOCK_BASE_URL = "http://mock-clinic/api"
OFFLINE_BASE_URL = "http://offline-clinic/api"


class FlaskAppAdapter(BaseAdapter):
    """Transport adapter answering requests with a Flask app's test client."""

    def __init__(self, app):
        super().__init__()
        self.app = app

    def send(self, request, **kwargs):
        parts = urlsplit(request.url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        # one test client per call, shifts are fetched from several threads
        flask_response = self.app.test_client().open(
            path,
            method=request.method,
            headers={k: v for k, v in request.headers.items() if k.lower() != "content-length"},
            data=request.body,
        )

        response = requests.Response()
        response.status_code = flask_response.status_code
        response._content = flask_response.get_data()
        response.headers = CaseInsensitiveDict(flask_response.headers)
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


class RefusingAdapter(BaseAdapter):
    """Every request fails as if nothing listens on the host."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def send(self, request, **kwargs):
        self.calls += 1
        raise requests.exceptions.ConnectionError(f"Connection refused: {request.url}")

    def close(self):
        pass


def fast_session() -> requests.Session:
    """Session without retries or backoff delays."""
    return create_http_session(max_retries=0, backoff_factor=0)


@pytest.fixture
def mock_backend():
    """Fresh in-memory store for every test."""
    mock_api.reset_store()
    yield mock_api
    mock_api.reset_store()


@pytest.fixture
def client(mock_backend) -> ClinicApiClient:
    """API client wired to the Flask mock backend."""
    http = fast_session()
    http.mount("http://mock-clinic", FlaskAppAdapter(mock_backend.app))
    return ClinicApiClient(base_url=MOCK_BASE_URL, http=http, cache=TTLCache())


@pytest.fixture
def refusing_adapter() -> RefusingAdapter:
    return RefusingAdapter()


@pytest.fixture
def offline_client(refusing_adapter) -> ClinicApiClient:
    """API client whose backend never answers."""
    http = fast_session()
    http.mount("http://offline-clinic", refusing_adapter)
    breaker = CircuitBreaker(failure_threshold=100, timeout=60)
    return ClinicApiClient(base_url=OFFLINE_BASE_URL, http=http, breaker=breaker)


@pytest.fixture
def morning_doctor() -> Doctor:
    """Works Mon/Wed 08:00-12:00."""
    return Doctor(
        id=1,
        name="Dr. Morning",
        specialty="General Medicine",
        shifts=[Shift(start="08:00", end="12:00", weekdays={1, 3})],
    )


@pytest.fixture
def evening_doctor() -> Doctor:
    """Works Wed/Fri 17:00-19:00."""
    return Doctor(
        id=2,
        name="Dr. Evening",
        specialty="Cardiology",
        shifts=[Shift(start="17:00", end="19:00", weekdays={3, 5})],
    )
