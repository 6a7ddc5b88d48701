from fastapi.testclient import TestClient
from limits import parse

from main import create_app, make_limiter, rate_limit_string

JOB = {"jobDescription": "We are looking for a Backend Engineer at Acme Corp."}


def _client(settings, **overrides):
    return TestClient(create_app(settings.with_overrides(rate_limit_enabled=True, **overrides)))


def test_limit_string_parses_to_configured_window(settings):
    item = parse(rate_limit_string(settings.with_overrides(rate_limit_max=100, rate_limit_window_sec=900)))
    assert item.amount == 100
    assert item.get_expiry() == 900


def test_limiter_follows_enabled_flag(settings):
    assert make_limiter(settings.with_overrides(rate_limit_enabled=True)).enabled
    assert not make_limiter(settings.with_overrides(rate_limit_enabled=False)).enabled


def test_over_limit_returns_error_body(settings):
    client = _client(settings, rate_limit_max=3)
    statuses = [client.post("/analyze-jd", json=JOB).status_code for _ in range(4)]
    assert statuses == [200, 200, 200, 429]
    r = client.post("/analyze-jd", json=JOB)
    assert r.json() == {
        "error": "Too many requests",
        "message": "Too many requests from this IP, please try again later",
    }
    assert 0 < int(r.headers["Retry-After"]) <= 900


def test_budget_is_shared_across_routes(settings):
    client = _client(settings, rate_limit_max=2)
    assert client.post("/analyze-jd", json=JOB).status_code == 200
    assert client.post("/analyze-jd", json=JOB).status_code == 200
    assert client.post("/upload").status_code == 429


def test_health_is_exempt(settings):
    client = _client(settings, rate_limit_max=1)
    assert all(client.get("/health").status_code == 200 for _ in range(5))
    assert client.post("/analyze-jd", json=JOB).status_code == 200


def test_disabled_limiter_never_blocks(settings):
    client = TestClient(create_app(settings.with_overrides(rate_limit_enabled=False, rate_limit_max=1)))
    assert [client.post("/analyze-jd", json=JOB).status_code for _ in range(3)] == [200, 200, 200]


def test_each_app_has_its_own_budget(settings):
    first = _client(settings, rate_limit_max=1)
    second = _client(settings, rate_limit_max=1)
    assert first.post("/analyze-jd", json=JOB).status_code == 200
    assert second.post("/analyze-jd", json=JOB).status_code == 200
