"""Smoke tests for the API application wiring."""


def test_health(client) -> None:
    """The health endpoint answers without authentication."""
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "api"}


def test_protected_route_requires_token(client) -> None:
    resp = client.get("/api/v1/auth/me")
    assert resp.status_code == 401


def test_malformed_authorization_header(client) -> None:
    resp = client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401


def test_client_error_log(client) -> None:
    resp = client.post(
        "/api/v1/log-error",
        json={"message": "TypeError: x is undefined", "severity": "high", "url": "/dashboard"},
        headers={"User-Agent": "pytest"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_run_serves_app_with_uvicorn(monkeypatch) -> None:
    import uvicorn

    from services.api.app import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    main.run()

    target, kwargs = calls[0]
    assert target == "services.api.app.main:app"
    assert kwargs["host"] == main.settings.api_host
    assert kwargs["port"] == 8000
    assert kwargs["reload"] is False
