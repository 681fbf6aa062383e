import asyncio

import httpx
import pytest

from src.routeplanner.services.routing.osrm_client import OSRMClient

ROUTE_RESPONSE = {
    "code": "Ok",
    "routes": [
        {
            "distance": 41250.0,
            "duration": 2400.0,
            "geometry": {"type": "LineString", "coordinates": [[4.89, 52.37], [5.0, 52.2], [5.12, 52.09]]},
        }
    ],
}


def _client(handler, **kwargs) -> OSRMClient:
    return OSRMClient(
        base_url="http://osrm.test",
        max_retries=kwargs.pop("max_retries", 2),
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_lookup_parses_route():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ROUTE_RESPONSE)

    metrics = asyncio.run(_client(handler).lookup((52.37, 4.89), (52.09, 5.12)))

    assert metrics.distance_km == pytest.approx(41.25)
    assert metrics.duration_sec == 2400.0
    assert metrics.coordinates[0] == (52.37, 4.89)
    assert metrics.coordinates[-1] == (52.09, 5.12)
    assert seen[0].url.path == "/route/v1/driving/4.89,52.37;5.12,52.09"


def test_lookup_retries_server_errors():
    responses = iter([httpx.Response(503), httpx.Response(200, json=ROUTE_RESPONSE)])

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    metrics = asyncio.run(_client(handler).lookup((52.37, 4.89), (52.09, 5.12)))
    assert metrics.distance_km == pytest.approx(41.25)


def test_lookup_raises_when_no_route():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"})

    with pytest.raises(ValueError):
        asyncio.run(_client(handler).lookup((52.37, 4.89), (52.09, 5.12)))


def test_lookup_network_failure_becomes_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectionError):
        asyncio.run(_client(handler, max_retries=1).lookup((52.37, 4.89), (52.09, 5.12)))


def test_missing_base_url_is_rejected(monkeypatch):
    from src.routeplanner.services.routing import osrm_client

    monkeypatch.setattr(osrm_client.settings, "osrm_base_url", None)
    with pytest.raises(ValueError):
        OSRMClient()
