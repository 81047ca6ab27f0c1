import asyncio

import pytest

from inkwell.adapters.api.v1 import health
from inkwell.adapters.api.v1.health import ServiceHealth, overall_status, probe


def test_all_connected(client):
    response = client.get("/api/health")
    body = response.json()

    assert response.status_code == 200
    assert body["status"] == "ok"
    for service in ("redis", "database", "storage", "queue", "smtp"):
        assert body[service] == {"status": "connected", "error": None}
    assert body["environment"] == "test"
    assert body["pool"] == {"size": 2, "checked_out": 0, "overflow": 0}
    assert "timestamp" in body
    assert "success" not in body


def test_store_outage_is_degraded(client, store):
    store.down = True
    response = client.get("/api/health")
    body = response.json()

    assert response.status_code == 503
    assert body["status"] == "degraded"
    assert body["redis"]["status"] == "error"
    assert body["redis"]["error"]
    assert body["database"]["status"] == "connected"


def test_database_outage_is_degraded(client, resources):
    async def refuse():
        raise ConnectionRefusedError("connection refused")

    resources.database_check = refuse
    body = client.get("/api/health").json()
    assert body["status"] == "degraded"
    assert body["database"] == {"status": "error", "error": "connection refused"}


def test_health_is_not_rate_limited(client, store):
    for _ in range(3):
        client.get("/api/health")
    assert not any(key.startswith("rate_limit:global") for key in store.data)


@pytest.mark.parametrize(
    "statuses, expected",
    [
        (["connected", "connected"], "ok"),
        (["connected", "error"], "degraded"),
        (["error", "error"], "error"),
    ],
)
def test_overall_status(statuses, expected):
    services = {str(i): ServiceHealth(status=s) for i, s in enumerate(statuses)}
    assert overall_status(services) == expected


@pytest.mark.asyncio
async def test_slow_check_times_out(mocker):
    mocker.patch.object(health, "CHECK_TIMEOUT_SECONDS", 0.01)

    async def hang():
        await asyncio.sleep(1)

    result = await probe("storage", hang)
    assert result.status == "error"
    assert result.error == "TimeoutError"
