"""End-to-end tests of the REST API over ``httpx.ASGITransport``."""

import httpx
import pytest

API = "/api/v1"


async def _create(client, title="Planning") -> dict:
    resp = await client.post(f"{API}/recordings", json={"title": title})
    assert resp.status_code == 201
    return resp.json()


class TestHealth:
    async def test_health(self, async_client):
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestRecordings:
    async def test_create(self, async_client):
        body = await _create(async_client)
        assert body["title"] == "Planning"
        assert body["status"] == "recording"
        assert body["duration"] == 0
        assert body["transcription"] == ""
        assert body["insights"] is None

    async def test_create_without_body(self, async_client):
        resp = await async_client.post(f"{API}/recordings")
        assert resp.status_code == 201
        assert resp.json()["title"].startswith("Meeting ")

    async def test_list_newest_first(self, async_client):
        first = await _create(async_client, "first")
        second = await _create(async_client, "second")

        resp = await async_client.get(f"{API}/recordings", params={"limit": 10})

        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [second["id"], first["id"]]
        assert "transcription" not in resp.json()[0]

    async def test_get_missing(self, async_client):
        resp = await async_client.get(f"{API}/recordings/999")
        assert resp.status_code == 404
        assert resp.json()["code"] == "RECORDING_NOT_FOUND"

    async def test_update_transcription(self, async_client):
        rec = await _create(async_client)

        resp = await async_client.put(
            f"{API}/recordings/{rec['id']}/transcription", json={"text": "so far so good"}
        )

        assert resp.status_code == 200
        assert resp.json()["transcription"] == "so far so good"

    async def test_finish_runs_insights(self, async_client, runner):
        rec = await _create(async_client)

        resp = await async_client.post(
            f"{API}/recordings/{rec['id']}/finish",
            json={"duration": 125, "transcription": "we decided to ship"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "processing"
        assert body["duration"] == 125
        assert body["insights"] is None

        await runner.drain()
        done = (await async_client.get(f"{API}/recordings/{rec['id']}")).json()
        assert done["status"] == "completed"
        assert done["insights"]

    async def test_failed_insights_surface_as_error(self, async_client, runner, mock_llm):
        mock_llm.summarize.side_effect = ConnectionError("provider down")
        rec = await _create(async_client)

        await async_client.post(
            f"{API}/recordings/{rec['id']}/finish",
            json={"duration": 5, "transcription": "hello"},
        )
        await runner.drain()

        done = (await async_client.get(f"{API}/recordings/{rec['id']}")).json()
        assert done["status"] == "error"
        assert done["insights"] is None
        assert "provider down" in done["error_message"]

    async def test_finish_twice_conflicts(self, async_client, runner):
        rec = await _create(async_client)
        url = f"{API}/recordings/{rec['id']}/finish"
        await async_client.post(url, json={"duration": 1, "transcription": "x"})
        await runner.drain()

        resp = await async_client.post(url, json={"duration": 1, "transcription": "x"})

        assert resp.status_code == 409
        assert resp.json()["code"] == "INVALID_TRANSITION"

    async def test_transcript_update_after_finish_conflicts(self, async_client, runner):
        rec = await _create(async_client)
        await async_client.post(
            f"{API}/recordings/{rec['id']}/finish", json={"duration": 1, "transcription": "x"}
        )
        await runner.drain()

        resp = await async_client.put(
            f"{API}/recordings/{rec['id']}/transcription", json={"text": "late"}
        )

        assert resp.status_code == 409
        assert resp.json()["code"] == "RECORDING_NOT_ACTIVE"

    async def test_negative_duration_rejected(self, async_client):
        rec = await _create(async_client)
        resp = await async_client.post(
            f"{API}/recordings/{rec['id']}/finish", json={"duration": -1}
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_delete(self, async_client):
        rec = await _create(async_client)

        resp = await async_client.delete(f"{API}/recordings/{rec['id']}")

        assert resp.status_code == 200
        assert resp.json() == {"id": rec["id"], "deleted": True}
        assert (await async_client.get(f"{API}/recordings/{rec['id']}")).status_code == 404


class TestStreamingToken:
    async def test_issues_token(self, async_client):
        resp = await async_client.post(f"{API}/streaming/token")
        assert resp.status_code == 200
        assert resp.json() == {"token": "tmp-from-upstream", "expires_in": 3600}

    @pytest.mark.parametrize("token_handler", [lambda request: httpx.Response(401)])
    async def test_upstream_rejection(self, async_client):
        resp = await async_client.post(f"{API}/streaming/token")
        assert resp.status_code == 503
        assert resp.json()["code"] == "CREDENTIAL_ERROR"
