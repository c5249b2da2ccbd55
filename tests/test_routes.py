"""
Tests for API routes — beacons, log download, counts, registration, admin.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from cyoa_stats.errors import StoreFailure

VISITOR_HEADERS = {"cf-connecting-ip": "203.0.113.7", "Origin": "https://cyoa.example"}
CONCRETE = {"projectId": "p1", "data": {"eventType": "click", "timestamp": 1000, "currentURL": "https://x"}}


class TestHealthEndpoint:
    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "timestamp" in data


class TestRootEndpoint:
    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert "CYOA Stats" in resp.json()["service"]


class TestPostLog:
    async def test_accept_then_replay(self, client, count_logs):
        first = await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)
        second = await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.text == second.text == "Log entry created"
        assert await count_logs("p1") == 1

    async def test_string_data_from_logger_js(self, client, sample_event, count_logs):
        body = {"projectId": "p1", "data": json.dumps(sample_event)}
        resp = await client.post("/api/log", json=body, headers=VISITOR_HEADERS)
        assert resp.status_code == 201
        assert await count_logs("p1") == 1

    async def test_snake_case_project_id(self, client, count_logs):
        body = {"project_id": "p9", "data": CONCRETE["data"]}
        resp = await client.post("/api/log", json=body, headers=VISITOR_HEADERS)
        assert resp.status_code == 201
        assert await count_logs("p9") == 1

    async def test_query_parameters(self, client, count_logs):
        resp = await client.post(
            "/api/log",
            params={"projectId": "p1", "data": json.dumps(CONCRETE["data"])},
            headers=VISITOR_HEADERS,
        )
        assert resp.status_code == 201
        assert await count_logs("p1") == 1

    async def test_missing_payload_fields(self, client, count_logs):
        body = {"projectId": "p1", "data": {"eventType": "click"}}
        resp = await client.post("/api/log", json=body, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert resp.text == "Missing required fields: timestamp, currentURL"
        assert await count_logs() == 0

    async def test_missing_project_id(self, client):
        resp = await client.post("/api/log", json={"data": CONCRETE["data"]}, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert "projectId" in resp.text

    async def test_missing_ip(self, client, count_logs):
        resp = await client.post("/api/log", json=CONCRETE, headers={"Origin": "https://cyoa.example"})
        assert resp.status_code == 400
        assert resp.text == "Unable to determine user IP"
        assert await count_logs() == 0

    async def test_too_large(self, client, count_logs):
        data = dict(CONCRETE["data"], padding="x" * (200 * 1024))
        resp = await client.post("/api/log", json={"projectId": "p1", "data": data}, headers=VISITOR_HEADERS)
        assert resp.status_code == 413
        assert await count_logs() == 0

    async def test_malformed_data_string(self, client, count_logs):
        body = {"projectId": "p1", "data": "{eventType: click"}
        resp = await client.post("/api/log", json=body, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert "Invalid JSON" in resp.text
        assert await count_logs() == 0

    async def test_malformed_body(self, client):
        resp = await client.post(
            "/api/log",
            content=b"{not json",
            headers={**VISITOR_HEADERS, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "Invalid JSON" in resp.text

    @pytest.mark.parametrize("data", [
        '{"eventType":"click","timestamp":1000,"currentURL":"https://x","title":"\\ud83d"}',
        '"{\\"eventType\\":\\"click\\",\\"timestamp\\":1000,\\"currentURL\\":\\"https://x\\",\\"title\\":\\"\\ud83d\\"}"',
    ], ids=["structured", "string"])
    async def test_unpaired_surrogate_rejected(self, client, count_logs, data):
        resp = await client.post(
            "/api/log",
            content='{"projectId":"p1","data":' + data + "}",
            headers={**VISITOR_HEADERS, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "Invalid JSON" in resp.text
        assert resp.headers["access-control-allow-origin"] == "https://cyoa.example"
        assert await count_logs() == 0

    async def test_huge_time_on_page_stored(self, client, count_logs):
        resp = await client.post(
            "/api/log",
            content='{"projectId":"p1","data":{"eventType":"quit","timestamp":1000,"currentURL":"https://x","timeOnPage":1e20}}',
            headers={**VISITOR_HEADERS, "Content-Type": "application/json"},
        )
        assert resp.status_code == 201
        assert await count_logs("p1") == 1

        total = await client.get("/api/count")
        assert total.json() == {"adjustedTotalTime": 10_800_000}

    async def test_cors_echoes_origin(self, client):
        resp = await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)
        assert resp.headers["access-control-allow-origin"] == "https://cyoa.example"
        assert resp.headers["access-control-allow-credentials"] == "true"

    async def test_cors_without_origin(self, client):
        resp = await client.post("/api/log", json=CONCRETE, headers={"cf-connecting-ip": "203.0.113.7"})
        assert resp.status_code == 201
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "access-control-allow-credentials" not in resp.headers

    async def test_cors_on_rejection(self, client):
        resp = await client.post("/api/log", json={"projectId": "p1"}, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert resp.headers["access-control-allow-origin"] == "https://cyoa.example"

    async def test_store_failure_is_500(self, client):
        with patch(
            "cyoa_stats.services.ingestion.IngestionPipeline.ingest",
            new_callable=AsyncMock,
            side_effect=StoreFailure("disk I/O error"),
        ):
            resp = await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)
        assert resp.status_code == 500
        assert resp.text == "disk I/O error"

    async def test_preflight(self, client):
        resp = await client.options(
            "/api/log",
            headers={"Origin": "https://cyoa.example", "Access-Control-Request-Method": "POST"},
        )
        assert resp.status_code == 204
        assert resp.headers["access-control-allow-origin"] == "https://cyoa.example"
        assert resp.headers["access-control-allow-credentials"] == "true"
        assert "POST" in resp.headers["access-control-allow-methods"]


class TestLogCsp:
    async def test_accept(self, client, count_logs):
        resp = await client.get(
            "/api/log-csp",
            params={"projectId": "p1", "data": json.dumps(CONCRETE["data"])},
            headers=VISITOR_HEADERS,
        )
        assert resp.status_code == 201
        assert "no-store" in resp.headers["cache-control"]
        assert resp.headers["access-control-allow-origin"] == "https://cyoa.example"
        assert await count_logs("p1") == 1

    async def test_smaller_ceiling(self, client, count_logs):
        data = json.dumps(dict(CONCRETE["data"], padding="x" * (50 * 1024)))
        resp = await client.get("/api/log-csp", params={"projectId": "p1", "data": data}, headers=VISITOR_HEADERS)
        assert resp.status_code == 413
        assert "no-store" in resp.headers["cache-control"]
        assert await count_logs() == 0

    async def test_missing_data(self, client):
        resp = await client.get("/api/log-csp", params={"projectId": "p1"}, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert resp.text == "Bad Request: Missing projectId or data"

    async def test_invalid_json(self, client):
        resp = await client.get("/api/log-csp", params={"projectId": "p1", "data": "nope"}, headers=VISITOR_HEADERS)
        assert resp.status_code == 400
        assert resp.text == "Invalid JSON format"

    async def test_preflight_methods(self, client):
        resp = await client.options("/api/log-csp", headers={"Origin": "https://cyoa.example"})
        assert resp.status_code == 204
        assert resp.headers["access-control-allow-methods"] == "GET, OPTIONS"


class TestGetLog:
    async def _register(self, client, mock_mailer):
        resp = await client.get("/api/registration")
        assert resp.status_code == 200
        return resp.json()

    async def test_owner_sees_only_own_rows(self, client, mock_mailer):
        mine = await self._register(client, mock_mailer)
        theirs = await self._register(client, mock_mailer)

        for project, event in ((mine, "click"), (mine, "quit"), (theirs, "click")):
            data = dict(CONCRETE["data"], eventType=event)
            await client.post("/api/log", json={"projectId": project["project_id"], "data": data}, headers=VISITOR_HEADERS)

        resp = await client.get("/api/log", headers={"Authorization": f"Bearer {mine['secret_key']}"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert {r["project_id"] for r in body["results"]} == {mine["project_id"]}
        assert {r["event_type"] for r in body["results"]} == {"click", "quit"}

    async def test_wrong_secret(self, client, mock_mailer):
        project = await self._register(client, mock_mailer)
        await client.post("/api/log", json={"projectId": project["project_id"], "data": CONCRETE["data"]}, headers=VISITOR_HEADERS)

        resp = await client.get("/api/log", headers={"Authorization": "Bearer guessed"})
        assert resp.status_code == 401
        assert resp.text == "Unauthorized"

    async def test_no_header(self, client):
        resp = await client.get("/api/log")
        assert resp.status_code == 401


class TestCounts:
    async def test_total_time(self, client):
        data = dict(CONCRETE["data"], timeOnPage=99_000_000)
        await client.post("/api/log", json={"projectId": "p1", "data": data}, headers=VISITOR_HEADERS)
        await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)

        resp = await client.get("/api/count")
        assert resp.status_code == 200
        assert resp.json() == {"adjustedTotalTime": 10_800_000}
        assert resp.headers["cache-control"] == "public, max-age=600"

    async def test_visitors(self, client):
        await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)
        other = dict(CONCRETE, data=dict(CONCRETE["data"], eventType="quit"))
        await client.post("/api/log", json=other, headers={"cf-connecting-ip": "192.0.2.99"})

        resp = await client.get("/api/count/visitors")
        assert resp.json() == {"visitorCount": 2}

    async def test_projects(self, client, mock_mailer):
        await client.get("/api/registration")
        resp = await client.get("/api/count/projects")
        assert resp.json() == {"projectCount": 1}
        assert resp.headers["cache-control"] == "public, max-age=600"

    async def test_builds(self, client, sample_event):
        await client.post("/api/log", json={"projectId": "p1", "data": sample_event}, headers=VISITOR_HEADERS)
        resp = await client.get("/api/count/builds")
        assert resp.json() == {"buildCount": 1}


class TestRegistrationRoute:
    async def test_without_email(self, client, mock_mailer):
        resp = await client.get("/api/registration")
        assert resp.status_code == 200
        data = resp.json()
        assert data["project_id"]
        assert data["secret_key"]
        assert data["email_sent"] is False
        mock_mailer.assert_not_awaited()

    async def test_with_email(self, client, mock_mailer):
        resp = await client.get("/api/registration", params={"email": "owner@cyoa-fans.net"})
        assert resp.status_code == 200
        assert resp.json()["email_sent"] is True
        mock_mailer.assert_awaited_once()

    async def test_disposable_rejected(self, client, mock_mailer):
        resp = await client.get("/api/registration", params={"email": "x@yopmail.com"})
        assert resp.status_code == 400
        assert "Disposable" in resp.text
        mock_mailer.assert_not_awaited()


class TestAdminRoutes:
    async def test_hidden_by_default(self, client):
        resp = await client.get("/api/admin/projects")
        assert resp.status_code == 404

    async def test_projects(self, client, admin_enabled, mock_mailer):
        project = (await client.get("/api/registration")).json()
        await client.post("/api/log", json={"projectId": project["project_id"], "data": CONCRETE["data"]}, headers=VISITOR_HEADERS)

        resp = await client.get("/api/admin/projects")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["projects"][0]["sample_url"] == "https://x"

    async def test_logs_requires_project_id(self, client, admin_enabled):
        resp = await client.get("/api/admin/logs")
        assert resp.status_code == 400

    async def test_logs(self, client, admin_enabled):
        await client.post("/api/log", json=CONCRETE, headers=VISITOR_HEADERS)
        resp = await client.get("/api/admin/logs", params={"project_id": "p1"})
        assert resp.json()["total"] == 1

    async def test_correlations(self, client, admin_enabled, sample_event):
        for i, choices in enumerate((["a", "b"], ["a", "b", "c"], ["c"])):
            event = dict(sample_event, selectedChoices=choices, timestamp=f"t{i}")
            await client.post("/api/log", json={"projectId": "p1", "data": event}, headers=VISITOR_HEADERS)

        resp = await client.get("/api/admin/correlations", params={"project_id": "p1", "sort": "count"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["sessions"] == 3
        top = body["correlations"][0]
        assert (top["id_a"], top["id_b"], top["count"]) == ("a", "b", 2)

    async def test_correlations_unknown_sort(self, client, admin_enabled):
        resp = await client.get("/api/admin/correlations", params={"project_id": "p1", "sort": "median"})
        assert resp.status_code == 400
