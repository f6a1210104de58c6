"""
Integration tests for the monthly reporting API.

Exercises every router against the real DuckDB store configured by
conftest (temporary DB_PATH, TESTING=true) with JWTs minted by the app's
own auth module.
"""

import pytest
from fastapi.testclient import TestClient

from reporting.engine.report_lifecycle import ReportService
from reporting.main import app
from reporting.providers import StaticParticipantProvider
from reporting.services import get_report_service
from reporting.storage import get_storage

pytestmark = pytest.mark.integration

REPORTS = "/api/v1/reports"
METRICS = "/api/v1/metrics"


@pytest.fixture(autouse=True)
def clean_storage():
    """Each test starts from an empty store (storage persists across tests)."""
    storage = get_storage()
    if hasattr(storage, "clear_for_testing"):
        storage.clear_for_testing()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _create(client, headers, year=2024, month=3):
    response = client.post(f"{REPORTS}/period/{year}/{month}", headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


# =============================================================================
# System and auth
# =============================================================================


class TestSystem:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"] == "configured"

    def test_request_id_echoed(self, client, admin_headers):
        response = client.get(f"{REPORTS}/", headers={**admin_headers, "X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_missing_token(self, client):
        assert client.get(f"{REPORTS}/").status_code == 401

    def test_invalid_token(self, client):
        response = client.get(f"{REPORTS}/", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_board_member_cannot_write(self, client, board_headers):
        response = client.post(f"{REPORTS}/period/2024/3", headers=board_headers)
        assert response.status_code == 403


# =============================================================================
# Report lifecycle
# =============================================================================


class TestReportLifecycle:
    def test_create_is_idempotent(self, client, admin_headers):
        first = _create(client, admin_headers)
        second = _create(client, admin_headers)

        assert first["report_id"] == second["report_id"]
        assert first["label"] == "March 2024"
        assert first["created_by"] == "admin_user"

    def test_create_rejects_bad_month(self, client, admin_headers):
        response = client.post(f"{REPORTS}/period/2024/13", headers=admin_headers)
        assert response.status_code == 422

    def test_get_by_period_and_id(self, client, admin_headers):
        created = _create(client, admin_headers)

        by_period = client.get(f"{REPORTS}/period/2024/3", headers=admin_headers)
        by_id = client.get(f"{REPORTS}/{created['report_id']}", headers=admin_headers)

        assert by_period.json()["data"]["report_id"] == created["report_id"]
        assert by_id.json()["data"]["month"] == 3
        assert client.get(f"{REPORTS}/period/2024/4", headers=admin_headers).status_code == 404

    def test_update_group_parses_and_warns(self, client, admin_headers):
        report_id = _create(client, admin_headers)["report_id"]

        response = client.put(
            f"{REPORTS}/{report_id}/groups/call_metrics",
            headers=admin_headers,
            json={
                "inbound": "120",
                "outbound": "N/A",
                "missed_calls_percent": 10,
                "hung_up_prior_to_welcome": 2,
                "hung_up_within_10_seconds": 2,
                "missed_due_to_no_answer": 2,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["call_metrics"]["inbound"] == 120
        assert body["data"]["call_metrics"]["outbound"] is None
        assert len(body["warnings"]) == 1

    def test_update_unknown_group(self, client, admin_headers):
        report_id = _create(client, admin_headers)["report_id"]
        response = client.put(f"{REPORTS}/{report_id}/groups/payroll", headers=admin_headers, json={})
        assert response.status_code == 422

    def test_update_missing_report(self, client, admin_headers):
        response = client.put(
            f"{REPORTS}/report_missing/groups/donor_data",
            headers=admin_headers,
            json={"new_donors": 2},
        )
        assert response.status_code == 404

    def test_financials(self, client, admin_headers):
        report_id = _create(client, admin_headers)["report_id"]

        response = client.put(
            f"{REPORTS}/{report_id}/financials",
            headers=admin_headers,
            json={"beginning_balance": "1,000", "ending_balance": 1500},
        )

        financial = response.json()["data"]["financial_data"]
        assert financial["beginning_balance"] == 1000
        assert financial["difference"] == 500

    def test_override_set_and_clear(self, client, admin_headers):
        report_id = _create(client, admin_headers)["report_id"]

        set_response = client.put(
            f"{REPORTS}/{report_id}/overrides/contacted",
            headers=admin_headers,
            json={"value": 7},
        )
        contacted = set_response.json()["data"]["bridge_team_metrics"]["status_counts"]["contacted"]
        assert contacted["manual_override"] == 7

        clear_response = client.delete(
            f"{REPORTS}/{report_id}/overrides/contacted", headers=admin_headers
        )
        contacted = clear_response.json()["data"]["bridge_team_metrics"]["status_counts"]["contacted"]
        assert contacted["manual_override"] is None

    def test_post_twice_conflicts(self, client, admin_headers):
        report_id = _create(client, admin_headers)["report_id"]

        first = client.post(f"{REPORTS}/{report_id}/post", headers=admin_headers)
        second = client.post(f"{REPORTS}/{report_id}/post", headers=admin_headers)

        assert first.status_code == 200
        assert first.json()["data"]["is_posted"] is True
        assert second.status_code == 409

        stored = client.get(f"{REPORTS}/{report_id}", headers=admin_headers).json()["data"]
        assert stored["posted_at"] == first.json()["data"]["posted_at"]

    def test_create_year(self, client, admin_headers):
        response = client.post(f"{REPORTS}/year/2025", headers=admin_headers)

        assert response.json()["data"]["total"] == 12
        listed = client.get(f"{REPORTS}/", params={"year": 2025}, headers=admin_headers)
        assert listed.json()["data"]["total"] == 12


# =============================================================================
# Visibility
# =============================================================================


class TestVisibility:
    def test_board_sees_posted_only(self, client, admin_headers, board_headers):
        draft = _create(client, admin_headers, month=2)
        posted = _create(client, admin_headers, month=3)
        client.post(f"{REPORTS}/{posted['report_id']}/post", headers=admin_headers)

        listed = client.get(f"{REPORTS}/", headers=board_headers).json()["data"]
        assert [r["report_id"] for r in listed["reports"]] == [posted["report_id"]]

        hidden = client.get(f"{REPORTS}/{draft['report_id']}", headers=board_headers)
        assert hidden.status_code == 404

        latest = client.get(f"{REPORTS}/posted/latest", headers=board_headers).json()["data"]
        assert latest["report_id"] == posted["report_id"]

    def test_latest_posted_is_null_when_none(self, client, board_headers):
        response = client.get(f"{REPORTS}/posted/latest", headers=board_headers)
        assert response.json()["data"] is None

    def test_category_restrictions(self, client, admin_headers, restricted_headers):
        report_id = _create(client, admin_headers)["report_id"]
        client.post(f"{REPORTS}/{report_id}/post", headers=admin_headers)

        body = client.get(f"{REPORTS}/{report_id}", headers=restricted_headers).json()["data"]

        assert "call_metrics" in body
        assert "financial_data" in body
        assert "donor_data" not in body
        assert "bridge_team_metrics" not in body

    def test_metrics_preview_requires_category(self, client, restricted_headers):
        response = client.get(f"{METRICS}/bridge-team/2024/3", headers=restricted_headers)
        assert response.status_code == 403


# =============================================================================
# Aggregation, comparison and category view
# =============================================================================


class TestAnalytics:
    def _seed_balances(self, client, headers):
        for month, (beginning, ending) in ((1, (100, 150)), (2, (200, 300))):
            report_id = _create(client, headers, month=month)["report_id"]
            client.put(
                f"{REPORTS}/{report_id}/financials",
                headers=headers,
                json={"beginning_balance": beginning, "ending_balance": ending},
            )

    def test_aggregate_average(self, client, admin_headers):
        self._seed_balances(client, admin_headers)

        response = client.get(
            f"{REPORTS}/aggregate",
            params={"start_month": 1, "start_year": 2024, "end_month": 2, "end_year": 2024, "mode": "average"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["status"] == "ok"
        assert data["report_count"] == 2
        assert data["financials"]["beginning_balance"]["value"] == 100
        assert data["financials"]["ending_balance"]["value"] == 300
        assert data["financials"]["difference"] == 200

    def test_aggregate_empty_range(self, client, admin_headers):
        response = client.get(
            f"{REPORTS}/aggregate",
            params={"start_month": 1, "start_year": 2020, "end_month": 12, "end_year": 2020},
            headers=admin_headers,
        )
        data = response.json()["data"]
        assert data["status"] == "no_data"
        assert data["report_count"] == 0

    def test_aggregate_rejects_reversed_range(self, client, admin_headers):
        response = client.get(
            f"{REPORTS}/aggregate",
            params={"start_month": 5, "start_year": 2024, "end_month": 1, "end_year": 2024},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_comparison(self, client, admin_headers):
        feb = _create(client, admin_headers, month=2)["report_id"]
        mar = _create(client, admin_headers, month=3)["report_id"]
        for report_id, value in ((feb, 12), (mar, 9)):
            client.put(
                f"{REPORTS}/{report_id}/groups/call_metrics",
                headers=admin_headers,
                json={"missed_calls_percent": value},
            )

        data = client.get(
            f"{REPORTS}/{mar}/comparison/call_metrics.missed_calls_percent",
            headers=admin_headers,
        ).json()["data"]

        assert data["status"] == "ok"
        assert data["diff"] == -3
        assert data["polarity"] == "lower_better"
        assert data["is_favorable"] is True

    def test_comparison_unavailable(self, client, admin_headers):
        report_id = _create(client, admin_headers, month=1)["report_id"]

        data = client.get(
            f"{REPORTS}/{report_id}/comparison/call_metrics.inbound",
            params={"current_value": 50},
            headers=admin_headers,
        ).json()["data"]

        assert data["status"] == "unavailable"
        assert data["previous_period"] == "2023-12"
        assert data["is_favorable"] is None

    def test_category_grid(self, client, admin_headers):
        client.post(f"{REPORTS}/year/2024", headers=admin_headers)
        for month, value in ((1, "10"), (2, "N/A"), (3, "20")):
            response = client.put(
                f"{REPORTS}/categories/2024/{month}/donor_data/checks",
                headers=admin_headers,
                json={"value": value},
            )
            assert response.status_code == 200

        data = client.get(
            f"{REPORTS}/categories/donor_data/checks",
            params={"year": 2024},
            headers=admin_headers,
        ).json()["data"]

        assert data["total"] == 30
        assert data["average"] == 15
        assert data["count"] == 2
        assert data["months"]["2"] is None

    def test_category_grid_rejects_derived_group(self, client, admin_headers):
        response = client.get(
            f"{REPORTS}/categories/bridge_team_metrics/contacted",
            params={"year": 2024},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_category_grid_rejects_unknown_field(self, client, admin_headers):
        client.post(f"{REPORTS}/period/2024/3", headers=admin_headers)

        response = client.get(
            f"{REPORTS}/categories/donor_data/bogus",
            params={"year": 2024},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert "bogus" in response.json()["detail"]


# =============================================================================
# Derived metrics
# =============================================================================


class TestDerivedMetrics:
    def test_participants_feed_derived_metrics(self, client, admin_headers):
        participants = [
            {
                "participant_id": "p1",
                "first_name": "Ana",
                "submitted_at": "2024-03-04T09:00:00",
                "history": [
                    {
                        "type": "status_change",
                        "created_at": "2024-03-09T09:00:00",
                        "metadata": {"newStatus": "bridge_contacted"},
                    }
                ],
            },
            {
                "participant_id": "p2",
                "first_name": "Ben",
                "submitted_at": "2024-03-06T10:00:00",
                "assigned_to_mentor_at": "2024-03-20T10:00:00",
            },
        ]
        loaded = client.put(f"{METRICS}/participants", headers=admin_headers, json=participants)
        assert loaded.json()["data"]["participants_written"] == 2

        bridge = client.get(f"{METRICS}/bridge-team/2024/3", headers=admin_headers).json()["data"]
        assert bridge["participants_received"]["auto_calculated"] == 2
        assert bridge["status_counts"]["contacted"]["auto_calculated"] == 1
        assert bridge["average_days_to_first_outreach"]["auto_calculated"] == 5
        assert bridge["forms_by_day_of_week"]["top_day"] == "Monday"
        assert bridge["auto_calculated"] is True

        mentorship = client.get(f"{METRICS}/mentorship/2024/3", headers=admin_headers).json()["data"]
        assert mentorship["participants_assigned_to_mentorship"] == 1

        report = _create(client, admin_headers)
        assert report["bridge_team_metrics"]["participants_received"]["auto_calculated"] == 2

    def test_invalid_month(self, client, admin_headers):
        response = client.get(f"{METRICS}/mentorship/2024/0", headers=admin_headers)
        assert response.status_code == 422


# =============================================================================
# No store configured
# =============================================================================


class TestStoreUnavailable:
    @pytest.fixture(autouse=True)
    def offline(self):
        app.dependency_overrides[get_report_service] = lambda: ReportService(
            store=None, participants=StaticParticipantProvider()
        )

    def test_reads_are_empty(self, client, admin_headers):
        response = client.get(f"{REPORTS}/", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["reports"] == []

    def test_writes_are_unavailable(self, client, admin_headers):
        response = client.post(f"{REPORTS}/period/2024/3", headers=admin_headers)
        assert response.status_code == 503
