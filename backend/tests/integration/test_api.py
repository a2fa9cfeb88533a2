"""
API tests for the approval workflow routes

The service runs against in-memory repositories; see conftest.client.
"""
import jwt
import pytest

from approvals.api.deps import get_current_user_dep
from approvals.config.settings import settings
from approvals.domain.models import ActorContext
from approvals.main import app

from ..factories import COMPANY_ID, USER_ID, make_workflow

BASE = "/api/v1/approval-workflows"

GRAPH = {
    "nodes": [
        {"id": "start-1", "type": "start", "name": "Start"},
        {
            "id": "check",
            "type": "condition",
            "name": "Amount Check",
            "conditions": [{"field": "estimatedCost", "operator": "lt", "value": 50000}],
            "true_branch": "approval-low",
            "false_branch": "approval-high",
        },
        {"id": "approval-low", "type": "approval", "name": "Manager", "approvers": ["u1"]},
        {"id": "approval-high", "type": "approval", "name": "CFO", "approvers": ["u2"]},
        {"id": "end-1", "type": "end", "name": "End"},
    ],
    "connections": [
        {"from": "start-1", "to": "check"},
        {"from": "approval-low", "to": "end-1"},
        {"from": "approval-high", "to": "end-1"},
    ],
}


def _create(client, **body):
    resp = client.post(BASE, json={"name": "Purchases", **GRAPH, **body})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _error_code(resp):
    body = resp.json()
    assert body["success"] is False
    return body["error"]["code"]


class TestLifecycle:

    def test_create_without_nodes_is_skeleton_draft(self, client):
        resp = client.post(BASE, json={"name": "Empty"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Workflow created successfully"
        data = body["data"]
        assert data["is_draft"] is True
        assert data["code"] == "WF-0001"
        assert [n["id"] for n in data["nodes"]] == ["start-1", "end-1"]

    def test_create_requires_name(self, client):
        resp = client.post(BASE, json={"description": "no name"})

        assert resp.status_code == 400
        assert _error_code(resp) == "VALIDATION_ERROR"

    def test_create_rejects_invalid_graph(self, client):
        resp = client.post(BASE, json={"name": "Broken", "nodes": [{"id": "a", "type": "start", "name": "A"}]})

        assert resp.status_code == 400
        assert _error_code(resp) == "WORKFLOW_VALIDATION_ERROR"
        assert resp.json()["error"]["message"] == "Workflow must have at least one end node"

    def test_get_update_publish_delete(self, client):
        workflow_id = _create(client)["workflow_id"]

        resp = client.get(f"{BASE}/{workflow_id}")
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Purchases"

        resp = client.put(f"{BASE}/{workflow_id}", json={"priority": 2, "categories": ["IT"]})
        assert resp.status_code == 200
        assert resp.json()["data"]["priority"] == 2
        assert resp.json()["data"]["updated_by"] == USER_ID

        resp = client.post(f"{BASE}/{workflow_id}/publish")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert (data["is_draft"], data["version"]) == (False, "1.1")

        resp = client.post(f"{BASE}/{workflow_id}/publish")
        assert resp.status_code == 409
        assert _error_code(resp) == "INVALID_STATE"

        resp = client.delete(f"{BASE}/{workflow_id}")
        assert resp.status_code == 200
        assert client.get(f"{BASE}/{workflow_id}").status_code == 404

    def test_update_cannot_publish_draft(self, client):
        workflow_id = _create(client)["workflow_id"]

        resp = client.put(f"{BASE}/{workflow_id}", json={"is_draft": False})

        assert resp.status_code == 409
        assert _error_code(resp) == "INVALID_STATE"
        assert client.get(f"{BASE}/{workflow_id}").json()["data"]["is_draft"] is True

    def test_create_validates_camel_case_node_fields(self, client):
        nodes = [dict(n) for n in GRAPH["nodes"]]
        nodes[2] = {**nodes[2], "minApprovals": 5}

        resp = client.post(BASE, json={"name": "Camel", "nodes": nodes, "connections": GRAPH["connections"]})

        assert resp.status_code == 400
        assert _error_code(resp) == "WORKFLOW_VALIDATION_ERROR"
        assert resp.json()["error"]["message"] == "Minimum approvals must be between 1 and number of approvers"

    def test_unknown_workflow_is_404(self, client):
        resp = client.get(f"{BASE}/WF-missing")

        assert resp.status_code == 404
        assert _error_code(resp) == "WORKFLOW_NOT_FOUND"

    def test_clone_without_body(self, client):
        source = _create(client)

        resp = client.post(f"{BASE}/{source['workflow_id']}/clone")

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["name"] == "Purchases (Copy)"
        assert data["workflow_id"] != source["workflow_id"]

    def test_delete_blocked_by_requisitions(self, client, requisition_repo):
        workflow_id = _create(client)["workflow_id"]
        requisition_repo.add(workflow_id, "approved")

        resp = client.delete(f"{BASE}/{workflow_id}")

        assert resp.status_code == 409
        assert _error_code(resp) == "WORKFLOW_IN_USE"

    def test_publish_scope_conflict(self, client, workflow_repo):
        workflow_repo.create(make_workflow("WF-live", code="WF-0900", categories=["IT"]))
        workflow_id = _create(client, categories=["IT"])["workflow_id"]

        resp = client.post(f"{BASE}/{workflow_id}/publish")

        assert resp.status_code == 409
        assert _error_code(resp) == "SCOPE_CONFLICT"
        assert resp.json()["error"]["details"]["conflicting_workflow"]["workflow_id"] == "WF-live"


class TestQueries:

    def test_list_paginates_and_filters(self, client, workflow_repo):
        for i in range(3):
            _create(client, name=f"Draft {i}")
        workflow_repo.create(make_workflow("WF-live", code="WF-0900"))

        resp = client.get(BASE, params={"limit": 2})
        body = resp.json()
        assert resp.status_code == 200
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 4, "pages": 2}

        resp = client.get(BASE, params={"isDraft": "false"})
        assert [w["workflow_id"] for w in resp.json()["data"]] == ["WF-live"]

        resp = client.get(BASE, params={"search": "draft 1"})
        assert [w["name"] for w in resp.json()["data"]] == ["Draft 1"]

    def test_templates(self, client):
        resp = client.get(f"{BASE}/templates")

        assert resp.status_code == 200
        templates = resp.json()["data"]
        assert len(templates) == 3
        assert templates[0]["connections"][0] == {
            "from": "start-1", "to": "approval-1", "condition": None, "order": None
        }

    def test_applicable(self, client, workflow_repo):
        workflow_repo.create(make_workflow("WF-it", categories=["IT"], max_amount=10000))

        resp = client.get(f"{BASE}/applicable", params={"category": "IT", "estimatedCost": 500})
        assert resp.status_code == 200
        assert resp.json()["data"]["workflow_id"] == "WF-it"

        resp = client.get(f"{BASE}/applicable", params={"category": "IT", "estimatedCost": 50000})
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "No applicable workflow found"

    @pytest.mark.parametrize("payload_key", ["testData", "test_data"])
    @pytest.mark.parametrize("cost,last_node", [(40000, "approval-low"), (60000, "approval-high")])
    def test_dry_run(self, client, payload_key, cost, last_node):
        workflow_id = _create(client, auto_approve_below=1000)["workflow_id"]

        resp = client.post(f"{BASE}/{workflow_id}/test", json={payload_key: {"estimatedCost": cost}})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [s["node_id"] for s in data["approval_path"]] == ["start-1", "check", last_node]
        assert data["estimated_steps"] == 3
        assert data["auto_approve"] is False
        # drafts never apply
        assert data["applies"] is False

    def test_dry_run_rejects_malformed_test_data(self, client):
        workflow_id = _create(client)["workflow_id"]

        resp = client.post(f"{BASE}/{workflow_id}/test", json={"testData": {"estimatedCost": "abc"}})

        assert resp.status_code == 400
        assert _error_code(resp) == "VALIDATION_ERROR"
        errors = resp.json()["error"]["details"]["errors"]
        assert len(errors) == 1
        assert errors[0]["field"] in ("estimatedCost", "estimated_cost")

    def test_statistics(self, client, requisition_repo):
        workflow_id = _create(client)["workflow_id"]
        requisition_repo.add(workflow_id, "pending", estimated_cost=250)

        resp = client.get(f"{BASE}/{workflow_id}/statistics")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["active_requisitions"] == 1
        assert data["requisitions_by_status"]["pending"]["count"] == 1
        assert len(data["node_usage"]) == 5

    def test_health_does_not_need_auth(self, client, monkeypatch):
        from approvals.api.routes import workflows

        monkeypatch.setattr(workflows, "health_check", lambda: {"status": "healthy"})
        app.dependency_overrides.pop(get_current_user_dep)

        resp = client.get(f"{BASE}/health")
        assert resp.json()["status"] == "healthy"


class TestAuth:

    def test_non_admin_role_is_forbidden(self, client):
        app.dependency_overrides[get_current_user_dep] = lambda: ActorContext(
            user_id="viewer-1", company_id=COMPANY_ID, role="Employee"
        )

        resp = client.get(BASE)

        assert resp.status_code == 403
        assert _error_code(resp) == "PERMISSION_DENIED"

    def test_user_without_company_is_rejected(self, client):
        app.dependency_overrides[get_current_user_dep] = lambda: ActorContext(user_id="u", role="admin")

        resp = client.get(BASE)

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Company information is required"

    def test_missing_token_is_401(self, client):
        app.dependency_overrides.pop(get_current_user_dep)

        resp = client.get(BASE)

        assert resp.status_code == 401
        assert _error_code(resp) == "AUTHENTICATION_ERROR"

    def test_bad_token_is_401(self, client):
        app.dependency_overrides.pop(get_current_user_dep)

        resp = client.get(BASE, headers={"Authorization": "Bearer not-a-token"})

        assert resp.status_code == 401

    def test_signed_token_is_accepted(self, client):
        app.dependency_overrides.pop(get_current_user_dep)
        token = jwt.encode(
            {"sub": "user-9", "company": {"_id": COMPANY_ID}, "role": "admin", "email": "a@example.com"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        resp = client.get(BASE, headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 0

    def test_correlation_id_is_echoed(self, client):
        resp = client.get(BASE, headers={"X-Correlation-Id": "COR-test-1"})
        assert resp.headers["X-Correlation-Id"] == "COR-test-1"
