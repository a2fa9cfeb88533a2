"""
Pytest Configuration and Fixtures

Shared fixtures: in-memory repositories, a wired WorkflowService and an
authenticated FastAPI test client.
"""
import os
import tempfile

# Settings are read once at import; keep test logs out of the working tree
os.environ.setdefault("LOGS_PATH", os.path.join(tempfile.gettempdir(), "approvals-test-logs"))
os.environ.setdefault("JWT_SECRET", "approvals-test-secret-0123456789abcdef")

import pytest  # noqa: E402

from approvals.domain.models import ActorContext  # noqa: E402
from approvals.services.workflow_service import WorkflowService  # noqa: E402

from .factories import COMPANY_ID, USER_ID  # noqa: E402
from .fakes import InMemoryRequisitionRepository, InMemoryWorkflowRepository  # noqa: E402


@pytest.fixture
def workflow_repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def requisition_repo() -> InMemoryRequisitionRepository:
    return InMemoryRequisitionRepository()


@pytest.fixture
def service(workflow_repo, requisition_repo) -> WorkflowService:
    return WorkflowService(repo=workflow_repo, requisitions=requisition_repo)


@pytest.fixture
def admin_actor() -> ActorContext:
    return ActorContext(
        user_id=USER_ID,
        company_id=COMPANY_ID,
        email="admin@example.com",
        display_name="Test Admin",
        role="admin",
    )


@pytest.fixture
def client(service, admin_actor):
    """TestClient with auth and the service wired to the in-memory repositories"""
    from fastapi.testclient import TestClient

    from approvals.api.deps import get_current_user_dep, get_workflow_service_dep
    from approvals.main import app

    app.dependency_overrides[get_current_user_dep] = lambda: admin_actor
    app.dependency_overrides[get_workflow_service_dep] = lambda: service
    # Not entered as a context manager: the lifespan would connect to MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()
