"""
Seed Data Script - Creates and publishes a sample approval workflow
Run: python -m scripts.seed_data --company C1 --user U1
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approvals.repositories.mongo_client import create_indexes  # noqa: E402
from approvals.repositories.workflow_repo import WorkflowRepository  # noqa: E402
from approvals.services.workflow_service import WorkflowService  # noqa: E402


def seed(company_id: str, user_id: str) -> None:
    """Create the standard procurement template as a published workflow"""
    create_indexes()
    service = WorkflowService()

    template = next(t for t in service.list_templates() if t.template_id == "template-standard")
    name = "Sample Standard Procurement"

    if WorkflowRepository().name_exists(company_id, name, is_draft=None):
        print("Sample workflow already exists. Skipping seed.")
        return

    nodes = [node.model_dump() for node in template.nodes]
    for node in nodes:
        if node["type"] in ("approval", "parallel"):
            node["approvers"] = [{"user_id": user_id, "role": "Management"}]

    fields = dict(template.settings)
    fields.update(
        name=name,
        description=template.description,
        nodes=nodes,
        connections=[c.model_dump() for c in template.connections],
        apply_to_all=True,
    )

    workflow = service.create_workflow(company_id, user_id, fields)
    workflow = service.publish_workflow(workflow.workflow_id, company_id, published_by=user_id)

    print(f"Created workflow {workflow.code} ({workflow.workflow_id}) version {workflow.version}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a sample approval workflow")
    parser.add_argument("--company", required=True, help="Company ID to seed")
    parser.add_argument("--user", required=True, help="User ID recorded as creator and approver")
    args = parser.parse_args()
    seed(args.company, args.user)
