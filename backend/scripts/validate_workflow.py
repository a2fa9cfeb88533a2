"""
Validate an approval workflow and optionally dry run it

Usage:
    python -m scripts.validate_workflow --company C1 --workflow WF-6aaba4d2fb47
    python -m scripts.validate_workflow --file workflow.json --test-data '{"estimatedCost": 40000}'
"""
import argparse
import json
import os
import sys
from typing import Any, Dict

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approvals.domain.errors import DomainError  # noqa: E402
from approvals.domain.models import ApprovalWorkflow, RequisitionSubject  # noqa: E402
from approvals.engine import PathWalker, WorkflowGraphValidator  # noqa: E402


def load_workflow(args: argparse.Namespace) -> ApprovalWorkflow:
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            doc: Dict[str, Any] = json.load(f)
        doc.pop("_id", None)
        return ApprovalWorkflow.model_validate(doc)

    from approvals.repositories.workflow_repo import WorkflowRepository
    return WorkflowRepository().get_or_raise(args.workflow, args.company)


def summarize(workflow: ApprovalWorkflow) -> None:
    print(f"Workflow: {workflow.name} ({workflow.code or workflow.workflow_id})")
    print(f"   Version: {workflow.version}  Draft: {workflow.is_draft}  Active: {workflow.is_active}")
    print(f"   Priority: {workflow.priority}  SLA: {workflow.sla_hours}h")

    print(f"\nNODES ({len(workflow.nodes)}):")
    for node in workflow.nodes:
        node_type = node.type.value if node.type else "?"
        line = f"   [{node_type}] {node.id}: {node.name}"
        if node.approvers:
            line += f"  approvers={len(node.approvers)} min={node.min_approvals}"
        if node.type and node.type.value == "condition":
            line += f"  true->{node.true_branch} false->{node.false_branch}"
        print(line)

    print(f"\nCONNECTIONS ({len(workflow.connections)}):")
    for connection in workflow.connections:
        label = f" [{connection.condition}]" if connection.condition else ""
        print(f"   {connection.from_node} -> {connection.to}{label}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate an approval workflow graph")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--workflow", help="Workflow ID to load from MongoDB")
    source.add_argument("--file", help="Path to a workflow JSON document")
    parser.add_argument("--company", help="Company ID (required with --workflow)")
    parser.add_argument("--test-data", help="Requisition JSON to dry run the workflow with")
    args = parser.parse_args()

    if args.workflow and not args.company:
        parser.error("--company is required with --workflow")

    try:
        workflow = load_workflow(args)
    except DomainError as e:
        print(f"ERROR: {e.message}")
        return 1

    summarize(workflow)

    print()
    try:
        WorkflowGraphValidator().validate(workflow.nodes, workflow.connections)
        print("VALID: graph passes structural validation")
    except DomainError as e:
        print(f"INVALID: {e.message}")
        if e.details:
            print(f"   {json.dumps(e.details, default=str)}")
        return 1

    if args.test_data:
        subject = RequisitionSubject.model_validate(json.loads(args.test_data))
        try:
            result = PathWalker().compute_path(workflow, subject)
        except DomainError as e:
            print(f"DRY RUN FAILED: {e.message}")
            return 1

        print(f"\nDRY RUN: applies={result.applies} auto_approve={result.auto_approve} "
              f"steps={result.estimated_steps}")
        for i, step in enumerate(result.approval_path, start=1):
            print(f"   {i}. [{step.node_type.value if step.node_type else '?'}] {step.node_name}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
