"""Tests for approval path computation"""
import pytest

from approvals.domain.errors import MaxStepsExceededError
from approvals.domain.models import RequisitionSubject
from approvals.engine.path_walker import PathWalker

from ..factories import approval, branching_graph, condition, connect, make_workflow, node


@pytest.fixture
def walker():
    return PathWalker()


def cost(amount) -> RequisitionSubject:
    return RequisitionSubject(estimated_cost=amount)


def node_ids(result):
    return [step.node_id for step in result.approval_path]


class TestWalk:

    def test_linear_path_stops_before_end(self, walker):
        result = walker.compute_path(make_workflow(sla_hours=48), cost(100))

        assert node_ids(result) == ["start-1", "approval-1"]
        assert result.estimated_steps == 2
        assert result.sla_hours == 48
        assert result.approval_path[1].approvers[0].user_id == "u1"

    @pytest.mark.parametrize("amount,expected", [
        (40000, ["start", "check", "approval-a"]),
        (60000, ["start", "check", "approval-b"]),
    ])
    def test_condition_node_branches_on_subject(self, walker, amount, expected):
        workflow = make_workflow(**branching_graph())
        assert node_ids(walker.compute_path(workflow, cost(amount))) == expected

    def test_branch_to_unknown_node_ends_the_path(self, walker):
        workflow = make_workflow(
            nodes=[node("start", "start"), condition("check", "cost", "lt", 10, "ghost", "ghost"),
                   node("end", "end")],
            connections=connect(("start", "check")),
        )
        assert node_ids(walker.compute_path(workflow, cost(1))) == ["start", "check"]

    def test_first_connection_wins(self, walker):
        workflow = make_workflow(
            nodes=[node("start", "start"), approval("a1"), approval("a2"), node("end", "end")],
            connections=connect(("start", "a2"), ("start", "a1"), ("a1", "end"), ("a2", "end")),
        )
        assert node_ids(walker.compute_path(workflow, cost(1))) == ["start", "a2"]

    def test_no_start_node_gives_empty_path(self, walker):
        workflow = make_workflow(nodes=[node("end", "end")], connections=[])
        result = walker.compute_path(workflow, cost(1))

        assert result.approval_path == []
        assert result.estimated_steps == 0

    def test_cycle_raises(self, walker):
        workflow = make_workflow(
            nodes=[node("start", "start"), approval("a1"), approval("a2"), node("end", "end")],
            connections=connect(("start", "a1"), ("a1", "a2"), ("a2", "a1")),
        )

        with pytest.raises(MaxStepsExceededError) as excinfo:
            walker.compute_path(workflow, cost(1))
        assert excinfo.value.details["node_id"] == "a1"
        assert excinfo.value.http_status == 422

    def test_condition_branch_loop_raises(self, walker):
        workflow = make_workflow(
            nodes=[node("start", "start"), condition("check", "cost", "gt", 0, "check", "end"),
                   node("end", "end")],
            connections=connect(("start", "check")),
        )

        with pytest.raises(MaxStepsExceededError):
            walker.compute_path(workflow, cost(5))
        assert node_ids(walker.compute_path(workflow, cost(0))) == ["start", "check"]

    def test_repeated_runs_are_identical(self, walker):
        workflow = make_workflow(**branching_graph())
        subject = cost(40000)

        first = walker.compute_path(workflow, subject)
        second = walker.compute_path(workflow, subject)

        assert first == second
        assert subject.estimated_cost == 40000


class TestResultFlags:

    @pytest.mark.parametrize("amount,expected", [(5000, True), (10000, True), (15000, False), (None, False)])
    def test_auto_approve_threshold(self, walker, amount, expected):
        workflow = make_workflow(auto_approve_below=10000)
        assert walker.compute_path(workflow, cost(amount)).auto_approve is expected

    def test_zero_threshold_never_auto_approves(self, walker):
        workflow = make_workflow(auto_approve_below=0)
        assert walker.compute_path(workflow, cost(0)).auto_approve is False

    def test_applies_reflects_matcher(self, walker):
        workflow = make_workflow(categories=["Travel"])

        assert walker.compute_path(workflow, RequisitionSubject(category="Travel")).applies is True
        assert walker.compute_path(workflow, RequisitionSubject(category="IT")).applies is False

    def test_draft_still_walks_but_does_not_apply(self, walker):
        result = walker.compute_path(make_workflow(is_draft=True, apply_to_all=True), cost(1))

        assert result.applies is False
        assert node_ids(result) == ["start-1", "approval-1"]


class TestNextApprovers:

    def test_condition_node_yields_branch_approvers(self, walker):
        workflow = make_workflow(**branching_graph())

        assert [a.user_id for a in walker.next_approvers(workflow, "check", cost(100))] == ["ua"]
        assert [a.user_id for a in walker.next_approvers(workflow, "check", cost(90000))] == ["ub"]

    def test_approval_node_yields_own_approvers(self, walker):
        workflow = make_workflow(**branching_graph())
        assert [a.user_id for a in walker.next_approvers(workflow, "approval-b", cost(1))] == ["ub"]

    def test_other_or_unknown_nodes_yield_nothing(self, walker):
        workflow = make_workflow(**branching_graph())

        assert walker.next_approvers(workflow, "start", cost(1)) == []
        assert walker.next_approvers(workflow, "nope", cost(1)) == []
