"""Condition Evaluator - Safe evaluation of workflow conditions"""
import re
from numbers import Number
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..domain.models import Condition, RequisitionSubject
from ..domain.enums import ConditionOperator, LogicalOperator
from ..utils.logger import get_logger

logger = get_logger(__name__)

Subject = Union[RequisitionSubject, Mapping[str, Any]]


def _as_number(value: Any) -> Optional[float]:
    """Numeric view of a value, or None when it has none"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, Number):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def loose_equals(field_value: Any, compare_value: Any) -> bool:
    """Equality that lets numbers and numeric strings meet"""
    if field_value is None or compare_value is None:
        return field_value is None and compare_value is None
    if field_value == compare_value:
        return True
    if isinstance(field_value, str) and isinstance(compare_value, str):
        return False
    a, b = _as_number(field_value), _as_number(compare_value)
    if a is not None and b is not None:
        return a == b
    return False


def _ordered(comparator: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(field_value: Any, compare_value: Any) -> bool:
        if field_value is None or compare_value is None:
            return False
        if isinstance(field_value, str) and isinstance(compare_value, str):
            return comparator(field_value, compare_value)
        a, b = _as_number(field_value), _as_number(compare_value)
        if a is None or b is None:
            return False
        return comparator(a, b)
    return compare


def _contains(field_value: Any, compare_value: Any) -> bool:
    if not field_value:
        return False
    if isinstance(field_value, str):
        return compare_value is not None and str(compare_value) in field_value
    if isinstance(field_value, (list, tuple, set, frozenset)):
        return compare_value in field_value
    return False


def _in(field_value: Any, compare_value: Any) -> bool:
    return isinstance(compare_value, list) and field_value in compare_value


def _not_in(field_value: Any, compare_value: Any) -> bool:
    return isinstance(compare_value, list) and field_value not in compare_value


def _regex(field_value: Any, compare_value: Any) -> bool:
    if field_value is None or not isinstance(compare_value, str):
        return False
    try:
        return re.search(compare_value, str(field_value)) is not None
    except re.error as e:
        logger.warning(f"Invalid regex in condition: {compare_value!r} ({e})")
        return False


_OPERATORS: Dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQ: loose_equals,
    ConditionOperator.NEQ: lambda a, b: not loose_equals(a, b),
    ConditionOperator.GT: _ordered(lambda a, b: a > b),
    ConditionOperator.GTE: _ordered(lambda a, b: a >= b),
    ConditionOperator.LT: _ordered(lambda a, b: a < b),
    ConditionOperator.LTE: _ordered(lambda a, b: a <= b),
    ConditionOperator.CONTAINS: _contains,
    ConditionOperator.IN: _in,
    ConditionOperator.NOT_IN: _not_in,
    ConditionOperator.REGEX: _regex,
}


class ConditionEvaluator:
    """
    Evaluate condition lists against a subject record

    Uses a fixed operator table - no eval() or exec(). Conditions are folded
    left to right: each predicate is combined with the running result using
    the logical operator of the *previous* condition (AND for the first one).
    """

    def evaluate(
        self,
        conditions: Optional[List[Condition]],
        subject: Subject
    ) -> bool:
        """
        Evaluate a condition list

        Args:
            conditions: Ordered conditions; empty or None is vacuously true
            subject: Requisition subject or plain mapping of field values

        Returns:
            True if the folded result holds
        """
        if not conditions:
            return True

        context = self._context(subject)
        result = True
        joiner = LogicalOperator.AND

        for condition in conditions:
            predicate = self.evaluate_single(condition, context)
            if joiner == LogicalOperator.AND:
                result = result and predicate
            else:
                result = result or predicate
            joiner = condition.logical_operator

        return result

    def evaluate_single(self, condition: Condition, context: Mapping[str, Any]) -> bool:
        """Evaluate one predicate; unknown operators hold"""
        field_value = self._get_field_value(condition.field, context)
        compare = _OPERATORS.get(condition.operator)
        if compare is None:
            logger.warning(
                f"Unknown condition operator {condition.raw_operator!r} on field '{condition.field}', "
                "treating as satisfied"
            )
            return True
        return compare(field_value, condition.value)

    @staticmethod
    def _context(subject: Subject) -> Mapping[str, Any]:
        if isinstance(subject, RequisitionSubject):
            return subject.as_context()
        return subject or {}

    @staticmethod
    def _get_field_value(field_path: str, context: Mapping[str, Any]) -> Any:
        """
        Get field value from context, exact key first then dot notation

        Example: "specs.ram" -> context["specs"]["ram"]
        """
        if field_path in context:
            return context[field_path]

        value: Any = context
        for part in field_path.split("."):
            if isinstance(value, Mapping):
                value = value.get(part)
            else:
                return None
        return value
