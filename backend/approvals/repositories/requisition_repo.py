"""Requisition Repository - Read-only lookups into the host's requisitions"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..config.settings import settings
from ..utils.logger import get_logger
from ..utils.time import round_hours

logger = get_logger(__name__)


class RequisitionRepository:
    """
    Queries over requisitions that reference a workflow

    The requisition documents are owned by the procurement platform; this
    side only counts and aggregates them by `workflow_id` and `status`.
    """

    def __init__(self, collection: Optional[Collection] = None):
        self._requisitions: Collection = (
            collection if collection is not None else get_collection(settings.requisitions_collection)
        )

    def count_for_workflow(self, workflow_id: str) -> int:
        """Requisitions of any status referencing the workflow"""
        return self._requisitions.count_documents({"workflow_id": workflow_id})

    def count_active_for_workflow(
        self,
        workflow_id: str,
        statuses: Optional[List[str]] = None
    ) -> int:
        """Requisitions still moving through the workflow"""
        statuses = statuses or settings.active_requisition_statuses_list
        return self._requisitions.count_documents({
            "workflow_id": workflow_id,
            "status": {"$in": statuses}
        })

    def status_breakdown(self, workflow_id: str, since: datetime) -> Dict[str, Dict[str, Any]]:
        """Per-status count and amounts of requisitions created since `since`"""
        pipeline = [
            {"$match": {"workflow_id": workflow_id, "created_at": {"$gte": since}}},
            {"$group": {
                "_id": "$status",
                "count": {"$sum": 1},
                "avg_amount": {"$avg": "$estimated_cost"},
                "total_amount": {"$sum": "$estimated_cost"},
            }},
        ]

        result: Dict[str, Dict[str, Any]] = {}
        for doc in self._requisitions.aggregate(pipeline):
            result[doc["_id"]] = {
                "count": doc["count"],
                "avg_amount": doc.get("avg_amount"),
                "total_amount": doc.get("total_amount", 0),
            }
        return result

    def approval_time_stats(self, workflow_id: str) -> Optional[Dict[str, float]]:
        """Average / min / max hours from creation to approval"""
        pipeline = [
            {"$match": {
                "workflow_id": workflow_id,
                "status": "approved",
                "approved_at": {"$exists": True},
                "created_at": {"$exists": True},
            }},
            {"$project": {
                "hours": {"$divide": [{"$subtract": ["$approved_at", "$created_at"]}, 1000 * 60 * 60]}
            }},
            {"$group": {
                "_id": None,
                "avg_hours": {"$avg": "$hours"},
                "min_hours": {"$min": "$hours"},
                "max_hours": {"$max": "$hours"},
            }},
        ]

        docs = list(self._requisitions.aggregate(pipeline))
        if not docs:
            return None
        doc = docs[0]
        return {
            "avg_hours": round_hours(doc.get("avg_hours")),
            "min_hours": round_hours(doc.get("min_hours")),
            "max_hours": round_hours(doc.get("max_hours")),
        }
