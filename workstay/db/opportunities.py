from datetime import UTC, datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.db.core import from_document, to_document, to_object_id, translate_errors
from workstay.db.schema import OPPORTUNITIES
from workstay.models.opportunity import Opportunity
from workstay.services.search import SearchPlan

_OBJECT_ID_FIELDS = ("hostId",)
_STATS = frozenset({"views", "applications", "bookmarks", "shares"})


def _load(doc: dict) -> Opportunity:
    return Opportunity.model_validate(from_document(doc, _OBJECT_ID_FIELDS))


class OpportunityRepository:
    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[OPPORTUNITIES]

    async def create(self, opportunity: Opportunity) -> Opportunity:
        now = datetime.now(UTC)
        opportunity = opportunity.model_copy(update={"created_at": now, "updated_at": now})
        with translate_errors("opportunities.create"):
            res = await self.collection.insert_one(to_document(opportunity, _OBJECT_ID_FIELDS))
        return opportunity.model_copy(update={"id": str(res.inserted_id)})

    async def get_by_id(self, opportunity_id: str) -> Opportunity | None:
        oid = to_object_id(opportunity_id, "opportunity id")
        with translate_errors("opportunities.get_by_id"):
            doc = await self.collection.find_one({"_id": oid})
        return _load(doc) if doc else None

    async def search(self, plan: SearchPlan) -> tuple[list[Opportunity], int]:
        """Run the page query and the count query for a search plan.

        The two queries are independent reads; under concurrent writes the
        total may not match the page exactly.
        """
        with translate_errors("opportunities.search"):
            total = await self.collection.count_documents(plan.count_query)
            cursor = self.collection.find(plan.query, plan.projection)
            if plan.sort:
                cursor = cursor.sort(plan.sort)
            cursor = cursor.skip(plan.offset)
            if plan.limit:
                cursor = cursor.limit(plan.limit)
            docs = await cursor.to_list(length=plan.limit or None)
        return [_load(d) for d in docs], total

    async def increment_stat(self, opportunity_id: str, stat: str, amount: int = 1) -> None:
        if stat not in _STATS:
            raise ValueError(f"unknown opportunity stat: {stat}")
        oid = to_object_id(opportunity_id, "opportunity id")
        with translate_errors("opportunities.increment_stat"):
            await self.collection.update_one({"_id": oid}, {"$inc": {f"stats.{stat}": amount}})
