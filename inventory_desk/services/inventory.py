from datetime import timedelta
from typing import Any

from sqlalchemy import func
from sqlmodel import select

from inventory_desk.models import InventoryItem, ItemStatus, ProductType, utcnow
from inventory_desk.schemas import InventoryRead
from inventory_desk.services.repository import Repository, plain


class InventoryRepository(Repository[InventoryItem]):
    model = InventoryItem
    read_schema = InventoryRead
    resource = "inventory"
    label = "Inventory item"
    search_fields = ("serial_number", "location", "issued_by", "notes")
    unique_messages = {"serial_number": ("SERIAL_EXISTS", "Serial number already exists")}

    def _count(self, *conds) -> int:
        stmt = select(func.count()).select_from(InventoryItem)
        if conds:
            stmt = stmt.where(*conds)
        return self.session.exec(stmt).one()

    def _distribution(self, column, limit: int | None = None) -> list[dict[str, Any]]:
        count = func.count().label("count")
        stmt = select(column, count).group_by(column).order_by(count.desc())
        if limit:
            stmt = stmt.limit(limit)
        return [{"value": plain(value), "count": n} for value, n in self.session.exec(stmt).all()]

    def stats(self) -> dict[str, Any]:
        """Dashboard counters over the whole table (admin view)."""
        week_ago = utcnow() - timedelta(days=7)
        return {
            "total_inventory": self._count(),
            "ups_count": self._count(InventoryItem.product_type == ProductType.UPS),
            "avr_count": self._count(InventoryItem.product_type == ProductType.AVR),
            "new_count": self._count(InventoryItem.status == ItemStatus.new),
            "replaced_count": self._count(InventoryItem.status == ItemStatus.replaced),
            "recent_activity": self._count(InventoryItem.created_at >= week_ago),
            "size_distribution": self._distribution(InventoryItem.size),
            "location_distribution": self._distribution(InventoryItem.location, limit=5),
            "generated_at": utcnow(),
        }
