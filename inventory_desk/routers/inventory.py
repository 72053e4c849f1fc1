from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlmodel import Session

from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_notifier, get_principal
from inventory_desk.models import ItemStatus, ProductType
from inventory_desk.schemas import InventoryCreate, InventoryRead, InventoryUpdate, Message, Page
from inventory_desk.services.export import inventory_workbook
from inventory_desk.services.inventory import InventoryRepository
from inventory_desk.services.notifier import Notifier

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def inventory_repo(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> InventoryRepository:
    return InventoryRepository(session, principal, notifier)


@router.post("", response_model=InventoryRead, status_code=status.HTTP_201_CREATED)
def create_item(data: InventoryCreate, repo: InventoryRepository = Depends(inventory_repo)):
    return repo.create(data.model_dump())


@router.get("", response_model=Page[InventoryRead])
def list_items(
    q: Optional[str] = Query(None, description="Search serial number, location, issuer or notes"),
    user_id: Optional[int] = Query(None, ge=1, alias="userId", description="Owner filter (admins)"),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    item_status: Optional[ItemStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: InventoryRepository = Depends(inventory_repo),
):
    return repo.list(
        owner_id=user_id,
        q=q,
        page=page,
        page_size=page_size,
        product_type=product_type,
        status=item_status,
    )


@router.get("/export.xlsx")
def export_items(
    q: Optional[str] = None,
    repo: InventoryRepository = Depends(inventory_repo),
):
    content = inventory_workbook(repo.all(q=q))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="inventory.xlsx"'},
    )


@router.get("/{item_id}", response_model=InventoryRead)
def get_item(item_id: int, repo: InventoryRepository = Depends(inventory_repo)):
    return repo.get(item_id)


@router.put("/{item_id}", response_model=InventoryRead)
def update_item(
    item_id: int,
    data: InventoryUpdate,
    repo: InventoryRepository = Depends(inventory_repo),
):
    return repo.update(item_id, data.model_dump(exclude_unset=True))


@router.delete("/{item_id}", response_model=Message)
def delete_item(item_id: int, repo: InventoryRepository = Depends(inventory_repo)):
    repo.delete(item_id)
    return {"message": "Inventory item deleted successfully"}
