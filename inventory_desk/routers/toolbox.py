from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_notifier, get_principal
from inventory_desk.models import ToolStatus
from inventory_desk.schemas import Message, Page, ToolCreate, ToolRead, ToolUpdate
from inventory_desk.services.notifier import Notifier
from inventory_desk.services.toolbox import ToolRepository

router = APIRouter(prefix="/api/toolbox", tags=["toolbox"])


def tool_repo(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ToolRepository:
    return ToolRepository(session, principal, notifier)


@router.post("", response_model=ToolRead, status_code=status.HTTP_201_CREATED)
def create_tool(data: ToolCreate, repo: ToolRepository = Depends(tool_repo)):
    return repo.create(data.model_dump())


@router.get("", response_model=Page[ToolRead])
def list_tools(
    q: Optional[str] = None,
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    tool_status: Optional[ToolStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: ToolRepository = Depends(tool_repo),
):
    return repo.list(owner_id=user_id, q=q, page=page, page_size=page_size, status=tool_status)


@router.get("/{tool_id}", response_model=ToolRead)
def get_tool(tool_id: int, repo: ToolRepository = Depends(tool_repo)):
    return repo.get(tool_id)


@router.put("/{tool_id}", response_model=ToolRead)
def update_tool(tool_id: int, data: ToolUpdate, repo: ToolRepository = Depends(tool_repo)):
    return repo.update(tool_id, data.model_dump(exclude_unset=True))


@router.delete("/{tool_id}", response_model=Message)
def delete_tool(tool_id: int, repo: ToolRepository = Depends(tool_repo)):
    repo.delete(tool_id)
    return {"message": "Toolbox form deleted successfully"}
