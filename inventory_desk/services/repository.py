"""
Generic row-level CRUD shared by every resource.

A repository is built per request with the caller's ``Principal``. Staff
callers are confined to rows they own; admins are not. Updates and deletes
are single conditional statements keyed by id, so two requests racing on
the same row never read-modify-write each other's changes.
"""

import logging
import math
from enum import Enum
from typing import Any, ClassVar, Generic, Iterable, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, or_
from sqlalchemy import update as sa_update
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from inventory_desk.deps import Principal
from inventory_desk.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from inventory_desk.models import User, utcnow
from inventory_desk.schemas import APIModel
from inventory_desk.services.notifier import Notifier, NullNotifier

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)

MAX_PAGE_SIZE = 100


def plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class Repository(Generic[ModelT]):
    model: ClassVar[type[SQLModel]]
    read_schema: ClassVar[type[APIModel]]
    resource: ClassVar[str]
    label: ClassVar[str] = "Record"
    owner_field: ClassVar[str] = "user_id"
    search_fields: ClassVar[tuple[str, ...]] = ()
    # column name -> (error code, message) for unique constraint failures
    unique_messages: ClassVar[dict[str, tuple[str, str]]] = {}

    def __init__(self, session: Session, principal: Principal, notifier: Notifier | None = None):
        self.session = session
        self.principal = principal
        self.notifier = notifier or NullNotifier()

    # ---------- helpers ----------

    @property
    def owner_column(self):
        return getattr(self.model, self.owner_field)

    def serialize(self, row: ModelT) -> dict[str, Any]:
        return self.read_schema.model_validate(row).model_dump(mode="json", by_alias=True)

    def _scoped(self, stmt):
        if self.principal.is_admin:
            return stmt
        return stmt.where(self.owner_column == self.principal.user_id)

    def _check_owner(self, row: ModelT) -> None:
        if self.principal.is_admin:
            return
        if getattr(row, self.owner_field) != self.principal.user_id:
            logger.warning(
                "%s denied access to %s %s", self.principal.staff_id, self.resource, row.id
            )
            raise ForbiddenError(f"You do not have access to this {self.label.lower()}")

    def _resolve_owner(self, owner_id: int | None) -> int:
        if owner_id is None or owner_id == self.principal.user_id:
            return self.principal.user_id
        if not self.principal.is_admin:
            raise ForbiddenError(f"You can only create a {self.label.lower()} for yourself")

        owner = self.session.get(User, owner_id)
        if not owner or not owner.is_active:
            raise ValidationError(f"User {owner_id} does not exist")
        return owner_id

    def _conflict(self, exc: IntegrityError) -> ConflictError | ValidationError:
        text = str(exc.orig)
        if "unique" not in text.lower():
            # NOT NULL, foreign key and check failures are bad input, not conflicts
            logger.warning("%s rejected by the database: %s", self.resource, text)
            return ValidationError(f"{self.label} has invalid or missing fields")
        for column, (code, message) in self.unique_messages.items():
            if column in text:
                return ConflictError(message, code)
        return ConflictError(f"{self.label} conflicts with an existing record")

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise self._conflict(e) from e

    def _execute(self, stmt) -> int:
        """Run an UPDATE/DELETE in the session transaction, return affected rows."""
        try:
            result = self.session.connection().execute(stmt)
        except IntegrityError as e:
            self.session.rollback()
            raise self._conflict(e) from e
        return result.rowcount

    def _publish(self, action: str, payload: dict[str, Any]) -> None:
        event = f"{self.resource}:{action}"
        try:
            self.notifier.publish(event, payload)
        except Exception:
            # the row is already committed; a lost notification is acceptable
            logger.exception("Failed to publish %s", event)

    # ---------- CRUD ----------

    def create(self, fields: dict[str, Any]) -> ModelT:
        data = dict(fields)
        data[self.owner_field] = self._resolve_owner(data.get(self.owner_field))

        row = self.model(**data)
        self.session.add(row)
        self._commit()
        self.session.refresh(row)

        logger.info("%s created %s %s", self.principal.staff_id, self.resource, row.id)
        self._publish("created", self.serialize(row))
        return row

    def conditions(self, owner_id: int | None, q: str | None, filters: dict[str, Any]) -> list:
        conds = []
        if not self.principal.is_admin:
            if owner_id is not None and owner_id != self.principal.user_id:
                raise ForbiddenError("You can only list your own records")
            owner_id = self.principal.user_id
        if owner_id is not None:
            conds.append(self.owner_column == owner_id)

        q = (q or "").strip()
        if q and self.search_fields:
            conds.append(or_(*(getattr(self.model, f).contains(q) for f in self.search_fields)))

        for name, value in filters.items():
            if value is not None:
                conds.append(getattr(self.model, name) == value)
        return conds

    def list(
        self,
        *,
        owner_id: int | None = None,
        q: str | None = None,
        page: int = 1,
        page_size: int = 50,
        **filters: Any,
    ) -> dict[str, Any]:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        conds = self.conditions(owner_id, q, filters)

        count_stmt = select(func.count()).select_from(self.model)
        items_stmt = select(self.model)
        if conds:
            count_stmt = count_stmt.where(*conds)
            items_stmt = items_stmt.where(*conds)

        total = self.session.exec(count_stmt).one()
        items = self.session.exec(
            items_stmt.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()

        return {
            "items": items,
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": math.ceil(total / page_size),
        }

    def all(self, *, q: str | None = None, **filters: Any) -> Iterable[ModelT]:
        """Every visible row, oldest first (exports)."""
        stmt = select(self.model)
        conds = self.conditions(None, q, filters)
        if conds:
            stmt = stmt.where(*conds)
        return self.session.exec(stmt.order_by(self.model.id.asc())).all()

    def get(self, item_id: int) -> ModelT:
        row = self.session.get(self.model, item_id)
        if not row:
            raise NotFoundError(f"{self.label} not found")
        self._check_owner(row)
        return row

    def update(self, item_id: int, fields: dict[str, Any]) -> ModelT:
        row = self._write(item_id, fields)
        logger.info("%s updated %s %s", self.principal.staff_id, self.resource, item_id)
        self._publish("updated", self.serialize(row))
        return row

    def _write(self, item_id: int, fields: dict[str, Any]) -> ModelT:
        if not fields:
            raise ValidationError("No fields to update")
        columns = self.model.__table__.c
        for name, value in fields.items():
            if value is None and name in columns and not columns[name].nullable:
                raise ValidationError(f"{to_camel(name)} cannot be null")

        row = self.get(item_id)

        stmt = (
            sa_update(self.model)
            .where(self.model.id == item_id)
            .values(**fields, updated_at=utcnow())
        )
        if self._execute(self._scoped(stmt)) == 0:
            # deleted or reassigned between the read and the write
            self.session.rollback()
            raise NotFoundError(f"{self.label} not found")
        self._commit()
        self.session.refresh(row)
        return row

    def delete(self, item_id: int) -> dict[str, Any]:
        row = self.get(item_id)
        payload = {"id": row.id, "userId": getattr(row, self.owner_field)}

        stmt = sa_delete(self.model).where(self.model.id == item_id)
        if self._execute(self._scoped(stmt)) == 0:
            self.session.rollback()
            raise NotFoundError(f"{self.label} not found")
        self._commit()
        self.session.expunge(row)

        logger.info("%s deleted %s %s", self.principal.staff_id, self.resource, item_id)
        self._publish("deleted", payload)
        return payload
