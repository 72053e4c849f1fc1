from typing import Any

from inventory_desk.errors import ValidationError
from inventory_desk.models import Role, User
from inventory_desk.schemas import UserRead
from inventory_desk.services.credentials import CredentialStore
from inventory_desk.services.repository import Repository


class UserRepository(Repository[User]):
    """Account administration. Accounts are disabled, never removed."""

    model = User
    read_schema = UserRead
    resource = "user"
    label = "User"
    # a staff member only "owns" their own account row
    owner_field = "id"
    search_fields = ("staff_id", "name", "email")
    unique_messages = {"staff_id": ("STAFF_ID_EXISTS", "Staff ID already exists")}

    def create(self, fields: dict[str, Any]) -> User:
        data = dict(fields)
        user = CredentialStore(self.session).create_user(
            data.pop("staff_id"),
            data.pop("password"),
            role=data.pop("role", Role.staff),
            **data,
        )
        self._publish("created", self.serialize(user))
        return user

    def update(self, user_id: int, fields: dict[str, Any]) -> User:
        if user_id == self.principal.user_id:
            if fields.get("is_active") is False:
                raise ValidationError("You cannot disable your own account")
            if "role" in fields and fields["role"] != self.principal.role:
                raise ValidationError("You cannot change your own role")
        return super().update(user_id, fields)

    def reset_password(self, user_id: int, new_password: str) -> User:
        user = self.get(user_id)
        CredentialStore(self.session).set_password(user, new_password)
        return user

    def delete(self, user_id: int) -> dict[str, Any]:
        """Soft delete: the row stays for audit and ownership history."""
        if user_id == self.principal.user_id:
            raise ValidationError("You cannot disable your own account")
        user = self._write(user_id, {"is_active": False})
        payload = {"id": user.id, "userId": user.id}
        self._publish("deleted", payload)
        return payload
