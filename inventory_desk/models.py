from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def TimestampField(**kwargs):
    return Field(sa_type=DateTime(timezone=True), **kwargs)


class Role(str, Enum):
    staff = "staff"
    admin = "admin"


class ProductType(str, Enum):
    UPS = "UPS"
    AVR = "AVR"


class ItemStatus(str, Enum):
    new = "New"
    replaced = "Replaced"


class ItemSize(str, Enum):
    kva_1_5 = "1.5kva"
    kva_3 = "3kva"
    kva_6 = "6kva"
    kva_10 = "10kva"
    kva_20 = "20kva"
    kva_30 = "30kva"
    kva_40 = "40kva"
    kva_60 = "60kva"


class ToolStatus(str, Enum):
    draft = "draft"
    submitted = "submitted"
    approved = "approved"


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ReportStatus(str, Enum):
    pending = "Pending"
    in_progress = "In Progress"
    completed = "Completed"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    staff_id: str = Field(index=True, unique=True)
    password_hash: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Field(default=Role.staff)
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = TimestampField(default=None)

    # sha256 of the one-time reset token, never the token itself
    reset_token_hash: Optional[str] = None
    reset_token_expiry: Optional[datetime] = TimestampField(default=None)

    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
    updated_at: datetime = TimestampField(default_factory=utcnow)


class InventoryItem(SQLModel, table=True):
    __tablename__ = "inventory"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    product_type: ProductType
    status: ItemStatus = Field(default=ItemStatus.new)
    size: ItemSize
    serial_number: str = Field(index=True, unique=True)
    date: str
    location: str
    issued_by: str
    notes: Optional[str] = None
    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
    updated_at: datetime = TimestampField(default_factory=utcnow)


class Tool(SQLModel, table=True):
    """Toolbox talk form filled in before field work."""

    __tablename__ = "tools"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    status: ToolStatus = Field(default=ToolStatus.draft)
    work_activity: str
    date: str
    work_location: str
    name_company: str
    sign: Optional[str] = None
    ppe_no: Optional[str] = None
    tools_used: str
    hazards: Optional[str] = None
    circulars: Optional[str] = None
    risk_assessment: Optional[str] = None
    permit: Optional[str] = None
    remarks: Optional[str] = None
    prepared_by: str
    verified_by: Optional[str] = None
    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
    updated_at: datetime = TimestampField(default_factory=utcnow)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    assigned_to: int = Field(foreign_key="users.id", index=True)
    assigned_by: Optional[int] = Field(default=None, foreign_key="users.id")
    status: TaskStatus = Field(default=TaskStatus.pending, index=True)
    priority: TaskPriority = Field(default=TaskPriority.medium)
    due_date: Optional[str] = None
    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
    updated_at: datetime = TimestampField(default_factory=utcnow)


class Report(SQLModel, table=True):
    """Field job report filed after a site visit."""

    __tablename__ = "reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    job_description: Optional[str] = None
    location: Optional[str] = None
    remarks: Optional[str] = None
    report_date: Optional[str] = None
    report_time: Optional[str] = None
    tools_used: Optional[str] = None
    status: ReportStatus = Field(default=ReportStatus.pending, index=True)
    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
    updated_at: datetime = TimestampField(default_factory=utcnow)


class LoginLog(SQLModel, table=True):
    """One row per login attempt, successful or not."""

    __tablename__ = "login_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    # unknown staff ids have no user row
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    staff_id: str
    login_type: str = "unknown"
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool = Field(default=False, index=True)
    created_at: datetime = TimestampField(default_factory=utcnow, index=True)
