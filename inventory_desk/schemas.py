from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_desk.models import (
    ItemSize,
    ItemStatus,
    ProductType,
    ReportStatus,
    Role,
    TaskPriority,
    TaskStatus,
    ToolStatus,
)

T = TypeVar("T")


class APIModel(BaseModel):
    # camelCase on the wire, snake_case accepted too
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# ---------- auth / users ----------

class LoginRequest(APIModel):
    staff_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("staffId", "staff_id", "staffid"),
    )
    password: str = Field(min_length=1)


class UserRead(APIModel):
    id: int
    staff_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class LoginResponse(APIModel):
    token: str
    token_type: str = "bearer"
    user: UserRead


class Token(BaseModel):
    # OAuth2 form login answers in the OAuth2 field names
    access_token: str
    token_type: str = "bearer"


class RegisterRequest(APIModel):
    staff_id: str = Field(min_length=1, max_length=50)
    password: str
    name: Optional[str] = None
    email: Optional[str] = None


class UserCreate(RegisterRequest):
    role: Role = Role.staff


class UserUpdate(APIModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class ProfileUpdate(APIModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PasswordChange(APIModel):
    current_password: str
    new_password: str


class ResetRequest(APIModel):
    staff_id: str = Field(min_length=1)


class ResetRequested(APIModel):
    message: str
    reset_token: Optional[str] = None


class ResetPassword(APIModel):
    staff_id: str = Field(min_length=1)
    token: str = Field(min_length=1)
    new_password: str


class AdminPasswordReset(APIModel):
    new_password: str


class Message(APIModel):
    message: str


# ---------- pagination ----------

class Page(APIModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    pages: int


# ---------- inventory ----------

class InventoryCreate(APIModel):
    product_type: ProductType
    status: ItemStatus = ItemStatus.new
    size: ItemSize
    serial_number: str = Field(min_length=1, max_length=100)
    date: str = Field(min_length=1)
    location: str = Field(min_length=1)
    issued_by: str = Field(min_length=1)
    notes: Optional[str] = None
    # admins may record an item on behalf of someone else
    user_id: Optional[int] = None


class InventoryUpdate(APIModel):
    product_type: Optional[ProductType] = None
    status: Optional[ItemStatus] = None
    size: Optional[ItemSize] = None
    serial_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    issued_by: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None


class InventoryRead(APIModel):
    id: int
    user_id: int
    product_type: ProductType
    status: ItemStatus
    size: ItemSize
    serial_number: str
    date: str
    location: str
    issued_by: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CountBucket(APIModel):
    value: Optional[str] = None
    count: int


class InventoryStats(APIModel):
    total_inventory: int
    ups_count: int
    avr_count: int
    new_count: int
    replaced_count: int
    recent_activity: int
    size_distribution: list[CountBucket]
    location_distribution: list[CountBucket]
    generated_at: datetime


# ---------- toolbox ----------

class ToolCreate(APIModel):
    status: ToolStatus = ToolStatus.draft
    work_activity: str = Field(min_length=1)
    date: str = Field(min_length=1)
    work_location: str = Field(min_length=1)
    name_company: str = Field(min_length=1)
    sign: Optional[str] = None
    ppe_no: Optional[str] = None
    tools_used: str = Field(min_length=1)
    hazards: Optional[str] = None
    circulars: Optional[str] = None
    risk_assessment: Optional[str] = None
    permit: Optional[str] = None
    remarks: Optional[str] = None
    prepared_by: str = Field(min_length=1)
    verified_by: Optional[str] = None
    user_id: Optional[int] = None


class ToolUpdate(APIModel):
    status: Optional[ToolStatus] = None
    work_activity: Optional[str] = Field(default=None, min_length=1)
    date: Optional[str] = Field(default=None, min_length=1)
    work_location: Optional[str] = Field(default=None, min_length=1)
    name_company: Optional[str] = Field(default=None, min_length=1)
    sign: Optional[str] = None
    ppe_no: Optional[str] = None
    tools_used: Optional[str] = Field(default=None, min_length=1)
    hazards: Optional[str] = None
    circulars: Optional[str] = None
    risk_assessment: Optional[str] = None
    permit: Optional[str] = None
    remarks: Optional[str] = None
    prepared_by: Optional[str] = Field(default=None, min_length=1)
    verified_by: Optional[str] = None


class ToolRead(APIModel):
    id: int
    user_id: int
    status: ToolStatus
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
    created_at: datetime
    updated_at: datetime


# ---------- tasks ----------

class TaskCreate(APIModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[str] = None


class TaskUpdate(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None


class TaskRead(APIModel):
    id: int
    title: str
    description: Optional[str] = None
    assigned_to: int
    assigned_by: Optional[int] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskCounts(APIModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0


# ---------- reports ----------

class ReportCreate(APIModel):
    title: str = Field(min_length=1, max_length=200)
    job_description: Optional[str] = None
    location: Optional[str] = None
    remarks: Optional[str] = None
    report_date: Optional[str] = None
    report_time: Optional[str] = None
    tools_used: Optional[str] = None
    status: ReportStatus = ReportStatus.pending
    user_id: Optional[int] = None


class ReportUpdate(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    job_description: Optional[str] = None
    location: Optional[str] = None
    remarks: Optional[str] = None
    report_date: Optional[str] = None
    report_time: Optional[str] = None
    tools_used: Optional[str] = None
    status: Optional[ReportStatus] = None


class ReportStatusUpdate(APIModel):
    status: ReportStatus


class ReportRead(APIModel):
    id: int
    user_id: int
    title: str
    job_description: Optional[str] = None
    location: Optional[str] = None
    remarks: Optional[str] = None
    report_date: Optional[str] = None
    report_time: Optional[str] = None
    tools_used: Optional[str] = None
    status: ReportStatus
    created_at: datetime
    updated_at: datetime


class ReportSummary(APIModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0


class MonthCount(APIModel):
    month: str
    count: int


# ---------- admin dashboard ----------

class DashboardOverview(APIModel):
    reports: int
    inventory: int
    toolbox: int
    tasks: int
    in_progress: int
    completed: int
    total_users: int
    today_logins: int
    generated_at: datetime


class DayCount(APIModel):
    date: str
    count: int


class LoginStats(APIModel):
    today_logins: int
    today_failed_logins: int
    today_logins_by_type: list[CountBucket]
    weekly_logins: list[DayCount]


# ---------- misc ----------

class Health(APIModel):
    status: str
    timestamp: datetime
    uptime: float
    environment: str
    database: str
