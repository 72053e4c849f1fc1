"""
Terminal dashboard for the Inventory Desk API.

``DashboardClient`` wraps the REST surface over any ``httpx.Client``
(the FastAPI ``TestClient`` included), ``watch_events`` follows the
realtime channel, and ``render_table`` prints rows the way the web
dashboard lays them out.
"""

import json
import logging
from typing import Any, AsyncIterator, Iterable, Sequence

import httpx
import websockets

logger = logging.getLogger(__name__)

RESOURCES = {
    "inventory": "/api/inventory",
    "toolbox": "/api/toolbox",
    "tasks": "/api/tasks",
    "reports": "/api/reports",
}

DEFAULT_COLUMNS = {
    "inventory": ["id", "productType", "status", "size", "serialNumber", "location", "issuedBy"],
    "toolbox": ["id", "status", "workActivity", "workLocation", "preparedBy", "date"],
    "tasks": ["id", "title", "status", "priority", "assignedTo", "dueDate"],
    "reports": ["id", "title", "status", "location", "reportDate", "userId"],
    "users": ["id", "staffId", "name", "role", "isActive", "lastLogin"],
}


class DashboardError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class DashboardClient:
    def __init__(self, http: httpx.Client):
        self.http = http
        self.token: str | None = None
        self.user: dict[str, Any] | None = None

    @classmethod
    def connect(cls, base_url: str, timeout: float = 10.0) -> "DashboardClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    # ---------- plumbing ----------

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        r = self.http.request(method, path, headers=self.headers, **kwargs)
        if r.is_success:
            return r.json()

        try:
            detail = r.json().get("detail", {})
        except ValueError:
            detail = {}
        if not isinstance(detail, dict):
            detail = {"message": str(detail)}
        raise DashboardError(
            r.status_code,
            detail.get("code", "HTTP_ERROR"),
            detail.get("message", r.reason_phrase),
        )

    @staticmethod
    def _path(resource: str) -> str:
        try:
            return RESOURCES[resource]
        except KeyError:
            raise ValueError(f"Unknown resource {resource!r}, expected one of {sorted(RESOURCES)}")

    # ---------- API ----------

    def login(self, staff_id: str, password: str) -> dict[str, Any]:
        data = self._request("POST", "/api/auth/login", json={"staffId": staff_id, "password": password})
        self.token = data["token"]
        self.user = data["user"]
        logger.info("Logged in as %s (%s)", self.user["staffId"], self.user["role"])
        return self.user

    def users(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/admin/users")

    def inventory_stats(self) -> dict[str, Any]:
        return self._request("GET", "/api/admin/inventory/stats")

    def overview(self) -> dict[str, Any]:
        return self._request("GET", "/api/admin/dashboard")

    def login_stats(self) -> dict[str, Any]:
        return self._request("GET", "/api/admin/login-stats")

    def list(self, resource: str, **params) -> dict[str, Any]:
        params = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", self._path(resource), params=params)

    def get(self, resource: str, item_id: int) -> dict[str, Any]:
        return self._request("GET", f"{self._path(resource)}/{item_id}")

    def create(self, resource: str, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", self._path(resource), json=fields)

    def update(self, resource: str, item_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"{self._path(resource)}/{item_id}", json=fields)

    def delete(self, resource: str, item_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"{self._path(resource)}/{item_id}")


def events_url(base_url: str, token: str) -> str:
    if base_url.startswith("https://"):
        ws_base = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        ws_base = "ws://" + base_url[len("http://"):]
    else:
        ws_base = base_url
    return f"{ws_base.rstrip('/')}/ws/events?token={token}"


async def watch_events(base_url: str, token: str) -> AsyncIterator[dict[str, Any]]:
    """Yield realtime events until the server closes the connection."""
    async with websockets.connect(events_url(base_url, token)) as ws:
        async for message in ws:
            yield json.loads(message)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def render_table(rows: Iterable[dict[str, Any]], columns: Sequence[str]) -> str:
    rows = [[_cell(row.get(c)) for c in columns] for row in rows]
    widths = [len(c) for c in columns]
    for row in rows:
        widths = [max(w, len(v)) for w, v in zip(widths, row)]

    def line(values):
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out = [line(columns), line(["-" * w for w in widths])]
    out.extend(line(row) for row in rows)
    if not rows:
        out.append("(no rows)")
    return "\n".join(out)
