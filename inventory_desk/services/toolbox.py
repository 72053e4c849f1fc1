from inventory_desk.models import Tool
from inventory_desk.schemas import ToolRead
from inventory_desk.services.repository import Repository


class ToolRepository(Repository[Tool]):
    model = Tool
    read_schema = ToolRead
    resource = "tool"
    label = "Toolbox form"
    search_fields = ("work_activity", "work_location", "name_company", "prepared_by", "tools_used")
