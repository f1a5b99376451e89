from litestar import Controller, Request, get, post
from litestar.response import Response

from artverse.controllers.helpers import get_lifecycle, json_response
from artverse.schemas import DataExport


class DataController(Controller):
    """Bulk export and import of the persisted collections."""

    path = "/data"

    @get("/")
    async def export_data(self, request: Request) -> Response:
        export = await get_lifecycle(request).repository.export_data()
        return json_response(export.to_json())

    @post("/", status_code=200)
    async def import_data(self, request: Request, data: DataExport) -> Response:
        counts = await get_lifecycle(request).repository.import_data(data)
        return json_response({"success": True, "imported": counts})
