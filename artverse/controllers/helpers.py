from litestar import Request
from litestar.response import Response

from artverse.lifecycle import LifecycleOrchestrator


def get_lifecycle(request: Request) -> LifecycleOrchestrator:
    """The orchestrator wired into application state at startup."""
    return request.app.state.lifecycle


def json_response(content: dict, status_code: int = 200) -> Response:
    return Response(content=content, status_code=status_code, media_type="application/json")
