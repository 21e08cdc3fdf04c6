from src.api.routes.content import build_content_router
from src.api.schemas import ProjectCreateRequest, ProjectUpdateRequest

router = build_content_router("project", ProjectCreateRequest, ProjectUpdateRequest)
