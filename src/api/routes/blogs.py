from src.api.routes.content import build_content_router
from src.api.schemas import BlogCreateRequest, BlogUpdateRequest

router = build_content_router("blog", BlogCreateRequest, BlogUpdateRequest)
