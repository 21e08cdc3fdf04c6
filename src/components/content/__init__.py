"""
Content component - blog, project and event lifecycle.
"""

from .component import (
    EDITABLE_FIELDS,
    run_create,
    run_declare_winner,
    run_delete,
    run_join_event,
    run_leave_event,
    run_set_event_image,
    run_update,
    validate_content,
)
from .models import (
    CreateContentInput,
    DeclareWinnerInput,
    DeleteContentInput,
    EventMembershipInput,
    SetEventImageInput,
    UpdateContentInput,
)
from .ports import BlobStorePort, ClockPort, ContentRepoPort

__all__ = [
    # Entry points
    "run_create",
    "run_declare_winner",
    "run_delete",
    "run_join_event",
    "run_leave_event",
    "run_set_event_image",
    "run_update",
    # Helpers
    "EDITABLE_FIELDS",
    "validate_content",
    # Input models
    "CreateContentInput",
    "DeclareWinnerInput",
    "DeleteContentInput",
    "EventMembershipInput",
    "SetEventImageInput",
    "UpdateContentInput",
    # Ports
    "BlobStorePort",
    "ClockPort",
    "ContentRepoPort",
]
