"""
Views component - read-side assembly of content, reactions and identities.
"""

from .component import (
    ReactionIndex,
    account_view,
    assemble_comments,
    assemble_item,
    assemble_listing,
    assemble_profile,
    assemble_projection,
    public_user_view,
)
from .models import (
    AccountView,
    BlogView,
    CommentAdminView,
    CommentView,
    ContentView,
    EventDetailView,
    EventView,
    ItemViewInput,
    ListingInput,
    ProfileInput,
    ProfileView,
    ProjectView,
    PublicUserView,
    ReactedBlogView,
    ReactedEventView,
    ReactedProjectView,
)

__all__ = [
    # Entry points
    "assemble_comments",
    "assemble_item",
    "assemble_listing",
    "assemble_profile",
    "assemble_projection",
    "account_view",
    "public_user_view",
    "ReactionIndex",
    # Input models
    "ItemViewInput",
    "ListingInput",
    "ProfileInput",
    # Views
    "AccountView",
    "BlogView",
    "CommentAdminView",
    "CommentView",
    "ContentView",
    "EventDetailView",
    "EventView",
    "ProfileView",
    "ProjectView",
    "PublicUserView",
    "ReactedBlogView",
    "ReactedEventView",
    "ReactedProjectView",
]
