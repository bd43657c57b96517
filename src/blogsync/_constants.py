"""Internal constants shared across the library."""

from enum import StrEnum

BASE_URL = "http://localhost:3000/api"
USER_AGENT = "blogsync"

SIGN_IN_PATH = "/signin"
HOME_PATH = "/"
DASHBOARD_PATH = "/dashboard"


class ResourceKind(StrEnum):
    """Paginated resources a stream can be bound to."""

    LATEST_BLOGS = "latest-blogs"
    SEARCH_BLOGS = "search-blogs"
    TAG_BLOGS = "tag-blogs"
    SEARCH_USERS = "search-users"
    PUBLISHED_BLOGS = "published-blogs"
    DRAFT_BLOGS = "draft-blogs"
    NOTIFICATIONS = "notifications"


BLOG_CATEGORIES: frozenset[str] = frozenset(
    {
        "technology",
        "programming",
        "science",
        "health",
        "business",
        "lifestyle",
        "education",
        "entertainment",
        "travel",
        "food",
        "sports",
        "finance",
        "art",
        "personal",
        "politics",
        "other",
    }
)

# ------------------------------------------------------------------
# URL filter encoding
# ------------------------------------------------------------------

#: Canonical serialization order of filter keys in the query string.
FILTER_KEYS: tuple[str, ...] = ("q", "tag", "category", "author")

NOTIFICATION_FILTER_ALL = "all"
