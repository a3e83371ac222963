"""API routers for the RYD portal."""

from ryd.routers import (
    account,
    admin_users,
    auth,
    dashboard,
    finance,
    pages,
    projects,
    resources,
    staff,
    tasks,
    teams,
)  # noqa: F401
