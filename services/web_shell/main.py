# Run:
# uvicorn services.web_shell.main:app --host 0.0.0.0 --port 21003 --reload
# Docs: http://127.0.0.1:21003/docs

"""
Routing shell: the static page table of the web app.

Every page answers with a JSON view model. Guarded pages read the caller
from the session store and redirect (307) instead of rendering when the
caller may not see them.
"""

import logging
import os
import sys
from typing import Optional

from fastapi import Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from common.complaint_types import ComplaintCategory
from common.constants import (
    BUILDING_OFFICE_PATTERN,
    MIN_PASSWORD_LENGTH,
    ROUTE_ADMIN_DASHBOARD,
    ROUTE_AUTH,
    ROUTE_HOME,
    ROUTE_STUDENT_DASHBOARD,
    ROUTE_SUBMIT,
    ROUTE_TRACK,
)
from libs.db import get_db
from libs.fastapi_service import (
    CORSMiddlewareConfig,
    FastAPIServiceFactory,
    ServiceAppConfig,
)
from services.complaints.main import track_complaint
from services.dashboard.main import admin_dashboard, student_dashboard
from services.identity.dependencies import optional_caller
from services.identity.roles import is_elevated
from services.identity.schemas import Caller

logger = logging.getLogger(__name__)

service_config = ServiceAppConfig(
    title="Web Shell",
    description="Page routes with session and role guards.",
    service_name="web_shell",
    cors_config=CORSMiddlewareConfig(),
)

factory = FastAPIServiceFactory(service_config)
app = factory.create_app()

NAV_LINKS = [
    {"label": "Home", "href": ROUTE_HOME},
    {"label": "Submit Complaint", "href": ROUTE_SUBMIT},
    {"label": "Track Status", "href": ROUTE_TRACK},
]

SUBMIT_FORM = {
    "fields": [
        {"name": "category", "type": "select", "required": True,
         "options": [c.value for c in ComplaintCategory]},
        {"name": "title", "type": "text", "required": True},
        {"name": "description", "type": "textarea", "required": True},
        {"name": "department", "type": "uuid", "required": False},
        {"name": "building_office", "type": "text", "required": False,
         "pattern": BUILDING_OFFICE_PATTERN},
        {"name": "anonymous", "type": "checkbox", "required": False,
         "label": "Submit Anonymously"},
    ],
    "action": "/v1/complaints/submit",
}


def _redirect(target: str) -> RedirectResponse:
    return RedirectResponse(url=target, status_code=307)


def _page(name: str, caller: Optional[Caller], **data) -> dict:
    return {
        "page": name,
        "nav": NAV_LINKS,
        "signed_in": caller is not None,
        **data,
    }


@app.get(ROUTE_HOME)
async def landing(caller: Optional[Caller] = Depends(optional_caller)):
    return _page(
        "landing",
        caller,
        actions=[
            {"label": "Submit a Complaint", "href": ROUTE_SUBMIT},
            {"label": "Track Complaint", "href": ROUTE_TRACK},
        ],
    )


@app.get(ROUTE_SUBMIT)
async def submit_page(caller: Optional[Caller] = Depends(optional_caller)):
    return _page("submit", caller, form=SUBMIT_FORM)


@app.get(ROUTE_TRACK)
async def track_page(
    id: Optional[str] = Query(None),
    caller: Optional[Caller] = Depends(optional_caller),
    db: AsyncSession = Depends(get_db),
):
    if not id or not id.strip():
        return _page("track", caller, query=None, result=None)
    result = await track_complaint(id=id, db=db)
    return _page("track", caller, query=id, result=result.model_dump(mode="json"))


@app.get(ROUTE_AUTH)
async def auth_page(caller: Optional[Caller] = Depends(optional_caller)):
    if caller is not None:
        return _redirect(caller.home_route)
    return _page(
        "auth",
        caller,
        tabs=["login", "signup"],
        password_min_length=MIN_PASSWORD_LENGTH,
    )


@app.get(ROUTE_STUDENT_DASHBOARD)
async def student_dashboard_page(
    caller: Optional[Caller] = Depends(optional_caller),
    db: AsyncSession = Depends(get_db),
):
    if caller is None:
        return _redirect(ROUTE_AUTH)
    data = await student_dashboard(caller=caller, db=db)
    return _page("student_dashboard", caller, dashboard=data.model_dump(mode="json"))


@app.get(ROUTE_ADMIN_DASHBOARD)
async def admin_dashboard_page(
    caller: Optional[Caller] = Depends(optional_caller),
    db: AsyncSession = Depends(get_db),
):
    if caller is None:
        return _redirect(ROUTE_AUTH)
    if not is_elevated(caller.roles):
        return _redirect(ROUTE_STUDENT_DASHBOARD)
    data = await admin_dashboard(caller=caller, db=db)
    return _page("admin_dashboard", caller, dashboard=data.model_dump(mode="json"))


# Registered last so every route above takes precedence
@app.get("/{path:path}", include_in_schema=False)
async def not_found(path: str):
    logger.warning("404 Error: User attempted to access non-existent route: /%s", path)
    return JSONResponse(
        status_code=404,
        content={
            "page": "not_found",
            "title": "404",
            "message": "Oops! Page not found",
            "links": [{"label": "Return to Home", "href": ROUTE_HOME}],
        },
    )
