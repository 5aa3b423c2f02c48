"""
Application-wide constants for the Ethereal Nexus backend.

This module contains all shared constants used across the application.
"""

import os

# ========= Service Configuration =========
# Service configuration: service_name -> (module_path, port)
SERVICES = {
    "identity": ("services.identity.main", 21000),
    "complaints": ("services.complaints.main", 21001),
    "dashboard": ("services.dashboard.main", 21002),
    "web_shell": ("services.web_shell.main", 21003),
}

# Docs service (service discovery)
DOCS_SERVICE = ("docs.main", 8080)

# ========= Auth Configuration =========
# Hosted auth service (GoTrue-compatible REST API)
AUTH_URL = os.getenv("AUTH_URL", "http://127.0.0.1:9999/auth/v1")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
ALGORITHMS = ["HS256"]

# Roles that unlock the administrative dashboard
ELEVATED_ROLES = frozenset({"admin", "ombudsperson", "department_officer"})

# Minimum password length accepted by sign-up and password change
MIN_PASSWORD_LENGTH = 6

# ========= Redis Configuration =========
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
# Note: REDIS_PASSWORD should be read from env in redis_client, not here (security)

# ========= Session Management Configuration =========
# Session key prefixes for Redis
SESSION_KEY_PREFIX = "nexus:session:"
USER_SESSIONS_KEY_PREFIX = "nexus:user_sessions:"

# Session TTL (7 days in seconds)
SESSION_TTL = int(os.getenv("SESSION_TTL", str(7 * 24 * 3600)))

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "nexus_sid")

# ========= Routes =========
ROUTE_HOME = "/"
ROUTE_SUBMIT = "/submit"
ROUTE_TRACK = "/track"
ROUTE_AUTH = "/auth"
ROUTE_STUDENT_DASHBOARD = "/dashboard/student"
ROUTE_ADMIN_DASHBOARD = "/dashboard/admin"

# ========= Complaint Workflow =========
# Submission retries on duplicate tracking ids
SUBMIT_MAX_ATTEMPTS = int(os.getenv("SUBMIT_MAX_ATTEMPTS", "3"))
SUBMIT_BACKOFF_MS = int(os.getenv("SUBMIT_BACKOFF_MS", "500"))

# Delay before the client navigates to the dashboard after a submission
SUBMIT_REDIRECT_DELAY_MS = int(os.getenv("SUBMIT_REDIRECT_DELAY_MS", "2000"))

# Number of complaints listed on the admin dashboard
ADMIN_DASHBOARD_PAGE_SIZE = int(os.getenv("ADMIN_DASHBOARD_PAGE_SIZE", "10"))

# Building / office free text: letters, digits, hyphens and spaces only
BUILDING_OFFICE_PATTERN = r"^[A-Za-z0-9\- ]+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^[\d\s\-\+\(\)]+$"

# ========= Postgres error codes =========
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
