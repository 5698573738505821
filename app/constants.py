"""
Constants for role slugs and permission catalogue
"""

# Role slugs (seeded system roles)
ROLE_SUPER_ADMIN = "super-admin"
ROLE_HR_MANAGER = "hr-manager"
ROLE_MANAGER = "manager"
ROLE_EMPLOYEE = "employee"

# Role assigned on self-registration
DEFAULT_ROLE_SLUG = ROLE_EMPLOYEE

# Roles that hold every capability without explicit grants
UNRESTRICTED_ROLE_SLUGS = frozenset({ROLE_SUPER_ADMIN})

# Actions that only make sense on workflow resources
WORKFLOW_ACTIONS = ("approve", "reject")
WORKFLOW_RESOURCES = ("leave", "application")

# Default departments created on bootstrap: (code, name, description)
DEFAULT_DEPARTMENTS = (
    ("IT", "Information Technology", "IT and software development"),
    ("HR", "Human Resources", "Human resources and recruitment"),
    ("FIN", "Finance", "Finance and accounting"),
)
