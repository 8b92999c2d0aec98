# Package exports - these allow cleaner imports like:
# from catalog_admin.auth import get_current_user, require_admin
from catalog_admin.auth.jwt_validator import jwt_validator
from catalog_admin.auth.dependencies import get_current_user, require_admin
