"""
Central registry of allowed actions per role.
"""
ROLE_SCOPES = {
    "user":  {"place_order", "view_order", "manage_cart", "charge_order"},
    "admin": {"*"},
}

def role_has_scope(role: str, action: str) -> bool:
    scopes = ROLE_SCOPES.get(role, set())
    return "*" in scopes or action in scopes
