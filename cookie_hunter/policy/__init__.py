"""Scope policy package for Cookie Hunter."""

from cookie_hunter.policy.scopes import (
    GLOBAL_SCOPE_KEY,
    Scope,
    ScopeError,
    ScopeRegistry,
    is_global_scope_key,
    is_grant,
    scope_domain_from_key,
)

__all__ = [
    "GLOBAL_SCOPE_KEY",
    "Scope",
    "ScopeError",
    "ScopeRegistry",
    "is_global_scope_key",
    "is_grant",
    "scope_domain_from_key",
]
