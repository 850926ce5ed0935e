"""
Tenant Context Module

Every inbound request names the platform tenant it acts on. The tenant is
held in a context variable for the lifetime of the request so that each
upstream call forwards it unchanged.
"""

import contextvars
from contextlib import contextmanager
from typing import Iterable, Mapping, Optional


_current_tenant = contextvars.ContextVar('current_tenant', default=None)


def get_current_tenant() -> Optional[str]:
    """Get the current tenant ID for this context"""
    return _current_tenant.get()


def set_current_tenant(tenant_id: Optional[str]) -> None:
    """Set the current tenant ID for this context"""
    _current_tenant.set(tenant_id)


@contextmanager
def tenant_context(tenant_id: Optional[str]):
    """Context manager for temporary tenant switching"""
    token = _current_tenant.set(tenant_id)
    try:
        yield
    finally:
        _current_tenant.reset(token)


def extract_tenant(headers: Mapping[str, str], header_names: Iterable[str]) -> Optional[str]:
    """Return the first non-empty tenant header value, or None"""
    lowered = {key.lower(): value for key, value in headers.items()}
    for name in header_names:
        value = lowered.get(name.lower())
        if value and value.strip():
            return value.strip()
    return None


async def tenant_middleware_func(request, call_next, header_names: Iterable[str],
                                 default_tenant: Optional[str] = None):
    """FastAPI middleware function for tenant extraction"""
    tenant_id = extract_tenant(request.headers, header_names) or default_tenant
    with tenant_context(tenant_id):
        return await call_next(request)
