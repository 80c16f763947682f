"""
Core application utilities.

This package provides:
- Application-level settings (separate from DB settings)
- Error codes and the result envelope shared by repositories and actions
- Permission/role model, token security and the tenant-scoped cache
- FastAPI dependency helpers
"""
