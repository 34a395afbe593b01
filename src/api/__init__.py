"""
FastAPI task backend package.

The ASGI application lives in `src.api.main` (`app`, or `create_app()` for
explicit settings/store). It is not imported here so that importing helper
modules never requires the JWT_SECRET configuration.
"""
