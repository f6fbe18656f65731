"""
API package for the CDN storage gateway.

The ASGI application lives in `src.api.server:app`; `src.api.main.create_app`
builds one from explicit settings.
"""
