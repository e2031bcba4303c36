"""
auth — Dashboard session authentication.

Provides:
  • Signed session token creation & verification
  • Google sign-in and shared-password sign-in routes
  • Email allowlist
  • ``get_current_session`` FastAPI dependency
"""
