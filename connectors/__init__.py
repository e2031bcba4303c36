"""
connectors — Google OAuth and credential storage.

Provides:
  • OAuth2 auth-URL generation and code → token exchange
  • Access-token refresh with a skew buffer (CredentialResolver)
  • Per-user token storage (in memory or Postgres)
  • Fernet encryption of tokens at rest
  • Revocation on logout
"""
