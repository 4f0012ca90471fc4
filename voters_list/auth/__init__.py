from .base import AuthError, AuthProvider, AuthSession, SessionUser

__all__ = ["AuthError", "AuthProvider", "AuthSession", "SessionUser"]
