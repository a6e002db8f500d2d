"""
Core Utilities

Modules:
    - security: Session tokens, admin session ids, password hashing
    - exceptions: ChatError codes and HTTP helpers
"""

from chatapp.core import security, exceptions

__all__ = ["security", "exceptions"]
