"""
Utilities Package

Organized by purpose:
- auth: password hashing, session tokens, caller context
- email: outbound notification email
- errors: application error hierarchy and handler
- monitoring: structured logging and correlation IDs
"""
