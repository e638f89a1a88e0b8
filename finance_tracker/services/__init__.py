"""
Services package.

Subpackages:
- storage: key-value persistence
- auth: accounts, sessions, password recovery
- finance: per-user transactions, budget and savings
"""
