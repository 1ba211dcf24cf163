# backend/shopdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- Shops (the tenancy boundary) and their default labour rate
- User accounts and roles
- Login and the current-user endpoint

Other apps depend on these models for "which shop is the caller in".
"""
