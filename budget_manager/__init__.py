"""
Budget Manager.

Personal budgeting backed by the user's own Google Sheets spreadsheet.

Subpackages:
- backend: FastAPI application (auth, budgets, transactions, goals, sheets)
- telegram: aiogram bot, webhook mount and notification service
- cli: HTTP client and budget workspace used by cli.py
"""
