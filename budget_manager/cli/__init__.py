"""
CLI Client Module.

Thin presentation layer over the backend API.

Architecture:
- All business logic lives in the backend
- CLI calls backend via HTTP (httpx) with the user's session token
- Sends X-Frontend-ID: cli header for log routing

Usage:
    python cli.py --service budget --token <jwt> --income 4200
"""
