"""Routers package — HTTP endpoint definitions.

Files:
  snapshot.py  — snapshot file upload/download (/api/save-database, /vendors.db)
  v1/          — Versioned API routes (/api/v1/*)
"""
