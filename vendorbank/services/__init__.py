"""Services package — all business logic lives here, never in routers.

Files:
  vendor.py  — vendor record rules (search, immutable keys on edit, rename)

Rule: routers call services, services call repositories, repositories call the engine.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
