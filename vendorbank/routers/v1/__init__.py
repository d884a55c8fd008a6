"""v1 router package — all /api/v1/* endpoints live here.

Files:
  vendors.py  — vendor record CRUD + search
  storage.py  — durability status, flush and reset

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to vendorbank/services/.
"""
