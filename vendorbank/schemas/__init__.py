"""Pydantic schemas package.

Folder intent:
  common.py  — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  vendor.py  — VendorRecord (single declaration of the stored fields) and request/response DTOs
"""
