# routers/dependencies.py
"""
Request-scoped helpers shared by the routers.
"""
from fastapi import Request

from services.audit_service import ClientInfo


def get_client_info(request: Request) -> ClientInfo:
     """Caller address and user agent, recorded on every audit log row."""
     forwarded = request.headers.get("X-Forwarded-For")
     if forwarded:
          ip_address = forwarded.split(",")[0].strip()
     else:
          ip_address = request.client.host if request.client else None
     return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("User-Agent"))
