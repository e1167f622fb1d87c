"""Request handlers package."""
from app.handlers.business_handler import BusinessHandler

__all__ = ["BusinessHandler"]
