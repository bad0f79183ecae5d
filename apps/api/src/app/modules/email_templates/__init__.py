"""
Email templates module - Template management and bulk email to applicants.
"""

from app.modules.email_templates.router import router

__all__ = ["router"]
