"""
Applications module - Public submissions and owner review of job applications.
"""

from app.modules.applications.router import router

__all__ = ["router"]
