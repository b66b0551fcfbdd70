"""Engagement Tracker - role administration backend.

Role-based access control for the engagement-analytics platform: role
assignment policy, ownership transfer, user blocking, an append-only role
audit trail and role-change email notifications.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
