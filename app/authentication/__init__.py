"""
Authentication application.

Identity and access context for the three kinds of actor on the platform:
customers, provider operators and platform admins.

Key components:
    - User model: Email-based user with a role and admin region assignment
    - AccessContext / RegionAccessPolicy: Who is acting and what they may see
    - JWTAuthMiddleware: JWT authentication for WebSocket connections

Usage:
    from authentication.models import User, UserRole
    from authentication.access import AccessContext, RegionAccessPolicy
"""
