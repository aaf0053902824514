"""
Security guards for role-based access control.

Provides dependency factories for protecting endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from cogniflow.app.models.enums import UserRole
from cogniflow.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.
    
    Usage:
        @router.post("/ledger")
        async def post_entry(current_user: dict = Depends(require_role(FINANCE_WRITERS))):
            ...
    
    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")
        
        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )
        
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )
        
        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        
        return current_user
    
    return role_checker


# Role groups used across the finance endpoints
ADMIN_ONLY = [UserRole.ADMIN]
FINANCE_WRITERS = [UserRole.ADMIN, UserRole.ACCOUNTANT]
