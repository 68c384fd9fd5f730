from fastapi import APIRouter, Depends

from coachbook.auth.dependencies import ADMIN_ROLE, USER_ROLE, get_current_user, is_admin
from coachbook.models.user import User

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {
        "email": current_user.email,
        "role": ADMIN_ROLE if is_admin(current_user) else USER_ROLE,
    }
