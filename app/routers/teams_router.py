from fastapi import APIRouter, Depends, status

from ..dependencies import get_user_directory_service
from ..application.services.user_directory_service import UserDirectoryService
from ..schemas.common.common import ErrorResponse
from ..schemas.users.user import TeamRegisterRequest, TeamRegisterResponse, UserResponse

router = APIRouter(prefix="/api/teams", tags=["Teams"], responses={400: {"model": ErrorResponse}})


@router.post("/register", response_model=TeamRegisterResponse, status_code=status.HTTP_201_CREATED)
def register_team_member(body: TeamRegisterRequest, directory: UserDirectoryService = Depends(get_user_directory_service)):
    user = directory.register_team_member(
        body.role,
        body.full_name,
        body.phone_primary,
        body.phone_secondary,
        body.aadhaar_number,
        district_id=body.district_id,
    )
    return TeamRegisterResponse(user=UserResponse.from_dto(user))
