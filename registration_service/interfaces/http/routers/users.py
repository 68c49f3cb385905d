from fastapi import APIRouter, Depends, HTTPException, status, Request

from ....config import settings
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher
from ....infrastructure.metrics import registrations_total
from ....application.use_cases.register_user import IUserRepository, IPasswordHasher, RegisterUser
from ....domain.entities import User
from ....domain.errors import StorageFailure, UsernameAlreadyExists, ValidationFailure
from ..limits import limiter
from ..schemas import RegisterReq, UserResp, ErrorResp

PREFIX = "/api/users"
REGISTER_PATH = f"{PREFIX}/register"

router = APIRouter(prefix=PREFIX, tags=["users"])


def get_user_repository() -> IUserRepository:
    return UserRepository()

def get_password_hasher() -> IPasswordHasher | None:
    return PasswordHasher(settings.PASSWORD_SCHEME) if settings.HASH_PASSWORDS else None


def to_response(user: User) -> UserResp:
    return UserResp(id=user.id, username=user.username, role=user.role.value)


@router.get("/health")
def health():
    return {"status": "ok"}

@router.post(
    "/register",
    response_model=UserResp,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResp}, 422: {"model": ErrorResp}, 500: {"model": ErrorResp}},
)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
def register(
    request: Request,
    payload: RegisterReq,
    repo: IUserRepository = Depends(get_user_repository),
    hasher: IPasswordHasher | None = Depends(get_password_hasher),
):
    uc = RegisterUser(repo=repo, hasher=hasher)
    try:
        user = uc.execute(payload.username, payload.password, payload.role)
    except ValidationFailure as e:
        registrations_total.labels(outcome="invalid").inc()
        raise HTTPException(status_code=422, detail=str(e))
    except UsernameAlreadyExists as e:
        registrations_total.labels(outcome="duplicate").inc()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageFailure:
        registrations_total.labels(outcome="storage_error").inc()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage unavailable")
    registrations_total.labels(outcome="created").inc()
    return to_response(user)

@router.get("/{user_id}", response_model=UserResp, responses={404: {"model": ErrorResp}})
def get_user(user_id: int, repo: IUserRepository = Depends(get_user_repository)):
    try:
        user = repo.get_by_id(user_id)
    except StorageFailure:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage unavailable")
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return to_response(user)
