from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError

from havenstay.dependencies import db_dependency, CurrentUser
from havenstay.limits import limiter, login_rate_limit, signup_rate_limit
from havenstay.models.user import User
from havenstay.schemas.user import (
    LoginResponse,
    SignupResponse,
    UserEnvelope,
    UserLogin,
    UserSignup,
)
from havenstay.services.audit_log_service import AuditLogService
from havenstay.services.auth_service import (
    authenticate_user,
    end_session,
    get_password_hash,
    start_session,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED
)
@limiter.limit(signup_rate_limit)
def signup(
    db: db_dependency, user_request: UserSignup, request: Request, response: Response
):
    if db.query(User).filter(User.email == user_request.email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="User already exists"
        )

    user_model = User(
        name=user_request.name,
        email=user_request.email,
        password_hash=get_password_hash(user_request.password),
        role=user_request.user_type,
        location=user_request.location,
    )
    db.add(user_model)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="User already exists"
        )
    db.refresh(user_model)

    start_session(response, user_model)
    AuditLogService().log_request(
        db,
        request,
        action="user.create",
        resource_type="user",
        resource_id=user_model.id,
        user={"id": user_model.id, "role": user_model.role.value},
        status_code=status.HTTP_201_CREATED,
    )
    return {
        "message": "User created successfully",
        "userId": user_model.id,
        "user_type": user_model.role,
        "user": user_model,
    }


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
@limiter.limit(login_rate_limit)
def login(
    db: db_dependency, credentials: UserLogin, request: Request, response: Response
):
    user = authenticate_user(credentials.email, credentials.password, db)
    if not user:
        AuditLogService().log_request(
            db,
            request,
            action="auth.login",
            resource_type="auth",
            status="failure",
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_message="invalid_credentials",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    start_session(response, user)
    AuditLogService().log_request(
        db,
        request,
        action="auth.login",
        resource_type="auth",
        user={"id": user.id, "role": user.role.value},
        status_code=status.HTTP_200_OK,
    )
    return {"message": "Login successful", "user": user}


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(response: Response):
    end_session(response)
    return {"message": "Logout successful"}


@router.get("/me", response_model=UserEnvelope, status_code=status.HTTP_200_OK)
def me(db: db_dependency, current_user: CurrentUser):
    user = db.query(User).filter(User.id == current_user["id"]).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"user": user}
