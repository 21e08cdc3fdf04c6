from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.clock import SystemClock
from src.adapters.fs.blobstore import LocalBlobStore
from src.adapters.sqlite.repos import SQLiteContentRepo, SQLiteLikeRepo, SQLiteUserRepo
from src.api.deps import (
    get_auth_adapter,
    get_blob_store,
    get_clock,
    get_content_repo,
    get_current_user,
    get_like_repo,
    get_optional_user,
    get_policy,
    get_rules,
    get_user_repo,
)
from src.api.schemas import (
    ApiResponse,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    RoleChangeRequest,
    ok,
)
from src.components.identity import (
    ChangePasswordInput,
    ChangeRoleInput,
    DeleteUserInput,
    ListUsersInput,
    LoginInput,
    RegisterInput,
    SetAvatarInput,
    UpdateProfileInput,
    run_change_password,
    run_change_role,
    run_delete_user,
    run_list_users,
    run_login,
    run_register,
    run_set_avatar,
    run_update_profile,
)
from src.components.views import ProfileInput, account_view, assemble_profile, public_user_view
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

router = APIRouter()


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def register(
    req: RegisterRequest,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    user = run_register(
        RegisterInput(**req.model_dump()),
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        rules=rules,
        clock=clock,
    )
    return ok(account_view(user), "User registered successfully", status_code=201)


@router.post("/login", response_model=ApiResponse)
def login(
    req: LoginRequest,
    response: Response,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
) -> ApiResponse:
    """Authenticate and return a bearer token; also set as an HttpOnly cookie."""
    result = run_login(
        LoginInput(email=req.email, password=req.password),
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        rules=rules,
    )

    max_age = rules.identity.token_ttl_minutes * 60
    response.set_cookie(
        key="access_token",
        value=f"Bearer {result.token}",
        httponly=True,
        max_age=max_age,
        expires=max_age,
        samesite="lax",
        secure=False,  # Set to True for HTTPS prod
    )
    data = LoginResponse(user=account_view(result.user), access_token=result.token)
    return ok(data, "User logged in successfully")


@router.post("/logout", response_model=ApiResponse)
def logout(response: Response, current_user: User = Depends(get_current_user)) -> ApiResponse:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return ok(None, "User logged out successfully")


@router.get("/me", response_model=ApiResponse)
def read_me(current_user: User = Depends(get_current_user)) -> ApiResponse:
    return ok(account_view(current_user), "Current user fetched successfully")


@router.patch("/me", response_model=ApiResponse)
def update_me(
    req: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    user = run_update_profile(
        UpdateProfileInput(actor=current_user, **req.model_dump(exclude_unset=True)),
        user_repo=user_repo,
        policy=policy,
        clock=clock,
    )
    return ok(account_view(user), "Profile updated successfully")


@router.patch("/me/password", response_model=ApiResponse)
def change_password(
    req: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    """Issued tokens stay valid until they expire."""
    user = run_change_password(
        ChangePasswordInput(
            actor=current_user,
            current_password=req.current_password,
            new_password=req.new_password,
        ),
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        rules=rules,
        clock=clock,
    )
    return ok(account_view(user), "Password changed successfully")


@router.put("/me/avatar", response_model=ApiResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    blobs: LocalBlobStore = Depends(get_blob_store),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    data = await file.read()
    user = run_set_avatar(
        SetAvatarInput(actor=current_user, filename=file.filename or "", data=data),
        user_repo=user_repo,
        blobs=blobs,
        rules=rules,
        clock=clock,
    )
    return ok(account_view(user), "Avatar updated successfully")


@router.get("/{username}/profile", response_model=ApiResponse)
def read_profile(
    username: str,
    viewer: User | None = Depends(get_optional_user),
    content_repo: SQLiteContentRepo = Depends(get_content_repo),
    like_repo: SQLiteLikeRepo = Depends(get_like_repo),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> ApiResponse:
    profile = assemble_profile(
        ProfileInput(viewer=viewer, username=username.lower()),
        content_repo=content_repo,
        like_repo=like_repo,
        user_repo=user_repo,
    )
    return ok(profile, "User profile fetched successfully")


@router.get("", response_model=ApiResponse)
def list_users(
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> ApiResponse:
    """List all users (admin only)."""
    users = run_list_users(ListUsersInput(actor=current_user), user_repo=user_repo, policy=policy)
    return ok([public_user_view(u) for u in users], "Users fetched successfully")


@router.patch("/{username}/role", response_model=ApiResponse)
def change_role(
    username: str,
    req: RoleChangeRequest,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> ApiResponse:
    user = run_change_role(
        ChangeRoleInput(actor=current_user, username=username.lower(), role=req.role),
        user_repo=user_repo,
        policy=policy,
        clock=clock,
    )
    return ok(public_user_view(user), "Role updated successfully")


@router.delete("/{username}", response_model=ApiResponse)
def delete_user(
    username: str,
    current_user: User = Depends(get_current_user),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    content_repo: SQLiteContentRepo = Depends(get_content_repo),
    policy: PolicyEngine = Depends(get_policy),
    blobs: LocalBlobStore = Depends(get_blob_store),
) -> ApiResponse:
    """Delete a member with everything they authored (admin only)."""
    user = run_delete_user(
        DeleteUserInput(actor=current_user, username=username.lower()),
        user_repo=user_repo,
        content_repo=content_repo,
        policy=policy,
        blobs=blobs,
    )
    return ok(public_user_view(user), "User deleted successfully")
