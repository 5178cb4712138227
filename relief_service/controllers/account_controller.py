# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: registration, login/logout, profile and admin account listing."""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from relief_service.core.config import settings
from relief_service.core.dependencies import (
    get_account_service,
    get_current_principal,
    require_admin,
)
from relief_service.core.errors import (
    AuthenticationError,
    DuplicateAccountError,
    NotFoundError,
    ValidationError,
)
from relief_service.core.security import TOKEN_COOKIE
from relief_service.schemas import AccountOut, LoginRequest, RegisterRequest
from relief_service.services.account_service import AccountService

router = APIRouter(prefix="/api/v1", tags=["Accounts"])


@router.post("/auth/register", status_code=201)
def register(payload: RegisterRequest,
             service: AccountService = Depends(get_account_service)):
    try:
        account = service.register(**payload.model_dump())
    except DuplicateAccountError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Registration successful", "data": account}


@router.post("/auth/login")
def login(payload: LoginRequest,
          service: AccountService = Depends(get_account_service)):
    try:
        result = service.login(payload.email, payload.password, payload.role)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = JSONResponse(content=result)
    response.set_cookie(
        TOKEN_COOKIE,
        result["token"],
        max_age=settings.JWT_EXPIRES_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        path="/",
    )
    return response


@router.post("/auth/logout")
def logout():
    response = JSONResponse(content={"message": "Logout successful"})
    response.delete_cookie(
        TOKEN_COOKIE, path="/", httponly=True,
        secure=settings.COOKIE_SECURE, samesite="strict",
    )
    return response


@router.get("/profile", response_model=AccountOut)
def get_profile(principal: dict = Depends(get_current_principal),
                service: AccountService = Depends(get_account_service)):
    try:
        return service.get_profile(principal["role"], principal["id"])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/profile")
def update_profile(updates: dict[str, Any] = Body(...),
                   principal: dict = Depends(get_current_principal),
                   service: AccountService = Depends(get_account_service)):
    try:
        account = service.update_profile(principal["role"], principal["id"], updates)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateAccountError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Profile updated successfully", "data": account}


@router.get("/users")
def list_accounts(_: dict = Depends(require_admin),
                  service: AccountService = Depends(get_account_service)):
    """All accounts grouped by collection, passwords stripped. Admin only."""
    return service.list_accounts()
