"""Authentication dependencies: get_current_user, require_admin, require_approved."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.jwt import AuthError, decode_token
from croplog.config import get_settings
from croplog.database import get_db
from croplog.models.enums import UserRoleEnum
from croplog.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def _raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def _forbidden(code: str, message: str) -> HTTPException:
	return HTTPException(
		status_code=status.HTTP_403_FORBIDDEN,
		detail={"error": code, "message": message},
	)


def extract_identity_hint(request: Request) -> str:
	auth_header = request.headers.get("authorization", "")
	if auth_header.lower().startswith("bearer "):
		return "jwt"
	return "anonymous"


async def _resolve_user_from_token(
	db: AsyncSession,
	credentials: HTTPAuthorizationCredentials | None,
) -> User:
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise _raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))

	try:
		payload = decode_token(credentials.credentials)
	except AuthError as exc:
		raise _raise_auth(exc) from exc
	try:
		user_id = uuid.UUID(str(payload["sub"]))
	except (ValueError, KeyError) as exc:
		raise _raise_auth(AuthError(code="token_invalid", detail="Token subject is invalid")) from exc

	row = await db.execute(select(User).where(User.id == user_id))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise _raise_auth(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	credentials = await bearer_scheme(request)
	return await _resolve_user_from_token(db, credentials)


def require_role(*allowed: UserRoleEnum) -> Callable[[User], User]:
	allowed_set = set(allowed)

	async def dependency(current_user: User = Depends(get_current_user)) -> User:
		if current_user.role not in allowed_set:
			raise _forbidden("forbidden", "Insufficient role")
		return current_user

	return dependency


require_admin = require_role(UserRoleEnum.admin)


async def require_approved(current_user: User = Depends(get_current_user)) -> User:
	"""Members must be approved by an admin; admins always pass."""
	if current_user.role == UserRoleEnum.admin or current_user.is_approved:
		return current_user
	raise _forbidden("approval_pending", "Account is awaiting admin approval")


def get_google_access_token(request: Request) -> str:
	settings = get_settings()
	token = request.headers.get(settings.google_access_token_header) or settings.google_access_token
	if not token or not token.strip():
		raise HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail={
				"error": "Google account not connected",
				"message": "Please sign in with Google to access your sheets",
			},
		)
	return token.strip()
