# herbaltrace/services/auth/auth_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import current_app
from flask_bcrypt import Bcrypt
from flask_jwt_extended import create_access_token, create_refresh_token

from herbaltrace.constants.choices import ROLES
from herbaltrace.errors import AuthError, DuplicateRow, ValidationError
from herbaltrace.models.auth.auth_models import PortalContext, SignInModel, SignUpModel
from herbaltrace.models.forms import parse_form
from herbaltrace.row_store import RowStore, new_id
from herbaltrace.services.auth_api_client import AuthApiClient, AuthApiError

log = logging.getLogger(__name__)

bcrypt = Bcrypt()


def _public_profile(p: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in p.items() if k != "password_hash"}


class LocalAuthProvider:
    """Credentials checked against bcrypt hashes stored on the profile row."""

    def __init__(self, store: RowStore):
        self.store = store

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        profile = self.store.select_one("profiles", {"email": email}, include_hidden=True)
        if not profile or not profile.get("password_hash"):
            raise AuthError("Invalid login credentials")
        if not bcrypt.check_password_hash(profile["password_hash"], password):
            raise AuthError("Invalid login credentials")
        return _public_profile(profile)

    def sign_up(self, email: str, password: str, profile_fields: Dict[str, Any]) -> Dict[str, Any]:
        if self.store.select_one("profiles", {"email": email}):
            raise ValidationError("User already registered")
        row = {
            **profile_fields,
            "password_hash": bcrypt.generate_password_hash(password).decode("utf-8"),
        }
        try:
            return self.store.insert("profiles", row)
        except DuplicateRow as e:
            raise ValidationError("User already registered") from e


class RemoteAuthProvider:
    """
    Credentials live in the remote auth API; the profile row here mirrors the
    remote user so portals can read it like any other row.
    """

    def __init__(self, store: RowStore, client: AuthApiClient):
        self.store = store
        self.client = client

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        try:
            out = self.client.sign_in(email, password)
        except AuthApiError as e:
            raise AuthError(str(e)) from e
        user = out.get("user") or {}
        profile = self._local_profile(user.get("userId"), email)
        if profile is None:
            profile = self._mirror(user, email)
        return profile

    def sign_up(self, email: str, password: str, profile_fields: Dict[str, Any]) -> Dict[str, Any]:
        if self.store.select_one("profiles", {"email": email}):
            raise ValidationError("User already registered")
        profile_id = new_id()
        try:
            self.client.sign_up(email, password, {**profile_fields, "userId": profile_id})
        except AuthApiError as e:
            raise ValidationError(str(e)) from e
        return self.store.insert("profiles", {**profile_fields, "id": profile_id})

    def _local_profile(self, user_id: Optional[str], email: str) -> Optional[Dict[str, Any]]:
        if user_id:
            p = self.store.get("profiles", user_id)
            if p:
                return p
        return self.store.select_one("profiles", {"email": email})

    def _mirror(self, user: Dict[str, Any], email: str) -> Dict[str, Any]:
        row = {
            "email": email,
            "full_name": user.get("name") or user.get("full_name") or "",
            "role": (user.get("role") or "consumer").lower(),
        }
        if user.get("userId"):
            row["id"] = user["userId"]
        return self.store.insert("profiles", row)


class AuthService:
    def __init__(self, provider):
        self.provider = provider

    @staticmethod
    def for_app(store: RowStore) -> "AuthService":
        cfg = current_app.config
        if cfg.get("USE_REMOTE_AUTH_API"):
            return AuthService(RemoteAuthProvider(store, AuthApiClient(cfg.get("AUTH_API_BASE_URL", ""))))
        return AuthService(LocalAuthProvider(store))

    def sign_in(self, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        form = parse_form(SignInModel, data)
        profile = self.provider.sign_in(form.email, form.password)
        log.info("sign-in for profile %s", profile.get("id"))
        return self._session_payload(profile)

    def sign_up(self, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if data is not None and not isinstance(data, dict):
            raise ValidationError("Form body must be an object")
        data = data or {}
        if not str(data.get("role") or "").strip():
            raise ValidationError("Please select your role")
        form = parse_form(SignUpModel, data)
        if form.role not in ROLES:
            raise ValidationError(f"Unknown role '{form.role}'")
        profile = self.provider.sign_up(form.email, form.password, form.profile_fields())
        log.info("sign-up for profile %s (%s)", profile.get("id"), profile.get("role"))
        return self._session_payload(profile)

    @staticmethod
    def issue_tokens(profile: Dict[str, Any]) -> Tuple[str, str]:
        claims = {"role": profile.get("role", "")}
        access = create_access_token(identity=profile["id"], additional_claims=claims)
        refresh = create_refresh_token(identity=profile["id"], additional_claims=claims)
        return access, refresh

    @staticmethod
    def context_for(store: RowStore, profile_id: str) -> PortalContext:
        profile = store.get("profiles", profile_id)
        if not profile:
            raise AuthError("Profile not found")
        return PortalContext(profile_id=profile["id"], role=profile.get("role", ""), profile=profile)

    def _session_payload(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        access, refresh = self.issue_tokens(profile)
        return {
            "ok": True,
            "profile": _public_profile(profile),
            "access_token": access,
            "refresh_token": refresh,
        }
