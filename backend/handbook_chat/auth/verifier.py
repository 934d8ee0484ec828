"""Identity token verification."""

from __future__ import annotations

from typing import Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from handbook_chat.auth.principal import Principal
from handbook_chat.core.errors import AuthenticationError
from handbook_chat.core.logging import get_logger

logger = get_logger(__name__)

_APP_NAME = "handbook-chat"


class TokenVerifier(Protocol):
    def verify(self, id_token: str) -> Principal: ...


class FirebaseTokenVerifier:
    """Verifies Firebase Authentication ID tokens."""

    def __init__(self, project_id: str | None = None, app: firebase_admin.App | None = None) -> None:
        self.project_id = project_id
        self._app = app

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(_APP_NAME)
            except ValueError:
                options = {"projectId": self.project_id} if self.project_id else None
                self._app = firebase_admin.initialize_app(
                    credentials.ApplicationDefault(), options=options, name=_APP_NAME
                )
        return self._app

    def verify(self, id_token: str) -> Principal:
        try:
            claims = firebase_auth.verify_id_token(id_token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            logger.info("Rejected sign-in token: %s", exc)
            raise AuthenticationError("Sign-in token could not be verified") from exc
        return Principal(uid=claims["uid"], email=claims.get("email"), name=claims.get("name"))


__all__ = ["TokenVerifier", "FirebaseTokenVerifier"]
