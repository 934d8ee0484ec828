"""Sign-in gate: token verification, allow-list check, session lifecycle."""

from __future__ import annotations

from dataclasses import dataclass

from handbook_chat.auth.allowlist import AllowList
from handbook_chat.auth.principal import Principal
from handbook_chat.auth.verifier import TokenVerifier
from handbook_chat.chat.conversation import Session, SessionStore
from handbook_chat.core.errors import AuthenticationError, AuthorizationError
from handbook_chat.core.logging import get_logger
from handbook_chat.core.metrics import SIGN_INS

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SignInOutcome:
    allowed: bool
    redirect_to: str
    session: Session | None = None
    principal: Principal | None = None
    reason: str | None = None


class AuthGate:
    """Admit allow-listed principals; everyone else is signed out."""

    def __init__(
        self,
        verifier: TokenVerifier,
        allow_list: AllowList,
        sessions: SessionStore,
        login_path: str = "/login",
        home_path: str = "/",
    ) -> None:
        self.verifier = verifier
        self.allow_list = allow_list
        self.sessions = sessions
        self.login_path = login_path
        self.home_path = home_path

    def sign_in(self, id_token: str) -> SignInOutcome:
        try:
            principal = self.verifier.verify(id_token)
        except AuthenticationError as exc:
            SIGN_INS.labels(outcome="invalid_token").inc()
            return SignInOutcome(allowed=False, redirect_to=self.login_path, reason=str(exc))

        try:
            self.authorize(principal)
        except AuthorizationError as exc:
            SIGN_INS.labels(outcome="denied").inc()
            logger.warning("Access denied for %s", principal.email, extra={"ctx_uid": principal.uid})
            return SignInOutcome(
                allowed=False,
                redirect_to=self.login_path,
                principal=principal,
                reason="Your email is not registered to access this application.",
            )

        session = self.sessions.create(principal)
        SIGN_INS.labels(outcome="allowed").inc()
        logger.info("Signed in %s", principal.email, extra={"ctx_session": session.id})
        return SignInOutcome(allowed=True, redirect_to=self.home_path, session=session, principal=principal)

    def authorize(self, principal: Principal) -> None:
        if not self.allow_list.allows(principal.email):
            raise AuthorizationError(principal.email)

    def require(self, session_id: str | None) -> Session:
        """Return the live session or raise; denied sessions are dropped."""
        session = self.sessions.get(session_id)
        if session is None:
            raise AuthenticationError("Not signed in")
        try:
            self.authorize(session.principal)
        except AuthorizationError:
            self.sessions.drop(session.id)
            raise
        return session

    def sign_out(self, session_id: str | None) -> bool:
        return self.sessions.drop(session_id)


__all__ = ["AuthGate", "SignInOutcome"]
