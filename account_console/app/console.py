from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from gateway_client_sdk.clients import (
    AccountClient,
    AdminClient,
    AuthClient,
    FeaturesClient,
    RecoveryClient,
    SignupClient,
)
from gateway_client_sdk.http_client import HttpClient

from account_console.app.admin_actions import AdminActions
from account_console.app.config import ConsoleConfig
from account_console.app.feature_config import FeatureConfig, FeatureConfigStore
from account_console.app.flows.email_recovery import EmailRecoveryFlow
from account_console.app.flows.login import LoginFlow
from account_console.app.flows.password_change import PasswordChangeFlow
from account_console.app.flows.signup import SignupFlow
from account_console.app.flows.sms_recovery import SmsRecoveryFlow
from account_console.app.flows.totp_enrollment import TotpEnrollmentFlow
from account_console.app.infrastructure.logging.logger import get_logger, log_action
from account_console.app.session_store import Session, SessionStore

logger = get_logger(__name__)

FlowT = TypeVar("FlowT")


class FlowUnavailableError(RuntimeError):
    def __init__(self, flow: str, reason: str) -> None:
        super().__init__(f"{flow} is not available: {reason}")
        self.flow = flow
        self.reason = reason


@dataclass
class GatewayClients:
    account: AccountClient
    auth: AuthClient
    features: FeaturesClient
    recovery: RecoveryClient
    signup: SignupClient
    admin: AdminClient

    @classmethod
    def from_http(cls, http: HttpClient) -> "GatewayClients":
        return cls(
            account=AccountClient(http),
            auth=AuthClient(http),
            features=FeaturesClient(http),
            recovery=RecoveryClient(http),
            signup=SignupClient(http),
            admin=AdminClient(http),
        )


class AccountConsole:
    """Page-level container wiring the stores to the flows they gate.

    The stores are injected so tests can hand in fakes. At most one instance
    of each flow kind is open at a time: opening a new one closes the
    previous instance, discarding any secret material it still held.
    """

    def __init__(
        self,
        clients: GatewayClients,
        *,
        config: ConsoleConfig | None = None,
        session_store: SessionStore | None = None,
        feature_store: FeatureConfigStore | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self.clients = clients
        self.config = config or ConsoleConfig()
        self.session_store = session_store or SessionStore(clients.account, clients.auth)
        self.feature_store = feature_store or FeatureConfigStore(clients.features)
        self._http = http
        self._flows: dict[str, Any] = {}

    @classmethod
    def from_config(cls, config: ConsoleConfig) -> "AccountConsole":
        http = HttpClient(config=config.client)
        return cls(GatewayClients.from_http(http), config=config, http=http)

    @property
    def session(self) -> Session:
        return self.session_store.current()

    @property
    def features(self) -> FeatureConfig:
        return self.feature_store.current()

    async def mount(self) -> tuple[Session, FeatureConfig]:
        session, features = await asyncio.gather(self.session_store.start(), self.feature_store.load())
        log_action(logger, "console", "mount", session.username, session.status.value, features_loaded=features.loaded)
        return session, features

    def available_flows(self) -> dict[str, bool]:
        session = self.session
        features = self.features
        anonymous = session.is_settled and not session.is_authenticated
        return {
            "login": anonymous,
            "password_change": session.is_authenticated,
            "totp": session.is_authenticated,
            "email_recovery": anonymous and features.loaded and features.email_enabled,
            "sms_recovery": anonymous and features.loaded and features.sms_enabled,
            "signup": anonymous and features.loaded and features.signup_enabled,
            "admin": session.is_admin,
        }

    def open_login_flow(self) -> LoginFlow:
        self._require("login", "you are already signed in")
        return self._open("login", lambda: LoginFlow(self.clients.auth, self.session_store))

    def open_totp_flow(self) -> TotpEnrollmentFlow:
        self._require("totp", "sign in first")
        return self._open("totp", lambda: TotpEnrollmentFlow(self.clients.account, self.session_store))

    def open_password_change_flow(self) -> PasswordChangeFlow:
        self._require("password_change", "sign in first")
        return self._open("password_change", lambda: PasswordChangeFlow(self.clients.account, actor=self.session.username))

    def open_email_recovery_flow(self) -> EmailRecoveryFlow:
        self._require("email_recovery", "email recovery is disabled or you are already signed in")
        features = self.features
        return self._open(
            "email_recovery",
            lambda: EmailRecoveryFlow(
                self.clients.recovery,
                enabled=features.email_enabled,
                username_is_email=features.username_is_email,
            ),
        )

    def open_sms_recovery_flow(self) -> SmsRecoveryFlow:
        self._require("sms_recovery", "SMS recovery is disabled or you are already signed in")
        return self._open("sms_recovery", lambda: SmsRecoveryFlow(self.clients.recovery, enabled=self.features.sms_enabled))

    def open_signup_flow(self) -> SignupFlow:
        self._require("signup", "signup is disabled or you are already signed in")
        features = self.features
        return self._open(
            "signup",
            lambda: SignupFlow(
                self.clients.signup,
                enabled=features.signup_enabled,
                username_is_email=features.username_is_email,
            ),
        )

    def open_admin_actions(self) -> AdminActions:
        self._require("admin", "administrator role required")
        return self._open("admin", lambda: AdminActions(self.clients.admin, actor=self.session.username))

    async def sign_out(self) -> str | None:
        self._close_flows()
        return await self.session_store.sign_out()

    async def unmount(self) -> None:
        self._close_flows()
        self.session_store.reset()
        log_action(logger, "console", "unmount", None, "closed")

    async def aclose(self) -> None:
        await self.unmount()
        if self._http is not None:
            await self._http.aclose()

    def _require(self, flow: str, reason: str) -> None:
        if not self.available_flows()[flow]:
            raise FlowUnavailableError(flow, reason)

    def _open(self, kind: str, factory: Callable[[], FlowT]) -> FlowT:
        previous = self._flows.pop(kind, None)
        if previous is not None:
            previous.close()
        flow = factory()
        self._flows[kind] = flow
        return flow

    def _close_flows(self) -> None:
        for flow in self._flows.values():
            flow.close()
        self._flows.clear()
