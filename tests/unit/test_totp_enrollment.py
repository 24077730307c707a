from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from gateway_client_sdk.exceptions import AuthError, ValidationError
from gateway_client_sdk.models import OkResponse, TotpSetupResponse

from account_console.app.error_presenter import SESSION_EXPIRED_MESSAGE
from account_console.app.flows.totp_enrollment import (
    SIGN_IN_REQUIRED_MESSAGE,
    TotpEnrolled,
    TotpEnrollmentFlow,
    TotpFailed,
    TotpIdle,
    TotpSecretIssued,
    TotpVerifying,
)
from account_console.app.session_store import Session, SessionStatus


class FixedSession:
    def __init__(self, session: Session) -> None:
        self.session = session

    def current(self) -> Session:
        return self.session


def _signed_in(totp_enabled: bool = False) -> FixedSession:
    return FixedSession(Session(status=SessionStatus.AUTHENTICATED, username="alice", totp_enabled=totp_enabled))


def _api() -> AsyncMock:
    api = AsyncMock()
    api.totp_setup.return_value = TotpSetupResponse(
        secret="JBSWY3DPEHPK3PXP",
        otpUrl="otpauth://totp/gw:alice?secret=JBSWY3DPEHPK3PXP",
        qrPng="iVBORw0KGgo=",
    )
    api.totp_enable.return_value = OkResponse()
    api.totp_disable.return_value = OkResponse()
    return api


def _wrong_code() -> ValidationError:
    return ValidationError(code="HTTP_ERROR", message="invalid code", status_code=400)


@pytest.mark.asyncio
async def test_request_issues_secret_for_signed_in_user() -> None:
    flow = TotpEnrollmentFlow(_api(), _signed_in())

    state = await flow.request()

    assert isinstance(state, TotpSecretIssued)
    assert state.secret == "JBSWY3DPEHPK3PXP"
    assert state.otp_uri.startswith("otpauth://")
    assert state.qr_image == "iVBORw0KGgo="


@pytest.mark.asyncio
async def test_request_without_session_stays_idle() -> None:
    api = _api()
    flow = TotpEnrollmentFlow(api, FixedSession(Session(status=SessionStatus.ANONYMOUS)))

    state = await flow.request()

    assert state == TotpIdle(last_error=SIGN_IN_REQUIRED_MESSAGE)
    api.totp_setup.assert_not_awaited()


@pytest.mark.asyncio
async def test_wrong_code_keeps_the_same_secret_then_correct_code_enrolls() -> None:
    api = _api()
    api.totp_enable.side_effect = [_wrong_code(), OkResponse()]
    flow = TotpEnrollmentFlow(api, _signed_in())
    issued = await flow.request()

    retry = await flow.submit("000000")

    assert isinstance(retry, TotpSecretIssued)
    assert retry.secret == issued.secret
    assert retry.last_error == "invalid code"
    assert api.totp_setup.await_count == 1

    done = await flow.submit("123 456")

    assert done == TotpEnrolled()
    assert not hasattr(done, "secret")
    api.totp_enable.assert_awaited_with("JBSWY3DPEHPK3PXP", "123456")


@pytest.mark.asyncio
async def test_malformed_code_is_rejected_locally() -> None:
    api = _api()
    flow = TotpEnrollmentFlow(api, _signed_in())
    await flow.request()

    state = await flow.submit("12ab")

    assert isinstance(state, TotpSecretIssued)
    assert state.last_error == "The code must be 6 to 8 digits."
    api.totp_enable.assert_not_awaited()


@pytest.mark.asyncio
async def test_verifying_phase_carries_the_secret() -> None:
    release: asyncio.Future[OkResponse] = asyncio.get_running_loop().create_future()
    api = _api()
    async def _enable(secret: str, code: str) -> OkResponse:
        return await release

    api.totp_enable.side_effect = _enable
    flow = TotpEnrollmentFlow(api, _signed_in())
    await flow.request()

    pending = asyncio.ensure_future(flow.submit("123456"))
    await asyncio.sleep(0)
    assert isinstance(flow.state, TotpVerifying)
    assert flow.state.secret == "JBSWY3DPEHPK3PXP"

    release.set_result(OkResponse())
    assert isinstance(await pending, TotpEnrolled)


@pytest.mark.asyncio
async def test_expired_session_during_verification_fails_the_flow() -> None:
    api = _api()
    api.totp_enable.side_effect = AuthError(code="HTTP_ERROR", message="unauthorized", status_code=401)
    flow = TotpEnrollmentFlow(api, _signed_in())
    await flow.request()

    state = await flow.submit("123456")

    assert state == TotpFailed(last_error=SESSION_EXPIRED_MESSAGE)
    assert flow.cancel() == TotpIdle()


@pytest.mark.asyncio
async def test_cancel_and_close_discard_the_issued_secret() -> None:
    api = _api()
    flow = TotpEnrollmentFlow(api, _signed_in())
    await flow.request()

    assert flow.cancel() == TotpIdle()
    await flow.request()
    flow.close()

    assert flow.state == TotpIdle()
    assert flow.closed
    assert api.totp_setup.await_count == 2


@pytest.mark.asyncio
async def test_result_arriving_after_close_is_discarded() -> None:
    release: asyncio.Future[TotpSetupResponse] = asyncio.get_running_loop().create_future()
    api = _api()
    async def _setup() -> TotpSetupResponse:
        return await release

    api.totp_setup.side_effect = _setup
    flow = TotpEnrollmentFlow(api, _signed_in())

    pending = asyncio.ensure_future(flow.request())
    await asyncio.sleep(0)
    flow.close()
    release.set_result(TotpSetupResponse(secret="LATE", otpUrl="otpauth://totp/late"))

    assert await pending == TotpIdle()


@pytest.mark.asyncio
async def test_disable_clears_password_on_failure_and_success() -> None:
    api = _api()
    api.totp_disable.side_effect = [
        ValidationError(code="HTTP_ERROR", message="password invalid", status_code=400),
        OkResponse(),
    ]
    flow = TotpEnrollmentFlow(api, _signed_in(totp_enabled=True))
    assert flow.state == TotpEnrolled()

    failed = await flow.disable("wrong")
    assert failed == TotpEnrolled(last_error="password invalid")
    assert flow.disable_password == ""

    assert (await flow.disable()).last_error == "Enter your current password."

    done = await flow.disable("correct")
    assert done == TotpIdle()
    assert flow.disable_password == ""
    api.totp_disable.assert_awaited_with("correct")


@pytest.mark.asyncio
async def test_cancel_during_verification_drops_late_rejection() -> None:
    release: asyncio.Future[OkResponse] = asyncio.get_running_loop().create_future()
    api = _api()

    async def _enable(secret: str, code: str) -> OkResponse:
        return await release

    api.totp_enable.side_effect = _enable
    flow = TotpEnrollmentFlow(api, _signed_in())
    await flow.request()

    pending = asyncio.ensure_future(flow.submit("123456"))
    await asyncio.sleep(0)
    assert flow.cancel() == TotpIdle()
    release.set_exception(_wrong_code())

    assert await pending == TotpIdle()
    assert flow.state == TotpIdle()
    assert not flow.closed


@pytest.mark.asyncio
async def test_cancel_during_secret_request_drops_late_secret() -> None:
    release: asyncio.Future[TotpSetupResponse] = asyncio.get_running_loop().create_future()
    api = _api()

    async def _setup() -> TotpSetupResponse:
        return await release

    api.totp_setup.side_effect = _setup
    flow = TotpEnrollmentFlow(api, _signed_in())

    pending = asyncio.ensure_future(flow.request())
    await asyncio.sleep(0)
    flow.cancel()
    release.set_result(TotpSetupResponse(secret="LATE", otpUrl="otpauth://totp/late"))

    assert await pending == TotpIdle()
    assert isinstance(await flow.request(), TotpSecretIssued)
