from __future__ import annotations

import asyncio
import getpass

from gateway_client_sdk.config import ConfigError

from account_console.app.config import ConsoleConfig
from account_console.app.console import AccountConsole, FlowUnavailableError
from account_console.app.flows.email_recovery import EmailCompleted, EmailRequested
from account_console.app.flows.sms_recovery import SmsCodeSent, SmsCompleted
from account_console.app.flows.totp_enrollment import TotpEnrolled, TotpIdle, TotpSecretIssued
from account_console.app.infrastructure.logging.logger import get_logger

MENU_LABELS = {
    "login": "Sign in",
    "password_change": "Change password",
    "totp": "Two-factor authentication (TOTP)",
    "email_recovery": "Reset password by email",
    "sms_recovery": "Reset password by SMS",
    "signup": "Sign up",
    "admin": "Gateway administration",
}


async def _ask(prompt: str, secret: bool = False) -> str:
    reader = getpass.getpass if secret else input
    return (await asyncio.to_thread(reader, prompt)).strip()


def _print_status(console: AccountConsole) -> None:
    session = console.session
    who = session.username if session.is_authenticated else "anonymous"
    role = f" ({session.role})" if session.role else ""
    print(f"Session: {session.status.value} as {who}{role}")


def _print_result(phase: str, message: str | None) -> None:
    print(f"-> {phase}" + (f": {message}" if message else ""))


async def _login(console: AccountConsole) -> None:
    flow = console.open_login_flow()
    state = await flow.submit(await _ask("Username: "), await _ask("Password: ", secret=True))
    _print_result(state.phase, flow.last_error)


async def _password_change(console: AccountConsole) -> None:
    flow = console.open_password_change_flow()
    state = await flow.change(
        await _ask("Current password: ", secret=True),
        await _ask("New password: ", secret=True),
        await _ask("Repeat new password: ", secret=True),
    )
    _print_result(state.phase, flow.last_error or ("Password changed." if state.phase == "changed" else None))


async def _totp(console: AccountConsole) -> None:
    flow = console.open_totp_flow()
    if isinstance(flow.state, TotpEnrolled):
        state = await flow.disable(await _ask("Current password to disable TOTP: ", secret=True))
        _print_result(state.phase, flow.last_error)
        await console.session_store.check()
        return

    state = await flow.request()
    while isinstance(state, TotpSecretIssued):
        if state.last_error:
            print(f"[ERROR] {state.last_error}")
        print(f"Secret: {state.secret}")
        print(f"URI: {state.otp_uri}")
        code = await _ask("Code from authenticator (empty to cancel): ")
        if not code:
            state = flow.cancel()
            break
        state = await flow.submit(code)
    _print_result(state.phase, flow.last_error)
    if isinstance(state, TotpEnrolled):
        await console.session_store.check()
    elif isinstance(state, TotpIdle) and not state.last_error:
        print("Enrollment cancelled; the issued secret was discarded.")


async def _email_recovery(console: AccountConsole) -> None:
    flow = console.open_email_recovery_flow()
    state = await flow.request_reset(await _ask("Username or email: "))
    while isinstance(state, EmailRequested):
        print(state.last_error and f"[ERROR] {state.last_error}" or state.notice)
        token = await _ask("Reset token (empty to stop): ")
        if not token:
            break
        state = await flow.confirm(
            await _ask("New password: ", secret=True),
            await _ask("Repeat new password: ", secret=True),
            token=token,
        )
    _print_result(state.phase, flow.last_error or ("Password reset." if isinstance(state, EmailCompleted) else None))


async def _sms_recovery(console: AccountConsole) -> None:
    flow = console.open_sms_recovery_flow()
    state = await flow.request_code(await _ask("Phone number: "))
    while isinstance(state, SmsCodeSent):
        print(state.last_error and f"[ERROR] {state.last_error}" or state.notice)
        code = await _ask("SMS code ('r' to resend, empty to stop): ")
        if not code:
            break
        if code.lower() == "r":
            state = await flow.resend()
            continue
        state = await flow.confirm(
            await _ask("New password: ", secret=True),
            await _ask("Repeat new password: ", secret=True),
            code=code,
        )
    _print_result(state.phase, flow.last_error or ("Password reset." if isinstance(state, SmsCompleted) else None))


async def _signup(console: AccountConsole) -> None:
    flow = console.open_signup_flow()
    username = None if flow.username_is_email else await _ask("Username: ")
    state = await flow.submit(
        username,
        await _ask("Email: "),
        await _ask("Password: ", secret=True),
        await _ask("Repeat password: ", secret=True),
    )
    status = getattr(state, "status", None)
    _print_result(state.phase, flow.last_error or (f"status={status}" if status else None))


async def _admin(console: AccountConsole) -> None:
    actions = console.open_admin_actions()
    choice = await _ask("1) Reload config  2) Restart gateway  3) Send test email  4) Send test SMS: ")
    if choice == "1":
        result = await actions.reload_config()
    elif choice == "3":
        result = await actions.send_test_email(await _ask("Recipient email: "))
    elif choice == "4":
        result = await actions.send_test_sms(await _ask("Recipient phone: "))
    elif choice == "2":
        print("Restarting, waiting for the gateway to come back...")
        result = await actions.restart_and_wait(
            console.config.poll_interval_ms,
            timeout_seconds=console.config.restart_timeout,
        )
    else:
        return
    print(("OK " if result.ok else "[ERROR] ") + result.message)


HANDLERS = {
    "login": _login,
    "password_change": _password_change,
    "totp": _totp,
    "email_recovery": _email_recovery,
    "sms_recovery": _sms_recovery,
    "signup": _signup,
    "admin": _admin,
}


async def run(console: AccountConsole) -> None:
    await console.mount()
    try:
        while True:
            _print_status(console)
            available = [name for name, enabled in console.available_flows().items() if enabled]
            for index, name in enumerate(available, start=1):
                print(f"{index}) {MENU_LABELS[name]}")
            if console.session.is_authenticated:
                print("s) Sign out")
            print("q) Quit")

            choice = (await _ask("> ")).lower()
            if choice == "q":
                return
            if choice == "s" and console.session.is_authenticated:
                redirect_url = await console.sign_out()
                print(f"Signed out. Continue at {redirect_url}" if redirect_url else "Signed out.")
                continue
            if not choice.isdigit() or not 1 <= int(choice) <= len(available):
                print("Unknown option.")
                continue
            try:
                await HANDLERS[available[int(choice) - 1]](console)
            except FlowUnavailableError as error:
                print(f"[ERROR] {error}")
    finally:
        await console.aclose()


def main() -> None:
    try:
        config = ConsoleConfig.from_env()
    except ConfigError as error:
        print(f"[ERROR] {error}")
        raise SystemExit(2) from error
    get_logger("account_console", config.log_level)
    asyncio.run(run(AccountConsole.from_config(config)))


if __name__ == "__main__":
    main()
