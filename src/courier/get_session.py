"""Interactive Telegram login and session string export."""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

from courier.client import build_client

LOGGER = logging.getLogger(__name__)

QR_LOGIN_TIMEOUT = 120

LOGIN_CHOICES = {"q": "qr", "p": "phone"}


def _print_qr(url: str) -> None:
    code = qrcode.QRCode(border=1)
    code.add_data(url)
    code.make(fit=True)
    code.print_ascii(invert=True)


def _two_step_password() -> str:
    password = os.getenv("TELEGRAM_2FA_PASSWORD")
    if password:
        return password
    return getpass("Account has a cloud password, enter it: ")


async def _login_with_qr(client: TelegramClient) -> None:
    login = await client.qr_login()
    print("Scan with Telegram > Settings > Devices > Link Desktop Device")
    _print_qr(login.url)
    await login.wait(timeout=QR_LOGIN_TIMEOUT)


async def _login_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("TELEGRAM_PHONE_NUMBER") or input("Account phone (+country code): ").strip()
    await client.send_code_request(phone)
    code = input(f"Code sent to {phone}: ").strip()
    try:
        await client.sign_in(phone=phone, code=code)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_two_step_password())


def _login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in LOGIN_CHOICES.values():
        return method
    if os.getenv("TELEGRAM_PHONE_NUMBER"):
        return "phone"
    while True:
        answer = input("Log the courier in with [q]r code or [p]hone code? (x to quit) ")
        answer = answer.strip().lower()[:1]
        if answer == "x":
            raise SystemExit(0)
        if answer in LOGIN_CHOICES:
            return LOGIN_CHOICES[answer]
        print("Type q, p or x.")


async def authorize(client: TelegramClient) -> None:
    """Log the client in unless the stored session is already authorized."""

    load_dotenv()
    if await client.is_user_authorized():
        return

    LOGGER.info("No authorized session, starting interactive login")
    login = _login_with_phone if _login_method() == "phone" else _login_with_qr
    try:
        await login(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_two_step_password())


def print_session_string(client: TelegramClient) -> None:
    """Write the session to stdout; it is a full account credential."""

    print("")
    print("Put this in TELEGRAM_SESSION to skip the login next time:")
    print(client.session.save())
    print("")


async def main() -> None:
    client = build_client()
    await client.connect()
    try:
        await authorize(client)
        me = await client.get_me()
        LOGGER.info("Logged in as %s", getattr(me, "username", None) or getattr(me, "id", "?"))
        print_session_string(client)
    finally:
        await client.disconnect()
