from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.message import EmailMessage


def _send_email_sync(
    message: EmailMessage,
    host: str,
    port: int,
    username: str,
    password: str,
    timeout: float,
) -> None:
    context = ssl.create_default_context()
    with smtplib.SMTP(host, port, timeout=timeout) as server:
        server.starttls(context=context)
        server.login(username, password)
        server.send_message(message)


def _verify_connection_sync(
    host: str, port: int, username: str, password: str, timeout: float
) -> None:
    context = ssl.create_default_context()
    with smtplib.SMTP(host, port, timeout=timeout) as server:
        server.starttls(context=context)
        server.login(username, password)
        server.noop()


async def send_email(
    message: EmailMessage,
    *,
    host: str,
    port: int,
    username: str,
    password: str,
    timeout: float = 30.0,
) -> None:
    """Deliver one message over STARTTLS. Single attempt; errors propagate."""
    await asyncio.to_thread(
        _send_email_sync, message, host, port, username, password, timeout
    )


async def verify_connection(
    *, host: str, port: int, username: str, password: str, timeout: float = 10.0
) -> None:
    """Open, upgrade and authenticate an SMTP session without sending anything."""
    await asyncio.to_thread(
        _verify_connection_sync, host, port, username, password, timeout
    )
