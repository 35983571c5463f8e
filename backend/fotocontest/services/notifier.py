from __future__ import annotations
import asyncio
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from typing import Protocol
import structlog
from fotocontest.config import settings
from fotocontest.errors import NotificationError

log = structlog.get_logger()

SUBJECT = "Bestätigen Sie Ihre Stimme beim Foto Contest"


class Notifier(Protocol):
    # False when send() only records the link; callers then hand the URL back directly.
    delivers_out_of_band: bool

    async def send(self, email: str, confirmation_url: str) -> None:
        ...


class LoggingNotifier:
    """Dev notifier: writes the confirmation link to the log instead of mailing it."""

    delivers_out_of_band = False

    async def send(self, email: str, confirmation_url: str) -> None:
        log.info("confirmation_email_simulated", to=email, subject=SUBJECT, confirmation_url=confirmation_url)


def render_confirmation_email(sender: str, to: str, confirmation_url: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = SUBJECT
    msg.set_content(
        "Vielen Dank für Ihre Teilnahme am Foto Contest!\n\n"
        "Bitte öffnen Sie den folgenden Link, um Ihre Stimme zu bestätigen:\n"
        f"{confirmation_url}\n\n"
        "Der Link ist eine Stunde gültig.\n"
        "Wenn Sie diese E-Mail nicht angefordert haben, können Sie sie ignorieren.\n"
    )
    msg.add_alternative(
        f"""\
<h1>Vielen Dank für Ihre Teilnahme am Foto Contest!</h1>
<p>Bitte klicken Sie auf den folgenden Link, um Ihre Stimme zu bestätigen:</p>
<p><a href="{confirmation_url}" style="padding: 10px 20px; background-color: #4CAF50; color: white; text-decoration: none; border-radius: 5px;">Stimme bestätigen</a></p>
<p>Oder kopieren Sie diesen Link in Ihren Browser:</p>
<p>{confirmation_url}</p>
<p>Der Link ist eine Stunde gültig.</p>
<p>Wenn Sie diese E-Mail nicht angefordert haben, können Sie sie ignorieren.</p>
""",
        subtype="html",
    )
    return msg


class SmtpNotifier:
    delivers_out_of_band = True

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
            client.starttls()
            if self.username:
                client.login(self.username, self.password)
            client.send_message(msg)

    async def send(self, email: str, confirmation_url: str) -> None:
        msg = render_confirmation_email(self.sender, email, confirmation_url)
        try:
            # smtplib blocks; keep it off the event loop
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            log.warning("smtp_send_failed", host=self.host, error=str(e))
            raise NotificationError("Could not deliver confirmation email") from e
        log.info("confirmation_email_sent", to=email)


def build_notifier(kind: str | None = None) -> Notifier:
    kind = kind or settings.notifier
    if kind == "smtp":
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
            timeout=settings.smtp_timeout_seconds,
        )
    if kind == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown notifier: {kind!r}")


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    return build_notifier()
