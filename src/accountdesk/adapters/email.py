"""ABOUTME: Outbound email adapters, one per delivery backend
ABOUTME: The console backend logs each message, the SMTP backend sends a multipart text and HTML message"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

from accountdesk.config import EmailCfg

logger = logging.getLogger(__name__)

# A bare address, or a (display name, address) pair
Address = str | tuple[str, str]

# How much of the text body the console backend shows
CONSOLE_PREVIEW_LENGTH = 400


def split_address(addr: Address) -> tuple[str, str]:
    """Return (display name, address). The name is "" for a bare address."""
    if isinstance(addr, tuple):
        return addr
    return ("", addr)


def format_address(addr: Address) -> str:
    """Header form of an address, e.g. 'Jo Bloggs <jo@example.com>'."""
    name, email = split_address(addr)
    return formataddr((name, email)) if name else email


def build_message(
    from_header: str, to: list[Address], subject: str, text_body: str, html_body: str | None
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    if from_header:
        msg["From"] = from_header
    msg["To"] = ", ".join(format_address(addr) for addr in to)
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


class EmailAdapter(ABC):
    """Delivers one message. Implementations report failure by returning False."""

    @abstractmethod
    def send_email(
        self,
        to: list[Address],
        subject: str,
        text_body: str,
        html_body: str | None = None,
        from_email: Address | None = None,
    ) -> bool:
        """
        Send a message to every address in `to`.

        Args:
            to: Recipients, as bare addresses or (name, address) pairs
            subject: Subject line
            text_body: Plain text body
            html_body: HTML alternative, if any
            from_email: Sender, the adapter's default when None

        Returns:
            True if the message was handed over for delivery
        """
        raise NotImplementedError


class ConsoleEmailAdapter(EmailAdapter):
    """Logs messages instead of sending them. Used in development."""

    def __init__(self, default_from_email: str = "no-reply@accountdesk.local") -> None:
        self.default_from_email = default_from_email

    def send_email(
        self,
        to: list[Address],
        subject: str,
        text_body: str,
        html_body: str | None = None,
        from_email: Address | None = None,
    ) -> bool:
        preview = text_body[:CONSOLE_PREVIEW_LENGTH]
        if len(text_body) > CONSOLE_PREVIEW_LENGTH:
            preview += "..."

        logger.info(
            "EMAIL (console)\n"
            f"  From: {format_address(from_email or self.default_from_email)}\n"
            f"  To: {', '.join(format_address(addr) for addr in to)}\n"
            f"  Subject: {subject}\n"
            f"  Has HTML: {'Yes' if html_body else 'No'}\n"
            f"  Body: {preview}"
        )
        return True


class SMTPEmailAdapter(EmailAdapter):
    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool = True,
        default_from_email: str = "",
        default_from_name: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_from_email = default_from_email
        self.default_from_name = default_from_name

    @classmethod
    def from_cfg(cls, email_cfg: EmailCfg) -> "SMTPEmailAdapter":
        return cls(
            host=email_cfg.host,
            port=email_cfg.port,
            username=email_cfg.username,
            password=email_cfg.password,
            use_tls=email_cfg.use_tls,
            default_from_email=email_cfg.from_email,
            default_from_name=email_cfg.from_name,
        )

    def send_email(
        self,
        to: list[Address],
        subject: str,
        text_body: str,
        html_body: str | None = None,
        from_email: Address | None = None,
    ) -> bool:
        """Send over SMTP. Returns False if the server refused the message or could not be reached."""
        sender = split_address(from_email) if from_email else (self.default_from_name, self.default_from_email)
        msg = build_message(format_address(sender), to, subject, text_body, html_body)
        # the envelope takes bare addresses
        envelope_to = [split_address(addr)[1] for addr in to]

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(sender[1], envelope_to, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending email to {', '.join(envelope_to)}: {e}")
            return False

        logger.info(f"Email sent to {len(envelope_to)} recipient(s) via {self.host}")
        return True


def get_email_adapter(email_cfg: EmailCfg) -> EmailAdapter:
    """Build the adapter named by the EMAIL_BACKEND setting."""
    if email_cfg.backend == "console":
        return ConsoleEmailAdapter(default_from_email=email_cfg.from_email)
    if email_cfg.backend == "smtp":
        return SMTPEmailAdapter.from_cfg(email_cfg)
    raise ValueError(f"Unknown email backend: {email_cfg.backend}")
