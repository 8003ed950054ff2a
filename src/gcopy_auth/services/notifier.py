"""Delivery of one-time codes.

Builds the localized verification message and hands it to a ``Notifier``.
The SMTP implementation is the production channel; anything with a matching
``send`` method can replace it.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional, Protocol

import user_agents

from gcopy_auth.errors import DeliveryError

logger = logging.getLogger(__name__)

# ua-parser reports unrecognised families as "Other"
_UNKNOWN_FAMILY = "Other"


@dataclass(frozen=True)
class ClientDescriptor:
    """What the requesting client says about itself."""

    os: str = ""
    name: str = ""


def parse_user_agent(header: Optional[str]) -> ClientDescriptor:
    """Extract OS and application name from a User-Agent header."""
    if not header:
        return ClientDescriptor()
    agent = user_agents.parse(header)
    return ClientDescriptor(
        os=_family(agent.os.family),
        name=_family(agent.browser.family),
    )


def _family(value: Optional[str]) -> str:
    if not value or value == _UNKNOWN_FAMILY:
        return ""
    return value


def build_code_message(
    code: str, language: Optional[str], client: Optional[ClientDescriptor] = None
) -> tuple[str, str]:
    """Return (subject, html_body) for a verification code."""
    client = client or ClientDescriptor()
    if language and language.startswith("zh-CN"):
        subject = f"{code}是您的验证码"
        body = f"请输入您的验证码: {code}. 该验证码有效期5分钟. 为保护您的账户, 请不要分享这个验证码."
        origin_prefix = "请求自 "
    else:
        subject = f"{code} is your verification code"
        body = (
            f"Enter the verification code when prompted: {code}. "
            "Code will expire in 5 minutes. To protect your account, do not share this code."
        )
        origin_prefix = "Requested from "

    if client.os:
        body += "<br>" + origin_prefix + client.os
        if client.name:
            body += f" {client.name}"
        body += "."
    return subject, body


class Notifier(Protocol):
    """Outbound channel for verification codes."""

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Deliver a message. Raises DeliveryError on failure."""
        ...


class SMTPNotifier:
    """Send verification mails over SMTP."""

    def __init__(
        self,
        host: Optional[str],
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        sender_name: str = "GCopy",
        use_ssl: bool = False,
        timeout: float = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.sender_name = sender_name
        self.use_ssl = use_ssl
        self.timeout = timeout

        if not (self.host and self.sender):
            logger.warning(
                "SMTP not configured. Set SMTP_HOST and SMTP_SENDER (or SMTP_USERNAME) "
                "to enable verification mails."
            )

    def build_message(self, to_address: str, subject: str, html_body: str) -> MIMEText:
        msg = MIMEText(html_body, "html", "utf-8")
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = to_address
        msg["Subject"] = subject
        msg["Date"] = formatdate(usegmt=True)
        msg["Message-ID"] = make_msgid(domain=self.sender.rsplit("@", 1)[-1])
        return msg

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        if not (self.host and self.sender):
            raise DeliveryError("SMTP not configured")

        msg = self.build_message(to_address, subject, html_body)
        try:
            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with server:
                if not self.use_ssl:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send verification mail: {e}")
            raise DeliveryError(str(e)) from e
