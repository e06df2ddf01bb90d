from __future__ import annotations

from checkin.domain.ports.email_port import EmailPort, MailerPort

CODE_SUBJECT = "Your visitor registration code"
INVITATION_SUBJECT = "Please complete your visitor registration"


class Mailer(MailerPort):
    """Turns check-in events into mails on top of an EmailPort."""

    def __init__(self, email: EmailPort, *, code_ttl_minutes: int = 10) -> None:
        self._email = email
        self._code_ttl_minutes = code_ttl_minutes

    async def send_code(self, email: str, code: str) -> None:
        body = (
            f"Your verification code is {code}.\n"
            f"It is valid for {self._code_ttl_minutes} minutes."
        )
        await self._email.send(to=email, subject=CODE_SUBJECT, body=body)

    async def send_invitation(self, email: str, register_url: str) -> None:
        body = (
            "You have a meeting with us tomorrow.\n"
            f"Register before your visit: {register_url}"
        )
        # one invitation per link, so the relay can drop duplicates
        await self._email.send(
            to=email,
            subject=INVITATION_SUBJECT,
            body=body,
            idempotency_key=register_url,
        )
