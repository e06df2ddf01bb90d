class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class RateLimited(DomainError):
    """A code was sent too recently for this email; the caller has to wait."""

    pass


class NotFound(DomainError):
    """The code, token or stash is absent or expired; the flow must restart."""

    pass


class CodeNotFound(NotFound):
    """No one-time code is stored for the email (never issued or expired)."""

    pass


class TokenNotFound(NotFound):
    """Invitation token unknown or expired."""

    pass


class Mismatch(DomainError):
    """Wrong code, or token/email pairing; retry is allowed until expiry."""

    pass


class CodeMismatch(Mismatch):
    pass


class TokenEmailMismatch(Mismatch):
    pass


class ExternalUnavailable(DomainError):
    """Mail relay or external verifier could not be reached or refused the call."""

    pass


class MalformedCredential(DomainError):
    """The identity token returned by the verifier could not be parsed."""

    pass
