"""
Shared test helpers: identities, tokens and a fake mail relay.
"""

from typing import Iterable, List, Optional

from sales_ledger.app.core.exceptions import NotificationError
from sales_ledger.app.core.jwt import create_access_token

ADMIN_SUB = "admin-sub-0001"
CUSTOMER_SUB = "customer-sub-0001"
OTHER_CUSTOMER_SUB = "customer-sub-0002"


class FakeEmailService:
    """Records outgoing mail instead of talking to an SMTP relay."""

    def __init__(self, fail: bool = False, fail_for: Iterable[str] = ()):
        self.fail = fail
        self.fail_for = set(fail_for)
        self.sent = []

    async def send(self, to_email, subject, text_content, html_content=None, attachments=None):
        if self.fail or to_email in self.fail_for:
            raise NotificationError("Email relay unreachable (ConnectionRefusedError)")
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "body": text_content,
            "attachments": list(attachments or []),
        })


def make_token(sub: str, groups: Optional[List[str]] = None, username: Optional[str] = None) -> str:
    return create_access_token(data={
        "sub": sub,
        "username": username or sub,
        "email": f"{username or sub}@example.com",
        "groups": groups or [],
    })


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
