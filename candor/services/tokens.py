from __future__ import annotations

import base64
import secrets
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from candor.models.issue import Issue
from candor.models.token import AnonymousToken
from candor.utils.time import utcnow

TOKEN_BYTES = 32


def generate_anonymous_token() -> str:
    """32 random bytes, base64url without padding (43 characters)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(TOKEN_BYTES)).rstrip(b"=").decode("ascii")


class AnonymousTokenService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def issue_token(self, *, issue: Issue, ttl_days: int = 90) -> AnonymousToken:
        record = AnonymousToken(
            token=issue.anonymous_token,
            issue=issue,
            expires_at=utcnow() + timedelta(days=ttl_days),
        )
        self.session.add(record)
        self.session.flush()
        logger.debug("Stored anonymous token for issue id={issue_id}", issue_id=issue.id)
        return record

    def count_expired(self, now: datetime | None = None) -> int:
        cutoff = now or utcnow()
        stmt = select(func.count()).select_from(AnonymousToken).where(AnonymousToken.expires_at <= cutoff)
        return self.session.scalar(stmt) or 0

    def purge_expired(self, now: datetime | None = None) -> int:
        """Drop expired token rows. The issue's own anonymous_token stays usable."""
        cutoff = now or utcnow()
        result = self.session.execute(
            delete(AnonymousToken)
            .where(AnonymousToken.expires_at <= cutoff)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            logger.info("Purged {count} expired anonymous tokens", count=removed)
        return removed
