"""SQLAlchemy table for account documents."""

from sqlalchemy import Boolean, Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DBAccount(Base):
    """One row per account; see :class:`pos_accounts.domain.Account`."""

    __tablename__ = 'accounts'

    account_id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default='')
    last_name = Column(String(100), nullable=False, default='')
    role = Column(String(16), nullable=False, default='customer')
    status = Column(String(16), nullable=False, default='active')
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), nullable=True)
    token_expiry = Column(DateTime, nullable=True)
    """Naive UTC."""

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('ix_accounts_verification_token', 'verification_token'),
    )
