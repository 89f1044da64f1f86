import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from licensegate.clock import utcnow
from licensegate.db.base_class import Base


class LicenseStatus(str, enum.Enum):
    UNUSED = "unused"
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


# statuses from which an activation may bind (or re-confirm) a domain
BINDABLE_STATUSES = (LicenseStatus.UNUSED.value, LicenseStatus.ACTIVE.value)


class License(Base):
    __tablename__ = "licenses"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(64), unique=True, index=True, nullable=False)
    product_name = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(16), nullable=False, default=LicenseStatus.UNUSED.value)
    notes = Column(Text, nullable=True)
    domain = Column(String(253), index=True, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="licenses", lazy="selectin")

    def is_expired(self, now: datetime) -> bool:
        """True when ``expires_at`` has passed, whatever ``status`` says."""
        return self.expires_at is not None and self.expires_at <= now

    def display_status(self, now: datetime) -> str:
        if self.status == LicenseStatus.REVOKED.value:
            return self.status
        if self.is_expired(now):
            return LicenseStatus.EXPIRED.value
        return self.status

    def __repr__(self):
        return f"<License {self.key} {self.status} domain={self.domain}>"
