from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from licensegate.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)

    licenses = relationship("License", back_populates="owner")

    def __repr__(self):
        return f"<User {self.email}>"
