from sqlalchemy import BigInteger, Column, String, Text

from ..core.database import Base


class UserAccount(Base):
    __tablename__ = "user"

    id = Column(String, primary_key=True, index=True)
    email = Column(String)
    data = Column(Text)
    type = Column(String)
    created = Column(BigInteger)
    updated = Column(BigInteger)
