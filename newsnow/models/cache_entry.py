from sqlalchemy import BigInteger, Column, String, Text

from ..core.database import Base


class CacheEntry(Base):
    """Latest item batch for one news source, stored as a JSON text blob."""
    __tablename__ = "cache"

    id = Column(String, primary_key=True)
    updated = Column(BigInteger, nullable=False)  # ms since epoch
    data = Column(Text, nullable=False)
