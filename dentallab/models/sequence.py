"""
Per-(prefix, year) counters used to mint order numbers
"""

from sqlalchemy import Column, Integer, String

from dentallab.database import Base


class Sequence(Base):
    __tablename__ = "sequences"

    id = Column(String(20), primary_key=True)  # "<PREFIX>-<YY>"
    seq = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Sequence(id='{self.id}', seq={self.seq})>"
