from sqlalchemy import Column, String, Integer, Text, JSON

from hackportal.core.database import Base


class ProblemStatementRecord(Base):
    """Catalog row"""
    __tablename__ = "problem_statements"

    id = Column(String(100), primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    max_selections = Column(Integer, nullable=False, default=1)
    category = Column(String(255), nullable=True)
    difficulty = Column(String(100), nullable=True)
    technologies = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<ProblemStatementRecord {self.id} max={self.max_selections}>"
