from sqlalchemy import Column, String, Index

from hackportal.core.database import Base


class RegistrationRecord(Base):
    """Ledger row; the team_number primary key backs the one-registration-per-team rule"""
    __tablename__ = "registrations"

    __table_args__ = (
        Index('ix_registrations_problem_statement_id', 'problem_statement_id'),  # Capacity counts
    )

    team_number = Column(String(100), primary_key=True)
    team_name = Column(String(255), nullable=False)
    team_leader = Column(String(255), nullable=False)
    # No foreign key: statement deletion cascades explicitly in the store transaction
    problem_statement_id = Column(String(100), nullable=False)
    registration_date_time = Column(String(40), nullable=False)

    def __repr__(self):
        return f"<RegistrationRecord {self.team_number} -> {self.problem_statement_id}>"
