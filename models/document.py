from sqlalchemy import Column, DateTime, JSON, String, func

from database import Base


class Document(Base):
    __tablename__ = "documents"

    # Full slash-separated path, e.g. "artifacts/app/users/u1/loanApplications/abc".
    path = Column(String(1024), primary_key=True)
    parent = Column(String(1024), nullable=False, index=True)
    doc_id = Column(String(128), nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
