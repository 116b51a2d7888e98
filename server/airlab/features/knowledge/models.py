from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ...core.database import Base, generate_uuid


class GoogleDocsDocument(Base):
    """Google Doc, подключённый к ассистенту"""
    __tablename__ = "google_docs_documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assistant_id = Column(String(36), ForeignKey("assistants.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    url = Column(String(1000), nullable=False)
    content = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="processing")  # processing | completed | error
    error_message = Column(Text, nullable=True)
    openai_file_id = Column(String(100), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assistant = relationship("Assistant", back_populates="google_docs")

    @property
    def content_length(self):
        return len(self.content) if self.content else 0

    def __repr__(self):
        return f"<GoogleDocsDocument {self.id} [{self.status}]>"


class KnowledgeBaseEntry(Base):
    """Документ в vector store ассистента вместе с его AI-анализом"""
    __tablename__ = "knowledge_base"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assistant_id = Column(String(36), ForeignKey("assistants.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    source_type = Column(String(20), nullable=False)  # file | google_doc | text
    source_id = Column(String(100), nullable=True)
    openai_file_id = Column(String(100), nullable=True)
    vector_store_id = Column(String(100), nullable=True)
    content = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    key_points = Column(JSON, nullable=False, default=list)
    topics = Column(JSON, nullable=False, default=list)
    # "metadata" зарезервировано в declarative
    meta = Column("metadata", JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assistant = relationship("Assistant", back_populates="knowledge_entries")

    def __repr__(self):
        return f"<KnowledgeBaseEntry {self.id} {self.source_type}>"
