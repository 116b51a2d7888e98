from sqlalchemy import Column, String, DateTime, Boolean, Float, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ...core.database import Base, generate_uuid

DEFAULT_TOOLS = [
    {"type": "code_interpreter", "enabled": False},
    {"type": "file_search", "enabled": False},
]


class Assistant(Base):
    __tablename__ = "assistants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    openai_assistant_id = Column(String(100), nullable=True, index=True)
    vector_store_id = Column(String(100), nullable=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    system_prompt = Column(Text, nullable=True)
    model = Column(String(50), nullable=False, default="gpt-4o")
    temperature = Column(Float, nullable=False, default=0.7)
    tools = Column(JSON, nullable=False, default=lambda: [dict(t) for t in DEFAULT_TOOLS])
    files = Column(JSON, nullable=False, default=list)  # [{id, name, path}]
    is_active = Column(Boolean, nullable=False, default=True)
    # Публичный чат /api/widget/{id}/chat открыт только после генерации виджета
    widget_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    conversations = relationship(
        "Conversation", back_populates="assistant", cascade="all, delete-orphan"
    )
    google_docs = relationship(
        "GoogleDocsDocument", back_populates="assistant", cascade="all, delete-orphan"
    )
    knowledge_entries = relationship(
        "KnowledgeBaseEntry", back_populates="assistant", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Assistant {self.id} - {self.name}>"
