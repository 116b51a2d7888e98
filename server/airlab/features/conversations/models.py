from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ...core.database import Base, generate_uuid


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assistant_id = Column(String(36), ForeignKey("assistants.id", ondelete="CASCADE"), nullable=False, index=True)
    openai_thread_id = Column(String(100), nullable=True)
    # Диалоги из мессенджеров привязаны к интеграции
    integration_id = Column(String(36), ForeignKey("integrations.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(500), nullable=False, default="New conversation")
    messages = Column(JSON, nullable=False, default=list)  # [{id, role, content, timestamp}]
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assistant = relationship("Assistant", back_populates="conversations")

    def __repr__(self):
        return f"<Conversation {self.id} - {self.title}>"


class ChatLog(Base):
    """Журнал сообщений для аналитики и аудита"""
    __tablename__ = "chat_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=True, index=True)
    assistant_id = Column(String(36), nullable=True, index=True)
    session_id = Column(String(100), nullable=True)
    action = Column(String(50), nullable=False)  # message_sent | message_received
    message_id = Column(String(100), nullable=True)
    message_content = Column(Text, nullable=True)
    message_role = Column(String(20), nullable=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ChatLog {self.action} {self.message_id}>"
