"""
AI-анализ документов базы знаний: краткое содержание, ключевые пункты, темы
"""
import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.config import settings
from .openai_service import OpenAIService, OpenAIServiceError

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 4000
MAX_KEY_POINTS = 5
MAX_TOPICS = 8
WORDS_PER_MINUTE = 200

DOCUMENT_TYPES = ("meeting", "report", "plan", "specification", "general", "proposal")
IMPORTANCE_LEVELS = ("high", "medium", "low")

COMMON_TOPICS = [
    'проект', 'планирование', 'разработка', 'дизайн', 'техническое', 'документация',
    'meeting', 'project', 'planning', 'development', 'design', 'technical', 'documentation',
    'бизнес', 'стратегия', 'анализ', 'исследование', 'отчет', 'презентация',
    'business', 'strategy', 'analysis', 'research', 'report', 'presentation',
    'управление', 'процесс', 'workflow', 'задачи', 'цели', 'результаты',
    'management', 'process', 'tasks', 'goals', 'results', 'requirements',
]

SYSTEM_PROMPT = (
    "You are an expert document analyzer. Extract key information efficiently "
    "and provide structured, concise outputs. Focus on the most important content "
    "to minimize storage needs."
)

ANALYSIS_PROMPT = """Analyze the following document and extract key information in a structured format.

Document Title: "{title}"
Content: "{content}" {truncated}

Please provide:
1. A concise summary (2-3 sentences max)
2. Top 5 key points or main ideas
3. Relevant topics/tags (max 8)
4. Document type classification
5. Overall importance level

Respond in JSON format:
{{
  "summary": "Brief summary here",
  "keyPoints": ["point 1", "point 2", ...],
  "topics": ["topic1", "topic2", ...],
  "documentType": "meeting|report|plan|specification|general|proposal",
  "importance": "high|medium|low"
}}"""


@dataclass
class DocumentAnalysis:
    summary: str
    key_points: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    word_count: int = 0
    estimated_read_time: int = 0
    document_type: str = "general"
    importance: str = "medium"
    source: str = "basic"  # basic | ai

    @property
    def metadata(self) -> dict:
        return {
            "wordCount": self.word_count,
            "estimatedReadTime": self.estimated_read_time,
            "documentType": self.document_type,
            "importance": self.importance,
            "analysis": self.source,
        }

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "keyPoints": self.key_points,
            "topics": self.topics,
            "metadata": self.metadata,
        }


def count_words(content: str) -> int:
    return len(content.split())


def estimate_read_time(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


def detect_document_type(content: str) -> str:
    text = content.lower()
    if 'meeting' in text or 'agenda' in text:
        return 'meeting'
    if 'requirement' in text or 'specification' in text:
        return 'specification'
    if 'report' in text or 'analysis' in text:
        return 'report'
    if 'proposal' in text or 'plan' in text:
        return 'plan'
    return 'general'


def assess_importance(content: str, word_count: int) -> str:
    text = content.lower()
    if word_count > 2000 or 'critical' in text or 'urgent' in text:
        return 'high'
    if word_count < 500:
        return 'low'
    return 'medium'


def extract_summary(content: str) -> str:
    """Первые два предложения длиннее 10 символов, не больше 300 символов"""
    sentences = [s.strip() for s in re.split(r'[.!?]+', content) if len(s.strip()) > 10]
    summary = '. '.join(sentences[:2])[:300]
    if len(sentences) > 2:
        summary += '...'
    return summary


def extract_key_points(content: str, title: str) -> List[str]:
    key_points = re.findall(r'\d+[.)]\s+[^\n]+', content)[:3]
    key_points += re.findall(r'[-•*]\s+[^\n]+', content)[:2]
    key_points = [p.strip() for p in key_points]
    if not key_points:
        key_points = [title]
    return key_points[:MAX_KEY_POINTS]


def extract_topics(content: str) -> List[str]:
    text = content.lower()
    return [topic for topic in COMMON_TOPICS if topic in text][:MAX_TOPICS]


def basic_analysis(content: str, title: str) -> DocumentAnalysis:
    """Анализ без AI, по структуре и ключевым словам текста"""
    word_count = count_words(content)
    return DocumentAnalysis(
        summary=extract_summary(content),
        key_points=extract_key_points(content, title),
        topics=extract_topics(content),
        word_count=word_count,
        estimated_read_time=estimate_read_time(word_count),
        document_type=detect_document_type(content),
        importance=assess_importance(content, word_count),
        source="basic",
    )


def parse_ai_response(raw: str) -> Optional[dict]:
    """JSON из ответа модели; модель иногда оборачивает его в ```json"""
    if not raw:
        return None
    text = raw.strip()
    fenced = re.search(r'```(?:json)?\s*(\{.*\})\s*```', text, re.DOTALL)
    if fenced:
        text = fenced.group(1)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class AIAnalyzer:
    """Анализатор документов через OpenAI с откатом на basic_analysis"""

    def __init__(self, openai_service: Optional[OpenAIService] = None, model: Optional[str] = None):
        self.openai = openai_service or OpenAIService()
        self.model = model or settings.SUMMARY_MODEL

    async def analyze_document(self, content: str, title: str) -> DocumentAnalysis:
        if not self.openai.is_configured:
            return basic_analysis(content, title)

        prompt = ANALYSIS_PROMPT.format(
            title=title,
            content=content[:MAX_CONTENT_CHARS],
            truncated="...(truncated)" if len(content) > MAX_CONTENT_CHARS else "",
        )
        try:
            raw = await self.openai.chat_completion(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                temperature=0.3,
                max_tokens=800,
            )
        except OpenAIServiceError as e:
            logger.warning(f"⚠️ AI-анализ не удался, используем базовый: {e}")
            return basic_analysis(content, title)

        parsed = parse_ai_response(raw)
        if parsed is None:
            logger.info("Failed to parse AI response, using basic analysis")
            return basic_analysis(content, title)

        word_count = count_words(content)
        key_points = parsed.get("keyPoints")
        topics = parsed.get("topics")
        document_type = parsed.get("documentType")
        importance = parsed.get("importance")
        return DocumentAnalysis(
            summary=str(parsed.get("summary") or ""),
            key_points=[str(p) for p in key_points[:MAX_KEY_POINTS]] if isinstance(key_points, list) else [],
            topics=[str(t) for t in topics[:MAX_TOPICS]] if isinstance(topics, list) else [],
            word_count=word_count,
            estimated_read_time=estimate_read_time(word_count),
            document_type=document_type if document_type in DOCUMENT_TYPES else "general",
            importance=importance if importance in IMPORTANCE_LEVELS else "medium",
            source="ai",
        )


def build_knowledge_text(title: str, analysis: DocumentAnalysis, content: str) -> str:
    """Текст, который загружается в vector store ассистента"""
    lines = [f"# {title}", ""]
    if analysis.summary:
        lines += ["## Summary", analysis.summary, ""]
    if analysis.key_points:
        lines += ["## Key points"] + [f"- {p}" for p in analysis.key_points] + [""]
    if analysis.topics:
        lines += ["## Topics", ", ".join(analysis.topics), ""]
    lines += ["## Content", content]
    return "\n".join(lines)
