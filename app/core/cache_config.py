"""Cache configuration and TTL settings"""
from app.core.config import settings

# Cache TTL (Time To Live) configurations in seconds
CACHE_TTL = {
    # Exam content - changes only when a course's question bank is republished
    "exam_definition": settings.QUESTION_BANK_CACHE_TTL,
}

# Cache key patterns
CACHE_KEYS = {
    "exam_definition": "exam:definition:course:{}",
}

# Cache invalidation patterns - what to clear when data changes
INVALIDATION_PATTERNS = {
    "exam_content_update": [
        "exam:definition:course:{}",
    ],
    "all_exam_content": [
        "exam:definition:course:*",
    ],
}
