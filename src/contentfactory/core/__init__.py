"""核心业务逻辑."""

from contentfactory.core.canonical import CompleteAnalysisResult, build_complete_result
from contentfactory.core.insights import collect_keywords, normalize_insights, resolve_topic_insights

__all__ = [
    "CompleteAnalysisResult",
    "build_complete_result",
    "collect_keywords",
    "normalize_insights",
    "resolve_topic_insights",
]
