"""数据模型."""

from contentfactory.models.article import Article, PublishRecord
from contentfactory.models.database import close_db, get_session, init_db
from contentfactory.models.history import AnalysisResult, SearchHistory

__all__ = [
    "AnalysisResult",
    "Article",
    "PublishRecord",
    "SearchHistory",
    "close_db",
    "get_session",
    "init_db",
]
