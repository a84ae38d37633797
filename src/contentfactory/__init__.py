"""内容工厂：公众号/小红书内容分析与发布服务."""

__version__ = "0.1.0"
