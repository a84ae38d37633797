"""外部服务异常."""


class UpstreamError(Exception):
    """外部服务（AI、公众号接口）调用失败."""

    def __init__(self, message: str, status_code: int = 502, code: str = "UPSTREAM_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
