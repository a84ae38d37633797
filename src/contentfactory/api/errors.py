"""API 错误."""

from typing import Any

from fastapi import HTTPException


class ApiError(HTTPException):
    """带机器可读错误码的 HTTP 错误."""

    def __init__(self, status_code: int, detail: str, code: str = "ERROR", **extra: Any) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.extra = extra


def not_found(detail: str) -> ApiError:
    return ApiError(404, detail, "NOT_FOUND")


def bad_request(detail: str, code: str = "INVALID_PARAMETER") -> ApiError:
    return ApiError(400, detail, code)


def parse_id(value: str, detail: str = "无效的ID") -> int:
    """解析路径中的整数 ID."""
    try:
        return int(value)
    except ValueError:
        raise bad_request(detail) from None
