"""HTML 解析工具."""

import math
import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_IMG_SRC_RE = re.compile(r'src="([^"]*\.(?:jpg|jpeg|png|gif|webp))"', re.IGNORECASE)


def collapse_whitespace(text: str) -> str:
    """合并连续空白为单个空格."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def html_to_plain(html: str) -> str:
    """
    将 HTML 转换为单行纯文本.

    Args:
        html: HTML 内容

    Returns:
        去除标签并合并空白后的文本
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "lxml")

    for element in soup(["script", "style"]):
        element.decompose()

    return collapse_whitespace(soup.get_text(separator=" "))


def derive_plain_content(content: str, html_content: str | None = None) -> str:
    """生成用于搜索的纯文本，有 HTML 时以 HTML 为准."""
    if html_content:
        return html_to_plain(html_content)
    return collapse_whitespace(content or "")


def extract_first_image(html: str) -> str | None:
    """
    提取 HTML 中的第一张图片 URL.

    Args:
        html: HTML 内容

    Returns:
        图片 URL 或 None
    """
    if not html:
        return None

    soup = BeautifulSoup(html, "lxml")
    img = soup.find("img")

    if img and img.get("src"):
        src = img["src"]
        # 确保是字符串
        if isinstance(src, list):
            src = src[0] if src else None
        return src if src else None

    return None


def absolutize_image_urls(html: str, base_url: str = "") -> str:
    """把相对路径的图片地址转换成绝对路径."""

    def _replace(match: re.Match[str]) -> str:
        path = match.group(1)
        if path.startswith("http"):
            return match.group(0)
        absolute = f"{base_url.rstrip('/')}/{path.lstrip('/')}" if base_url else f"/{path.lstrip('/')}"
        return f'src="{absolute}"'

    return _IMG_SRC_RE.sub(_replace, html)


def estimate_reading_time(text: str, chars_per_minute: int = 300) -> int:
    """
    估算阅读时间（分钟）.

    按字符计数，去掉 Markdown 标记后每分钟 300 字，向上取整。
    """
    cleaned = re.sub(r"[#*`\[\]]", "", text or "")
    return math.ceil(len(cleaned) / chars_per_minute)
