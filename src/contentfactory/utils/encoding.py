"""乱码修复工具.

历史上一次重复编码导致部分中文被存成了固定的乱码序列。这里只做已知序列的
字面替换，不是通用的解码器，覆盖范围有限。
"""

from typing import Any

# 按顺序应用的替换表
REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("С����", "内容创作"),
    ("Ã©", "创"),
    ("Â", ""),
    ("Ã", ""),
)


def repair_text(text: str) -> str:
    """修复字符串中的已知乱码序列.

    每次替换都会让字符串变短，反复应用直到不再变化，
    因此 repair_text(repair_text(s)) == repair_text(s)。
    """
    if not text:
        return text

    previous = None
    while previous != text:
        previous = text
        for broken, fixed in REPLACEMENTS:
            text = text.replace(broken, fixed)
    return text


def repair_value(value: Any) -> Any:
    """递归修复 JSON 结构中所有字符串叶子节点，其它类型原样返回."""
    if isinstance(value, str):
        return repair_text(value)
    if isinstance(value, dict):
        return {key: repair_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [repair_value(item) for item in value]
    return value
