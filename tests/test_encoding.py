"""测试乱码修复."""

from contentfactory.utils.encoding import REPLACEMENTS, repair_text, repair_value

BROKEN_CREATION = REPLACEMENTS[0][0]


class TestRepairText:
    """测试 repair_text."""

    def test_known_sequences(self) -> None:
        """替换已知乱码序列."""
        assert repair_text(f"{BROKEN_CREATION}指南") == "内容创作指南"
        assert repair_text("原Ã©") == "原创"
        assert repair_text("Â露营Ã") == "露营"

    def test_clean_text_unchanged(self) -> None:
        """正常文本保持不变."""
        assert repair_text("内容创作") == "内容创作"
        assert repair_text("") == ""

    def test_idempotent(self) -> None:
        """重复修复结果不变."""
        samples = ["ÃÂ©", "ÃÃ©©", f"Â{BROKEN_CREATION}Ã©", "普通文本"]
        for sample in samples:
            once = repair_text(sample)
            assert repair_text(once) == once


class TestRepairValue:
    """测试 repair_value."""

    def test_recurses_into_structures(self) -> None:
        """递归修复字典和数组中的字符串."""
        value = {
            "keyword": "Ã©作",
            "items": [{"title": f"{BROKEN_CREATION}"}, "Â标签"],
            "count": 3,
            "ratio": 0.5,
            "flag": True,
            "empty": None,
        }
        assert repair_value(value) == {
            "keyword": "创作",
            "items": [{"title": "内容创作"}, "标签"],
            "count": 3,
            "ratio": 0.5,
            "flag": True,
            "empty": None,
        }

    def test_keys_untouched(self) -> None:
        """字典的键不做修改."""
        assert repair_value({"Â": "Â"}) == {"Â": ""}

    def test_scalars(self) -> None:
        """非字符串标量原样返回."""
        assert repair_value(42) == 42
        assert repair_value(None) is None
