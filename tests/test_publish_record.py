"""测试发布记录状态流转."""

import pytest

from contentfactory.models.article import PublishRecord


def _record(**fields) -> PublishRecord:
    return PublishRecord(article_id=1, platform="wechat", **fields)


class TestPublishRecord:
    """测试 PublishRecord 状态方法."""

    def test_publish(self) -> None:
        """发布成功记录时间和地址，清除错误."""
        record = _record(status="failed", error_message="超时")
        record.mark_published("https://mp.weixin.qq.com/s/abc")

        assert record.status == "published"
        assert record.published_url == "https://mp.weixin.qq.com/s/abc"
        assert record.published_at is not None
        assert record.error_message is None

    def test_retry_count_increases(self) -> None:
        """每次失败重试次数加一."""
        record = _record()
        record.mark_failed("第一次")
        record.mark_failed("第二次")

        assert record.status == "failed"
        assert record.retry_count == 2
        assert record.error_message == "第二次"

    def test_withdraw(self) -> None:
        """只有已发布的记录可以撤回."""
        record = _record()
        record.mark_published()
        record.mark_withdrawn()

        assert record.status == "withdrawn"
        assert record.withdrawn_at is not None

    def test_withdraw_unpublished(self) -> None:
        """未发布的记录不能撤回."""
        with pytest.raises(ValueError):
            _record().mark_withdrawn()

    def test_withdrawn_is_final(self) -> None:
        """撤回后不能再发布或标记失败."""
        record = _record()
        record.mark_published()
        record.mark_withdrawn()

        with pytest.raises(ValueError):
            record.mark_published()
        with pytest.raises(ValueError):
            record.mark_failed("x")

    def test_published_cannot_fail(self) -> None:
        """已发布的记录不能标记为失败."""
        record = _record()
        record.mark_published()

        with pytest.raises(ValueError):
            record.mark_failed("x")
