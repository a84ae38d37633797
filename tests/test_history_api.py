"""测试搜索历史 API."""

from datetime import datetime, timedelta

from httpx import AsyncClient
from sqlmodel import select

from contentfactory.main import app
from contentfactory.models.database import get_session
from contentfactory.models.history import AnalysisResult, SearchHistory


class TestListHistory:
    """测试 GET /api/history."""

    async def test_pagination(self, client: AsyncClient, make_history) -> None:
        """按搜索时间倒序分页."""
        now = datetime.utcnow()
        for i in range(5):
            await make_history(keyword=f"关键词{i}", search_time=now - timedelta(minutes=i))

        response = await client.get("/api/history", params={"page": 2, "limit": 2})
        assert response.status_code == 200
        data = response.json()

        assert data["success"] is True
        assert [item["keyword"] for item in data["data"]] == ["关键词2", "关键词3"]
        assert data["total"] == 5
        assert data["hasMore"] is True
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3, "hasMore": True}

    async def test_last_page(self, client: AsyncClient, make_history) -> None:
        """最后一页 hasMore 为 False."""
        for i in range(3):
            await make_history(keyword=f"k{i}")

        data = (await client.get("/api/history", params={"page": 2, "limit": 2})).json()
        assert len(data["data"]) == 1
        assert data["hasMore"] is False

    async def test_empty(self, client: AsyncClient) -> None:
        """没有数据时返回空列表."""
        data = (await client.get("/api/history")).json()
        assert data["data"] == []
        assert data["total"] == 0
        assert data["pagination"]["totalPages"] == 0

    async def test_type_filter(self, client: AsyncClient, make_history) -> None:
        """按来源过滤."""
        await make_history(type="wechat", keyword="公众号")
        await make_history(type="xiaohongshu", keyword="小红书")

        data = (await client.get("/api/history", params={"type": "xiaohongshu"})).json()
        assert [item["keyword"] for item in data["data"]] == ["小红书"]
        assert data["data"][0]["type"] == "xiaohongshu"

    async def test_invalid_type(self, client: AsyncClient) -> None:
        """未知来源返回 400，不打开数据库会话."""
        opened = []

        async def tracking_session():
            opened.append(True)
            yield None

        app.dependency_overrides[get_session] = tracking_session

        response = await client.get("/api/history", params={"type": "bogus"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["code"] == "INVALID_PARAMETER"
        assert opened == []

    async def test_keyword_case_insensitive(self, client: AsyncClient, make_history) -> None:
        """关键词过滤不区分大小写."""
        await make_history(keyword="ChatGPT 应用")
        await make_history(keyword="露营")

        data = (await client.get("/api/history", params={"keyword": "chatgpt"})).json()
        assert [item["keyword"] for item in data["data"]] == ["ChatGPT 应用"]

    async def test_result_summary(self, client: AsyncClient, make_history) -> None:
        """有分析结果时带摘要."""
        await make_history(keyword="有结果", result={"word_cloud": []})
        await make_history(keyword="无结果", search_time=datetime.utcnow() - timedelta(hours=1))

        items = (await client.get("/api/history")).json()["data"]
        with_result, without_result = items

        assert with_result["hasAnalysisResult"] is True
        assert with_result["result_summary"] == {
            "totalArticles": 10,
            "avgLikes": 35.0,
            "avgRead": 1200.0,
            "originalRate": 40.0,
        }
        assert without_result["hasAnalysisResult"] is False
        assert without_result["result_summary"] is None

    async def test_limit_bounds(self, client: AsyncClient) -> None:
        """每页数量超过上限返回 400."""
        response = await client.get("/api/history", params={"limit": 101})
        assert response.status_code == 400


class TestHistoryDetail:
    """测试 GET /api/history/{id}."""

    async def test_with_analysis_result(self, client: AsyncClient, make_history) -> None:
        """返回规范化的分析结果."""
        history = await make_history(result={
            "word_cloud": [{"word": "AI", "count": 12}],
            "ai_generated_insights": [{"title": "旧洞察"}],
            "all_articles": [{"title": "文章", "read": 100, "praise": 3, "looking": 2}],
        })

        response = await client.get(f"/api/history/{history.id}")
        assert response.status_code == 200
        data = response.json()["data"]

        assert data["id"] == history.id
        assert data["keyword"] == "人工智能"
        result = data["analysisResult"]
        assert result["wordCloud"] == [{"word": "AI", "count": 12}]
        assert result["aiInsights"] == [{"title": "旧洞察"}]
        assert result["structuredTopicInsights"] == [{"title": "旧洞察"}]
        assert result["ruleInsights"] == []
        assert result["processedArticles"] == 1
        assert result["basicStats"]["avgInteraction"] == 5.0

    async def test_without_analysis_result(self, client: AsyncClient, make_history) -> None:
        """没有分析结果时 analysisResult 为 null."""
        history = await make_history()

        data = (await client.get(f"/api/history/{history.id}")).json()["data"]
        assert data["analysisResult"] is None

    async def test_malformed_field(self, client: AsyncClient, make_history) -> None:
        """损坏的 JSON 字段不影响响应."""
        history = await make_history(result={"word_cloud": "{broken", "rule_based_insights": ["规则"]})

        response = await client.get(f"/api/history/{history.id}")
        assert response.status_code == 200
        result = response.json()["data"]["analysisResult"]
        assert result["wordCloud"] == []
        assert result["ruleInsights"] == ["规则"]

    async def test_not_found(self, client: AsyncClient) -> None:
        """不存在返回 404."""
        response = await client.get("/api/history/999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "未找到该历史记录", "code": "NOT_FOUND"}

    async def test_invalid_id(self, client: AsyncClient) -> None:
        """非数字 ID 返回 400."""
        response = await client.get("/api/history/abc")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PARAMETER"


class TestDeleteHistory:
    """测试 DELETE /api/history/{id}."""

    async def test_cascade(self, client: AsyncClient, make_history, session_factory) -> None:
        """删除历史同时删除分析结果."""
        history = await make_history(result={"word_cloud": []})

        response = await client.delete(f"/api/history/{history.id}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "历史记录删除成功"}

        async with session_factory() as session:
            assert (await session.execute(select(SearchHistory))).first() is None
            assert (await session.execute(select(AnalysisResult))).first() is None

    async def test_not_found(self, client: AsyncClient) -> None:
        """删除不存在的记录返回 404."""
        response = await client.delete("/api/history/42")
        assert response.status_code == 404
