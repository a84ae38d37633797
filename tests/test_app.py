"""测试应用入口和 AI 状态."""

from httpx import AsyncClient


class TestApp:
    """测试基础路由和错误格式."""

    async def test_health(self, client: AsyncClient) -> None:
        """健康检查."""
        response = await client.get("/health")
        assert response.json() == {"status": "ok"}

    async def test_root(self, client: AsyncClient) -> None:
        """根路径返回名称和版本."""
        data = (await client.get("/")).json()
        assert data["name"] == "内容工厂"
        assert data["version"] == "0.1.0"

    async def test_unknown_route(self, client: AsyncClient) -> None:
        """未知路由也使用统一错误格式."""
        response = await client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["code"] == "HTTP_404"


class TestAiStatus:
    """测试 GET /api/ai/status."""

    async def test_disabled(self, client: AsyncClient) -> None:
        """默认关闭."""
        data = (await client.get("/api/ai/status")).json()

        assert data["status"] == {"available": False, "error": "AI分析功能已禁用", "configured": False}
        assert data["config"]["provider"] == "openai"
        assert data["config"]["apiKey"] == ""

    async def test_masks_secrets(self, client: AsyncClient, settings) -> None:
        """密钥和地址中的 key 被隐藏."""
        settings.ai_analysis_enabled = True
        settings.openai_api_key = "sk-1234567890abcd"
        settings.openai_base_url = "https://proxy.example.com/api/key/secret-token/v1"

        data = (await client.get("/api/ai/status")).json()

        assert data["status"]["available"] is True
        assert data["config"]["apiKey"] == "sk-1*********abcd"
        assert data["config"]["baseURL"] == "https://proxy.example.com/api/.../v1"
