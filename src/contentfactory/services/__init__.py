"""外部服务适配."""

from contentfactory.services.image import GeneratedImage, ImageDescription, ImageGenerator, render_image_html
from contentfactory.services.wechat import PublishPayload, WeChatClient
from contentfactory.services.xiaohongshu import SearchRequest, XiaohongshuClient

__all__ = [
    "GeneratedImage",
    "ImageDescription",
    "ImageGenerator",
    "PublishPayload",
    "SearchRequest",
    "WeChatClient",
    "XiaohongshuClient",
    "render_image_html",
]
