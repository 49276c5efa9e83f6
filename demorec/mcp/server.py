"""
demorec MCP Server — ナレーション付きブラウザデモ録画サーバー

FastMCP を使用して、AI エージェントが1操作ずつブラウザを操作しながら
デモ動画を録画できる MCP サーバーを提供する。

ツールは OperationDispatcher に委譲し、失敗結果は ToolError として返す
（呼び出し元では isError 付きの結果になる）。
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .config import ServerConfig, load_config_from_env
from .dispatcher import OperationDispatcher, OperationResult

logger = logging.getLogger(__name__)

SERVER_NAME = "playwright-demo-recorder"


def _deliver(result: OperationResult) -> str:
    """OperationResult をツールの戻り値に変換する。失敗時は ToolError を送出する。"""
    if not result.ok:
        raise ToolError(f"[{result.error_kind}] {result.text()}")
    return result.text()


def create_server(
    config: Optional[ServerConfig] = None,
    dispatcher: Optional[OperationDispatcher] = None,
) -> FastMCP:
    """demorec MCP サーバーを生成する。

    Args:
        config: サーバー設定。None の場合は環境変数から読み込む。
        dispatcher: 操作ディスパッチャ。None の場合は config から生成する。

    Returns:
        設定済みの FastMCP サーバーインスタンス
    """
    if config is None:
        config = load_config_from_env()
    if dispatcher is None:
        dispatcher = OperationDispatcher(config=config)

    mcp = FastMCP(SERVER_NAME)

    # -------------------------------------------------------------------
    # ライフサイクルツール（start / stop）
    # -------------------------------------------------------------------

    @mcp.tool
    async def start_demo_recording(
        url: str,
        description: str,
        browser_type: Optional[Literal["chromium", "firefox", "webkit"]] = None,
    ) -> str:
        """Starts a new browser session and begins recording a video of the interactions. The cursor will be visible.

        Args:
            url: The initial URL to navigate to.
            description: A short description for the demo (used for video filename and social post).
            browser_type: Browser to use for recording. Defaults to chromium.

        Returns:
            Status message with the initial page snapshot
        """
        return _deliver(await dispatcher.start(url, description, browser_type))

    @mcp.tool
    async def stop_demo_recording() -> str:
        """Stops the current recording session and saves the video.

        Returns:
            Video path, generated social media post and interaction count
        """
        return _deliver(await dispatcher.stop())

    # -------------------------------------------------------------------
    # 操作ツール
    # -------------------------------------------------------------------

    @mcp.tool
    async def navigate_during_demo(url: str) -> str:
        """Navigates the current demo page to a new URL.

        Args:
            url: The URL to navigate to.

        Returns:
            Status message with the page snapshot
        """
        return _deliver(await dispatcher.navigate(url))

    @mcp.tool
    async def click_element_on_demo_page(
        selector: str,
        element_description: Optional[str] = None,
    ) -> str:
        """Clicks an element on the current demo page.

        Args:
            selector: A CSS selector or Playwright auto-detectable selector for the element to click.
            element_description: A human-readable description of the element being clicked (for logging and social post).

        Returns:
            Status message with the page snapshot
        """
        return _deliver(await dispatcher.click(selector, element_description))

    @mcp.tool
    async def type_into_demo_element(
        selector: str,
        text: str,
        element_description: Optional[str] = None,
    ) -> str:
        """Types text into an element on the current demo page.

        Args:
            selector: A CSS selector or Playwright auto-detectable selector for the input element.
            text: The text to type.
            element_description: A human-readable description of the element being typed into (for logging and social post).

        Returns:
            Status message with the page snapshot
        """
        return _deliver(await dispatcher.type_text(selector, text, element_description))

    # -------------------------------------------------------------------
    # 状態確認・要約ツール
    # -------------------------------------------------------------------

    @mcp.tool
    async def get_demo_page_snapshot() -> str:
        """Gets a snapshot of the current demo page.

        Returns:
            Page URL, title and interactive elements
        """
        return _deliver(await dispatcher.snapshot())

    @mcp.tool
    async def generate_social_media_post() -> str:
        """Generates an engaging social media post based on the recorded interactions. Call this before or after stopping the recording.

        Returns:
            The generated post
        """
        return _deliver(await dispatcher.generate_summary())

    return mcp


# ---------------------------------------------------------------------------
# エントリポイント（直接実行用）
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    from .config import apply_cli_args, build_cli_parser

    parser = build_cli_parser()
    args = parser.parse_args()

    srv_config = load_config_from_env()
    srv_config = apply_cli_args(srv_config, args)

    server = create_server(config=srv_config)
    server.run()
