"""
テスト共通フィクスチャ

Playwright の Page / BrowserContext / Browser をモックで代替し、
ブラウザを起動せずに録画セッションのロジックを検証できるようにする。
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from demorec.mcp.config import ServerConfig


# ---------------------------------------------------------------------------
# モック生成ヘルパー
# ---------------------------------------------------------------------------

DEFAULT_BOX = {"x": 100.0, "y": 200.0, "width": 40.0, "height": 20.0}


def make_page(
    box: dict | None = DEFAULT_BOX,
    missing: bool = False,
    aria: str = '- heading "Example Domain" [level=1]\n- link "More information..."\n',
) -> MagicMock:
    """Playwright Page のモックを生成する。

    page.locator(...) はセレクタに関係なく同じ Locator モックを返す。
    missing=True の場合、bounding_box は待機の末にタイムアウトする。
    """
    page = MagicMock()
    page.url = "https://example.com/"
    page.goto = AsyncMock()
    page.title = AsyncMock(return_value="Example Domain")
    page.evaluate = AsyncMock(return_value=True)
    page.wait_for_timeout = AsyncMock()
    page.close = AsyncMock()
    page.is_closed = MagicMock(return_value=False)
    page.mouse.move = AsyncMock()
    page.video = None

    element = MagicMock()
    element.bounding_box = AsyncMock(return_value=box)
    if missing:
        element.bounding_box.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded.")
    element.click = AsyncMock()
    element.fill = AsyncMock()

    locator = MagicMock()
    locator.first = element
    locator.aria_snapshot = AsyncMock(return_value=aria)
    page.locator = MagicMock(return_value=locator)
    page.element = element
    return page


def make_video(path: str) -> MagicMock:
    """Playwright Video のモックを生成する。"""
    video = MagicMock()
    video.path = AsyncMock(return_value=path)
    video.save_as = AsyncMock()
    video.delete = AsyncMock()
    return video


# ---------------------------------------------------------------------------
# pytest フィクスチャ
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> ServerConfig:
    """待機時間を 0 にしたテスト用設定。"""
    return ServerConfig(
        headed=False,
        videos_dir=str(tmp_path / "videos"),
        trail_steps=4,
        trail_step_delay_ms=0,
        click_settle_ms=0,
        type_settle_ms=0,
    )


@pytest.fixture
def page() -> MagicMock:
    return make_page()


@pytest.fixture
def fake_playwright(page: MagicMock):
    """async_playwright() をモックに差し替え、起動されるハンドル群を返す。

    session.start() 内でローカルインポートされるため
    playwright.async_api.async_playwright をパッチする。
    """
    pw = MagicMock()
    pw.stop = AsyncMock()
    browser = MagicMock()
    browser.close = AsyncMock()
    context = MagicMock()
    context.close = AsyncMock()

    for engine in ("chromium", "firefox", "webkit"):
        getattr(pw, engine).launch = AsyncMock(return_value=browser)
    browser.new_context = AsyncMock(return_value=context)
    context.new_page = AsyncMock(return_value=page)

    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)

    with patch("playwright.async_api.async_playwright", return_value=starter) as factory:
        yield SimpleNamespace(
            factory=factory, pw=pw, browser=browser, context=context, page=page,
        )
