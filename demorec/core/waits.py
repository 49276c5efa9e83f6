"""
待機戦略 — 操作後のページ安定待機

録画映像で操作結果が視認できるよう、click / type の後に短い固定待機を入れる。
次のスナップショットは待機後のページから取得される。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.async_api import Page


async def settle(page: Page, delay_ms: int) -> None:
    """操作後にページが落ち着くまで固定時間待機する。

    Args:
        page: Playwright の Page オブジェクト
        delay_ms: 待機時間（ミリ秒）。0 以下なら待機しない
    """
    if delay_ms <= 0:
        return
    await page.wait_for_timeout(delay_ms)
