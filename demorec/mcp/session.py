"""
Session — デモ録画セッションの状態管理

Playwright ブラウザの起動・終了と、録画中の操作（遷移・クリック・入力）を担当する。
プロセス内でアクティブな録画セッションは常に高々1つであり、
その排他は IDLE / ACTIVE の状態チェックのみで保証する。

主な機能:
  - 録画付きブラウザの起動と初期遷移（start）
  - 遷移・クリック・入力の実行と操作ログへの記録
  - カーソルオーバーレイの駆動
  - ページ → コンテキスト → ブラウザ の順でのリソース解放と動画の確定（stop）
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..core.artifacts import UNKNOWN_VIDEO_PATH, VideoArtifacts
from ..core.waits import settle
from ..errors import (
    AlreadyActiveError,
    EngineFailureError,
    NotActiveError,
    RecorderError,
)
from .config import BROWSER_TYPES, ServerConfig
from .narrative import generate_summary
from .overlay import CursorOverlay, OverlayStyle, Point, PointerState
from .recorder import InteractionEvent, InteractionLog

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Video

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# セッション状態
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """録画セッションの状態。TERMINATING は stop 処理中のみの過渡状態。"""

    IDLE = "idle"
    ACTIVE = "active"
    TERMINATING = "terminating"


@dataclass
class StopResult:
    """stop() の結果。

    Attributes:
        video_path: 動画ファイルのパス（特定できなかった場合は UNKNOWN_VIDEO_PATH）
        event_count: 記録された操作数
        log_path: 保存した操作ログ YAML のパス（保存しなかった場合は None）
        release_error: 解放処理で最初に発生したエラー（無ければ None）
    """

    video_path: str
    event_count: int
    log_path: Optional[str] = None
    release_error: Optional[str] = None


# ---------------------------------------------------------------------------
# RecordingSession 本体
# ---------------------------------------------------------------------------

class RecordingSession:
    """1本の録画に対応するブラウザセッション。

    ブラウザ・コンテキスト・ページと、ポインタ状態・操作ログを排他的に保持する。
    操作ログは stop() 後も保持され、次の start() でクリアされる。
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        overlay: Optional[CursorOverlay] = None,
        artifacts: Optional[VideoArtifacts] = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.overlay = overlay or CursorOverlay(OverlayStyle(
            trail_steps=self.config.trail_steps,
            trail_step_delay_ms=self.config.trail_step_delay_ms,
        ))
        self.artifacts = artifacts or VideoArtifacts(videos_dir=self.config.videos_dir)

        self._state: SessionState = SessionState.IDLE
        self._pw_instance: Optional[object] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self.description: str = ""
        self.start_url: str = ""
        self.browser_type: str = self.config.browser_type
        self.pointer = PointerState()
        self.log = InteractionLog()

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def is_active(self) -> bool:
        """セッションがアクティブかどうかを返す。"""
        return self._state == SessionState.ACTIVE

    @property
    def page(self) -> Optional[Page]:
        """現在の Page オブジェクトを返す。非アクティブ時は None。"""
        if not self.is_active:
            return None
        return self._page

    def _require_page(self) -> Page:
        if not self.is_active or self._page is None:
            raise NotActiveError()
        return self._page

    def summary(self) -> str:
        """現在の操作ログから要約文を生成する。"""
        return generate_summary(self.log, self.description, self.start_url)

    # -------------------------------------------------------------------
    # start
    # -------------------------------------------------------------------

    async def start(
        self,
        url: str,
        description: str,
        browser_type: Optional[str] = None,
    ) -> None:
        """録画付きでブラウザを起動し、初期 URL に遷移する。

        Args:
            url: 初期 URL
            description: デモの説明文（動画ファイル名と要約文に使用）
            browser_type: chromium / firefox / webkit（None で設定値）

        Raises:
            AlreadyActiveError: 既にアクティブなセッションがある場合
            EngineFailureError: 起動または初期遷移に失敗した場合
        """
        if self._state != SessionState.IDLE:
            raise AlreadyActiveError()

        browser_type = browser_type or self.config.browser_type
        if browser_type not in BROWSER_TYPES:
            raise EngineFailureError(f"Unsupported browser type: {browser_type}")

        self.log.clear()
        self.description = description
        self.start_url = url
        self.browser_type = browser_type
        self.pointer.reset()

        try:
            video_path = self.artifacts.begin(description)
            logger.info(
                "録画を開始しています... (browser=%s, headed=%s, video=%s)",
                browser_type, self.config.headed, video_path,
            )

            from playwright.async_api import async_playwright

            pw = await async_playwright().start()
            self._pw_instance = pw

            engine = getattr(pw, browser_type)
            self._browser = await engine.launch(headless=not self.config.headed)

            size = {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            }
            self._context = await self._browser.new_context(
                viewport=size,
                record_video_dir=str(self.artifacts.videos_dir),
                record_video_size=size,
            )
            self._page = await self._context.new_page()
            await self._page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
        except Exception as exc:
            logger.exception("録画の開始に失敗しました")
            await self._release_handles()
            self.artifacts.reset()
            self._state = SessionState.IDLE
            raise EngineFailureError(f"Error starting recording: {exc}") from exc

        await self._install_overlay(self._page)
        self.log.record_navigate(url, description="Started demo")
        self._state = SessionState.ACTIVE
        logger.info("録画を開始しました: %s", description)

    # -------------------------------------------------------------------
    # navigate / act
    # -------------------------------------------------------------------

    async def navigate(self, url: str) -> InteractionEvent:
        """録画中のページを別の URL に遷移する。

        Raises:
            NotActiveError: セッションがアクティブでない場合
            EngineFailureError: 遷移に失敗した場合（セッションは継続）
        """
        page = self._require_page()
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
        except Exception as exc:
            raise EngineFailureError(f"Error navigating: {exc}") from exc

        # 新しいページにはオーバーレイが存在しない
        await self._install_overlay(page)
        return self.log.record_navigate(url)

    async def act(
        self,
        selector: str,
        kind: str,
        text: Optional[str] = None,
        label: Optional[str] = None,
    ) -> InteractionEvent:
        """要素までカーソルを移動し、click または type を実行する。

        Args:
            selector: 対象要素のセレクタ
            kind: "click" または "type"
            text: 入力するテキスト（type のみ）
            label: ログと要約文で使う要素名（省略時はセレクタ）

        Returns:
            記録した InteractionEvent

        Raises:
            NotActiveError: セッションがアクティブでない場合
            ElementNotFoundError: 要素が見つからない場合
            EngineFailureError: 操作に失敗した場合
        """
        if kind not in ("click", "type"):
            raise ValueError(f"unknown action kind: {kind}")

        page = self._require_page()
        element = label or selector

        try:
            target = await self.overlay.move_to(
                page, selector, self.pointer,
                timeout=self.config.element_timeout_ms,
            )
            await self._draw_action(page, target, kind)

            locator = page.locator(selector).first
            if kind == "click":
                await locator.click(timeout=self.config.element_timeout_ms)
                await settle(page, self.config.click_settle_ms)
            else:
                await locator.fill(text or "", timeout=self.config.element_timeout_ms)
                await settle(page, self.config.type_settle_ms)
        except RecorderError:
            raise
        except Exception as exc:
            verb = "clicking" if kind == "click" else "typing into"
            raise EngineFailureError(
                f"Error {verb} element (selector: {selector}): {exc}"
            ) from exc

        if kind == "click":
            return self.log.record_click(element)
        return self.log.record_type(element, text or "")

    async def click(self, selector: str, label: Optional[str] = None) -> InteractionEvent:
        """要素をクリックする。act(selector, "click") の短縮形。"""
        return await self.act(selector, "click", label=label)

    async def type_text(
        self, selector: str, text: str, label: Optional[str] = None,
    ) -> InteractionEvent:
        """要素にテキストを入力する。act(selector, "type") の短縮形。"""
        return await self.act(selector, "type", text=text, label=label)

    # -------------------------------------------------------------------
    # stop
    # -------------------------------------------------------------------

    async def stop(self) -> StopResult:
        """録画を終了し、動画を確定する。

        ページを閉じないと動画が書き終わらないため、
        ページ → 動画確定 → コンテキスト → ブラウザ の順で処理する。
        各解放は独立して試行し、途中で失敗しても残りを解放する。
        部分的に失敗しても状態は必ず IDLE に戻る。

        Raises:
            NotActiveError: セッションがアクティブでない場合
        """
        if not self.is_active:
            raise NotActiveError()

        self._state = SessionState.TERMINATING
        logger.info("録画を終了しています...")

        errors: list[Exception] = []
        video_path = UNKNOWN_VIDEO_PATH
        log_path: Optional[str] = None
        try:
            video = self._get_video()
            await self._release("page", self._page, errors)
            self._page = None

            try:
                video_path = str(await self.artifacts.finalize_video(video))
            except Exception as exc:
                logger.warning("動画パスを特定できませんでした: %s", exc)

            await self._release("context", self._context, errors)
            self._context = None
            await self._release("browser", self._browser, errors)
            self._browser = None
            await self._stop_driver(errors)
        finally:
            self._clear_handles()
            self.artifacts.reset()
            self._state = SessionState.IDLE

        if self.config.save_log and video_path != UNKNOWN_VIDEO_PATH:
            log_path = self._save_log(video_path)

        logger.info("録画を終了しました: %s", video_path)
        return StopResult(
            video_path=video_path,
            event_count=len(self.log),
            log_path=log_path,
            release_error=str(errors[0]) if errors else None,
        )

    # -------------------------------------------------------------------
    # 内部ヘルパー
    # -------------------------------------------------------------------

    async def _install_overlay(self, page: Page) -> None:
        try:
            await self.overlay.ensure_installed(page)
        except Exception as exc:
            logger.warning("オーバーレイの注入に失敗しました: %s", exc)

    async def _draw_action(self, page: Page, target: Point, kind: str) -> None:
        """操作直前インジケーターと操作マーカーを描画する。描画失敗は操作を妨げない。"""
        try:
            await self.overlay.pulse(page, target)
            await self.overlay.mark_action(page, target, kind, self.pointer)
        except Exception as exc:
            logger.warning("操作マーカーの描画に失敗しました: %s", exc)

    def _get_video(self) -> Optional[Video]:
        if self._page is None:
            return None
        try:
            return self._page.video
        except Exception as exc:
            logger.warning("page.video を取得できません: %s", exc)
            return None

    async def _release(self, name: str, handle: Optional[object], errors: list[Exception]) -> None:
        """1つのハンドルを閉じる。失敗は errors に記録し、送出しない。"""
        if handle is None:
            return
        try:
            await handle.close()  # type: ignore[attr-defined]
        except Exception as exc:
            logger.warning("%s の終了中にエラーが発生しました: %s", name, exc)
            errors.append(exc)

    async def _stop_driver(self, errors: list[Exception]) -> None:
        pw = self._pw_instance
        self._pw_instance = None
        if pw is None or not hasattr(pw, "stop"):
            return
        try:
            await pw.stop()
        except Exception as exc:
            logger.warning("Playwright の終了中にエラーが発生しました: %s", exc)
            errors.append(exc)

    async def _release_handles(self) -> list[Exception]:
        """取得済みのハンドルをすべて解放する（start 失敗時）。"""
        errors: list[Exception] = []
        await self._release("page", self._page, errors)
        await self._release("context", self._context, errors)
        await self._release("browser", self._browser, errors)
        await self._stop_driver(errors)
        self._clear_handles()
        return errors

    def _clear_handles(self) -> None:
        self._page = None
        self._context = None
        self._browser = None
        self._pw_instance = None

    def _save_log(self, video_path: str) -> Optional[str]:
        path = self.artifacts.log_path_for(video_path)
        try:
            self.log.save_yaml(path, self.description, self.start_url)
        except Exception as exc:
            logger.warning("操作ログの保存に失敗しました: %s", exc)
            return None
        return str(path)
