"""
Dispatcher — 外部公開操作とセッションの仲介

トランスポート層（MCP ツール）から呼ばれる7つの操作を RecordingSession に委譲し、
結果を OperationResult として返す。例外は一切送出せず、
失敗は種別付きのエラー結果に変換する。
状態を変更する操作が成功した場合は、最新のページスナップショットを付与する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..errors import ErrorKind, NotActiveError, RecorderError
from .config import ServerConfig
from .session import RecordingSession
from .snapshot import SnapshotParser, render_page_state

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# OperationResult
# ---------------------------------------------------------------------------

@dataclass
class OperationResult:
    """1操作の結果。

    Attributes:
        ok: 成功したかどうか
        message: 呼び出し元向けのメッセージ
        snapshot: 操作後のページスナップショット（テキスト）
        error_kind: 失敗種別（成功時は None）
    """

    ok: bool
    message: str
    snapshot: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, message: str, snapshot: Optional[str] = None) -> "OperationResult":
        return cls(ok=True, message=message, snapshot=snapshot)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(ok=False, message=message, error_kind=kind)

    def text(self) -> str:
        """トランスポートに返すテキストを生成する。"""
        if not self.ok:
            return f"Error: {self.message}"
        if self.snapshot:
            return f"{self.message}\n\n{self.snapshot}"
        return self.message


# ---------------------------------------------------------------------------
# OperationDispatcher 本体
# ---------------------------------------------------------------------------

class OperationDispatcher:
    """録画操作のディスパッチャ。

    単一の RecordingSession を保持し、操作を1つずつ委譲する。
    トランスポートは操作を逐次的に呼び出すため、ロックは持たない。
    """

    def __init__(
        self,
        session: Optional[RecordingSession] = None,
        config: Optional[ServerConfig] = None,
    ) -> None:
        self.session = session or RecordingSession(config=config)
        self._snapshot_parser = SnapshotParser()

    async def _page_state(self) -> str:
        return await render_page_state(self.session.page, self._snapshot_parser)

    async def _run(
        self,
        operation: str,
        body: Callable[[], Awaitable[OperationResult]],
    ) -> OperationResult:
        """操作本体を実行し、例外をエラー結果に変換する。"""
        try:
            return await body()
        except RecorderError as exc:
            logger.warning("%s に失敗しました (%s): %s", operation, exc.kind, exc.message)
            return OperationResult.failure(exc.kind, exc.message)
        except Exception as exc:
            logger.exception("%s で予期しないエラーが発生しました", operation)
            return OperationResult.failure("EngineFailure", f"Error in {operation}: {exc}")

    # -------------------------------------------------------------------
    # 公開操作
    # -------------------------------------------------------------------

    async def start(
        self,
        url: str,
        description: str,
        browser_type: Optional[str] = None,
    ) -> OperationResult:
        """録画を開始する。"""
        async def body() -> OperationResult:
            await self.session.start(url, description, browser_type)
            videos_dir = self.session.artifacts.videos_dir
            return OperationResult.success(
                f'Recording started for "{description}". Initial page loaded. '
                f"Video will be saved in '{videos_dir}'.",
                await self._page_state(),
            )

        return await self._run("start", body)

    async def navigate(self, url: str) -> OperationResult:
        """録画中のページを遷移する。"""
        async def body() -> OperationResult:
            await self.session.navigate(url)
            return OperationResult.success(f"Navigated to {url}.", await self._page_state())

        return await self._run("navigate", body)

    async def click(self, selector: str, label: Optional[str] = None) -> OperationResult:
        """要素をクリックする。"""
        async def body() -> OperationResult:
            await self.session.click(selector, label=label)
            target = f'"{label}" ' if label else ""
            return OperationResult.success(
                f"Clicked on element {target}(selector: {selector}).",
                await self._page_state(),
            )

        return await self._run("click", body)

    async def type_text(
        self,
        selector: str,
        text: str,
        label: Optional[str] = None,
    ) -> OperationResult:
        """要素にテキストを入力する。"""
        async def body() -> OperationResult:
            await self.session.type_text(selector, text, label=label)
            target = f'"{label}" ' if label else ""
            return OperationResult.success(
                f'Typed "{text}" into element {target}(selector: {selector}).',
                await self._page_state(),
            )

        return await self._run("type", body)

    async def snapshot(self) -> OperationResult:
        """現在のページスナップショットを返す。"""
        async def body() -> OperationResult:
            if not self.session.is_active:
                raise NotActiveError()
            return OperationResult.success(await self._page_state())

        return await self._run("snapshot", body)

    async def stop(self) -> OperationResult:
        """録画を終了し、動画パスと要約文を返す。"""
        async def body() -> OperationResult:
            result = await self.session.stop()
            summary = self.session.summary()
            lines = [
                "Recording stopped successfully!",
                "",
                f"📹 Video saved to: {result.video_path}",
            ]
            if result.log_path:
                lines.append(f"📝 Interaction log: {result.log_path}")
            if result.release_error:
                lines.append(f"⚠️ Cleanup warning: {result.release_error}")
            lines.extend([
                "",
                "📱 Generated Social Media Post:",
                summary,
                "",
                f"✅ Demo recording complete with {result.event_count} tracked interactions!",
            ])
            return OperationResult.success("\n".join(lines))

        return await self._run("stop", body)

    async def generate_summary(self) -> OperationResult:
        """直近（または現在）のセッションの操作ログから要約文を生成する。"""
        async def body() -> OperationResult:
            return OperationResult.success(
                "Generated Social Media Post:\n\n"
                f"{self.session.summary()}\n\n"
                "You can copy and customize this post for your social media channels!"
            )

        return await self._run("generate_summary", body)
