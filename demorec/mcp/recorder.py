"""
Recorder — 録画セッションの操作ログ

MCP ツール経由で実行された navigate / click / type 操作を
発生順に追記専用リストへ蓄積する。
ログは要約文生成の入力となり、停止時には YAML として動画の隣に保存できる。

主な機能:
  - 操作イベントの追記（navigate, click, type）
  - 入力値の切り詰め（20 文字 + "..."）
  - ログのクリア（新しいセッション開始時のみ）
  - YAML ファイルへの保存・読み込み
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field
from ruamel.yaml import YAML

logger = logging.getLogger(__name__)

# 記録する入力値の最大長（超過分は "..." に置換）
MAX_VALUE_LENGTH = 20


# ---------------------------------------------------------------------------
# InteractionEvent モデル
# ---------------------------------------------------------------------------

class InteractionKind(str, enum.Enum):
    """操作イベントの種別。"""

    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"


class InteractionEvent(BaseModel):
    """記録された1操作。生成後は変更できない。

    Attributes:
        kind: 操作種別
        timestamp: 発生時刻（UTC）
        description: 人間向けの説明文
        element: 対象要素のラベル（click / type のみ）
        value: 入力値（type のみ、長い場合は切り詰め済み）
        url: 遷移先 URL（navigate のみ）
    """

    model_config = ConfigDict(frozen=True)

    kind: InteractionKind
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    description: str
    element: Optional[str] = None
    value: Optional[str] = None
    url: Optional[str] = None


def truncate_value(text: str, limit: int = MAX_VALUE_LENGTH) -> str:
    """入力値を記録用に切り詰める。

    Args:
        text: 入力されたテキスト
        limit: 保持する最大文字数

    Returns:
        limit 文字以下ならそのまま、超える場合は先頭 limit 文字 + "..."
    """
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# ---------------------------------------------------------------------------
# InteractionLog 本体
# ---------------------------------------------------------------------------

class InteractionLog:
    """セッション内の操作を発生順に保持する追記専用ログ。"""

    def __init__(self) -> None:
        self._events: list[InteractionEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[InteractionEvent]:
        return iter(self._events)

    @property
    def events(self) -> tuple[InteractionEvent, ...]:
        """記録済みイベントの読み取り専用ビューを返す。"""
        return tuple(self._events)

    def append(self, event: InteractionEvent) -> None:
        """イベントを末尾に追加する。

        Args:
            event: 追加するイベント
        """
        self._events.append(event)
        logger.info(
            "操作を記録しました: %s (%s)",
            event.kind.value, event.element or event.url or event.description,
        )

    def record_navigate(self, url: str, description: str = "Navigated to new page") -> InteractionEvent:
        """ページ遷移を記録する。"""
        event = InteractionEvent(
            kind=InteractionKind.NAVIGATE, description=description, url=url,
        )
        self.append(event)
        return event

    def record_click(self, element: str) -> InteractionEvent:
        """クリックを記録する。"""
        event = InteractionEvent(
            kind=InteractionKind.CLICK, description="Clicked element", element=element,
        )
        self.append(event)
        return event

    def record_type(self, element: str, text: str) -> InteractionEvent:
        """テキスト入力を記録する。値は MAX_VALUE_LENGTH で切り詰める。"""
        event = InteractionEvent(
            kind=InteractionKind.TYPE,
            description="Typed into field",
            element=element,
            value=truncate_value(text),
        )
        self.append(event)
        return event

    def count(self, kind: InteractionKind) -> int:
        """指定種別のイベント数を返す。"""
        return sum(1 for e in self._events if e.kind == kind)

    def clear(self) -> None:
        """記録をクリアする。"""
        self._events.clear()
        logger.info("操作ログをクリアしました")

    # ----- YAML 入出力 -----

    def to_dict(self, description: str, start_url: str) -> dict[str, Any]:
        """保存用の辞書形式に変換する。

        Args:
            description: デモの説明文
            start_url: 開始 URL

        Returns:
            description / startUrl / events を持つ辞書
        """
        events = [
            e.model_dump(mode="json", exclude_none=True) for e in self._events
        ]
        return {
            "description": description,
            "startUrl": start_url,
            "events": events,
        }

    def save_yaml(self, path: Path, description: str, start_url: str) -> Path:
        """操作ログを YAML ファイルとして保存する。

        Args:
            path: 出力先ファイルパス
            description: デモの説明文
            start_url: 開始 URL

        Returns:
            保存したファイルのパス
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        yaml = YAML()
        yaml.default_flow_style = False

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(description, start_url), f)

        logger.info("操作ログを保存しました: %s", path)
        return path


def load_yaml(path: Path) -> tuple[InteractionLog, str, str]:
    """save_yaml() で保存した操作ログを読み込む。

    Args:
        path: 読み込む YAML ファイル

    Returns:
        (InteractionLog, description, start_url) のタプル
    """
    yaml = YAML(typ="safe")
    with open(Path(path), encoding="utf-8") as f:
        data = yaml.load(f) or {}

    log = InteractionLog()
    for raw in data.get("events") or []:
        log.append(InteractionEvent.model_validate(raw))

    return log, str(data.get("description", "")), str(data.get("startUrl", ""))
