"""
エラー定義 — 録画セッション操作の失敗分類

各操作の失敗を種別（kind）付きの例外として表現する。
ディスパッチャはこれらを捕捉し、呼び出し元へ構造化されたエラー結果として返す。

種別:
  - AlreadyActive: 録画中に start が呼ばれた
  - NotActive: 録画していない状態で操作が呼ばれた
  - ElementNotFound: セレクタに一致する要素が存在しない
  - EngineFailure: ブラウザエンジン側の失敗（起動・遷移・操作）
  - ArtifactResolutionFailure: 動画ファイルのパスを特定できなかった
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal[
    "AlreadyActive",
    "NotActive",
    "ElementNotFound",
    "EngineFailure",
    "ArtifactResolutionFailure",
]


class RecorderError(Exception):
    """録画操作の失敗を表す基底例外。

    Attributes:
        kind: 失敗種別
        message: 呼び出し元に返す説明文
    """

    kind: ErrorKind = "EngineFailure"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AlreadyActiveError(RecorderError):
    """録画セッションが既にアクティブな場合の例外。"""

    kind: ErrorKind = "AlreadyActive"

    def __init__(self) -> None:
        super().__init__(
            "A recording is already in progress. Please stop it first."
        )


class NotActiveError(RecorderError):
    """録画セッションがアクティブでない場合の例外。"""

    kind: ErrorKind = "NotActive"

    def __init__(self) -> None:
        super().__init__("Recording not active or page not available.")


class ElementNotFoundError(RecorderError):
    """セレクタに一致する要素が見つからない場合の例外。

    Attributes:
        selector: 解決に失敗したセレクタ
    """

    kind: ErrorKind = "ElementNotFound"

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Element not found (selector: {selector})")


class EngineFailureError(RecorderError):
    """ブラウザエンジンの操作が失敗した場合の例外。"""

    kind: ErrorKind = "EngineFailure"


class ArtifactResolutionError(RecorderError):
    """録画動画のパスを特定できなかった場合の例外。"""

    kind: ErrorKind = "ArtifactResolutionFailure"
