"""
demorec MCP Server パッケージ

AI エージェントがブラウザを1操作ずつ操作しながらデモ動画を録画し、
終了時に操作ログから要約文を生成する MCP (Model Context Protocol) サーバーを提供する。

主な構成:
  - server: FastMCP サーバー本体（ツール定義）
  - dispatcher: 公開操作とセッションの仲介（エラー結果への変換）
  - session: 録画セッションの状態管理
  - overlay: カーソル軌跡・操作マーカーの描画
  - recorder: 操作ログ
  - narrative: 操作ログからの要約文生成
  - snapshot: ページスナップショットの取得・整形
"""

from __future__ import annotations


def create_server(config=None):  # type: ignore[no-untyped-def]
    """demorec MCP サーバーを生成する（遅延インポート）。

    `python -m demorec.mcp.server` 実行時の RuntimeWarning を回避するため、
    server モジュールの import をここで遅延させる。

    Args:
        config: ServerConfig インスタンス（None で環境変数から読み込み）

    Returns:
        設定済みの FastMCP サーバーインスタンス
    """
    from .server import create_server as _create
    return _create(config=config)


__all__ = [
    "create_server",
]
