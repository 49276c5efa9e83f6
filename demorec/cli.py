"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

demorec コマンドとして以下のサブコマンドを提供する:
  - serve: MCP サーバーを stdio で起動
  - summarize: 保存済み操作ログ（YAML）から要約文を再生成
  - videos: 録画済み動画の一覧（新しい順）
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "demorec — ナレーション付きブラウザデモ録画ツール\n\n"
        "基本の流れ:\n"
        "  1. demorec serve            MCP サーバーを起動（AI エージェントから操作）\n"
        "  2. demorec videos           録画した動画を確認\n"
        "  3. demorec summarize xxx.yaml  操作ログから要約文を再生成\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# serve コマンド
# ---------------------------------------------------------------------------

@app.command()
def serve(
    headed: Optional[bool] = typer.Option(None, "--headed/--headless", help="ブラウザ表示モード（デフォルト: 表示）"),
    videos_dir: Optional[Path] = typer.Option(None, "--videos-dir", help="動画保存ディレクトリ（デフォルト: videos）"),
    browser: Optional[str] = typer.Option(None, "--browser", help="デフォルトのブラウザ（chromium/firefox/webkit）"),
    viewport: Optional[str] = typer.Option(None, "--viewport", help="ビューポート・動画サイズ（例: 1920x1080）"),
    trail_steps: Optional[int] = typer.Option(None, "--trail-steps", help="カーソル軌跡の補間点数"),
    no_save_log: bool = typer.Option(False, "--no-save-log", help="停止時に操作ログ YAML を保存しない"),
) -> None:
    """MCP サーバーを stdio で起動する。"""
    from types import SimpleNamespace

    from .mcp.config import BROWSER_TYPES, apply_cli_args, load_config_from_env
    from .mcp.server import create_server

    if browser is not None and browser not in BROWSER_TYPES:
        typer.echo(f"エラー: 不明なブラウザです: {browser}", err=True)
        raise typer.Exit(code=1)

    # stdout は MCP トランスポートが使用するため、ログは stderr に出力する
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s - %(message)s",
    )

    args = SimpleNamespace(
        headless=headed is False,
        headed=headed is True,
        videos_dir=videos_dir,
        browser=browser,
        viewport=viewport,
        trail_steps=trail_steps,
        no_save_log=no_save_log,
    )
    config = apply_cli_args(load_config_from_env(), args)

    try:
        server = create_server(config=config)
        server.run()
    except Exception as exc:
        typer.echo(f"エラー: サーバーの起動に失敗しました: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# summarize コマンド
# ---------------------------------------------------------------------------

@app.command()
def summarize(
    log_file: Path = typer.Argument(..., help="停止時に保存された操作ログ YAML"),
) -> None:
    """保存済みの操作ログから要約文を再生成する。"""
    from .mcp.narrative import generate_summary
    from .mcp.recorder import load_yaml

    if not log_file.exists():
        typer.echo(f"エラー: ファイルが見つかりません: {log_file}", err=True)
        raise typer.Exit(code=1)

    try:
        log, description, start_url = load_yaml(log_file)
    except Exception as exc:
        typer.echo(f"エラー: 操作ログを読み込めません: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(generate_summary(log, description, start_url))


# ---------------------------------------------------------------------------
# videos コマンド
# ---------------------------------------------------------------------------

@app.command()
def videos(
    videos_dir: Path = typer.Argument(Path("videos"), help="動画保存ディレクトリ（デフォルト: videos）"),
) -> None:
    """録画済み動画を新しい順に一覧表示する。"""
    from .core.artifacts import list_videos

    files = list_videos(videos_dir)
    if not files:
        typer.echo(f"動画がありません: {videos_dir}")
        return

    for path in files:
        log_path = path.with_suffix(".yaml")
        suffix = "  (log)" if log_path.exists() else ""
        typer.echo(f"{path.name}{suffix}")
