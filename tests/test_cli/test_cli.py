"""
CLI テスト — typer.testing.CliRunner を使用した CLI コマンドのテスト

実際のブラウザ起動や MCP サーバー起動は行わず、モックで代替する。
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from demorec.cli import app
from demorec.mcp.recorder import InteractionLog

runner = CliRunner()


def _write_log(path: Path) -> Path:
    log = InteractionLog()
    log.record_navigate("https://example.com", description="Started demo")
    log.record_click("Sign in")
    return log.save_yaml(path, "Login flow", "https://example.com")


# ===========================================================================
# 1. summarize コマンド
# ===========================================================================

class TestSummarizeCommand:
    """summarize コマンドのテスト。"""

    def test_prints_summary(self, tmp_path: Path):
        path = _write_log(tmp_path / "demo.yaml")

        result = runner.invoke(app, ["summarize", str(path)])

        assert result.exit_code == 0
        assert '🎬 Just recorded a demo: "Login flow"' in result.output
        assert '2. Clicked "Sign in"' in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["summarize", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1


# ===========================================================================
# 2. videos コマンド
# ===========================================================================

class TestVideosCommand:
    """videos コマンドのテスト。"""

    def test_empty_dir(self, tmp_path: Path):
        result = runner.invoke(app, ["videos", str(tmp_path)])
        assert result.exit_code == 0
        assert "動画がありません" in result.output

    def test_lists_newest_first_with_log_marker(self, tmp_path: Path):
        old = tmp_path / "old.webm"
        new = tmp_path / "new.webm"
        for path, mtime in ((old, 1_000_000), (new, 2_000_000)):
            path.write_bytes(b"webm")
            os.utime(path, (mtime, mtime))
        _write_log(tmp_path / "new.yaml")

        result = runner.invoke(app, ["videos", str(tmp_path)])

        lines = result.output.strip().splitlines()
        assert lines == ["new.webm  (log)", "old.webm"]


# ===========================================================================
# 3. serve コマンド
# ===========================================================================

class TestServeCommand:
    """serve コマンドのテスト。"""

    def test_unknown_browser(self):
        result = runner.invoke(app, ["serve", "--browser", "netscape"])
        assert result.exit_code == 1

    def test_runs_server_with_cli_config(self, tmp_path: Path):
        """CLI オプションを反映した設定でサーバーを起動すること。"""
        server = MagicMock()
        with patch("demorec.mcp.server.create_server", return_value=server) as create, \
                patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(app, [
                "serve", "--headless", "--videos-dir", str(tmp_path), "--viewport", "800x600",
            ])

        assert result.exit_code == 0
        config = create.call_args.kwargs["config"]
        assert config.headed is False
        assert config.videos_dir == str(tmp_path)
        assert (config.viewport_width, config.viewport_height) == (800, 600)
        server.run.assert_called_once()

    def test_server_failure_exits_with_error(self):
        with patch("demorec.mcp.server.create_server", side_effect=RuntimeError("boom")):
            result = runner.invoke(app, ["serve"])
        assert result.exit_code == 1
