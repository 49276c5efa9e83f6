"""
Narrative テスト — 要約文生成の単体テスト
"""

from __future__ import annotations

from demorec.mcp.narrative import FALLBACK_SUMMARY, generate_summary
from demorec.mcp.recorder import InteractionLog


def _log_with(navigations: int = 0, clicks: int = 0, types: int = 0) -> InteractionLog:
    log = InteractionLog()
    for i in range(navigations):
        log.record_navigate(f"https://example.com/page{i}")
    for i in range(clicks):
        log.record_click(f"Button {i}")
    for i in range(types):
        log.record_type(f"Field {i}", "value")
    return log


class TestFallback:
    """空ログのテスト。"""

    def test_empty_log_returns_fallback(self):
        assert generate_summary([], "Anything", "https://example.com") == FALLBACK_SUMMARY
        assert FALLBACK_SUMMARY == "Check out this demo! 🚀"


class TestSummaryLayout:
    """要約文の各行のテスト。"""

    def test_title_and_start_url(self):
        """タイトル行と開始 URL 行が含まれること。"""
        summary = generate_summary(_log_with(navigations=1), "Login flow", "https://example.com")
        lines = summary.split("\n")
        assert lines[0] == '🎬 Just recorded a demo: "Login flow"'
        assert lines[1] == ""
        assert lines[2] == "📍 Started at: https://example.com"

    def test_single_navigation_omits_page_count(self):
        """遷移が1回だけならページ数の行は出ないこと。"""
        summary = generate_summary(_log_with(navigations=1), "d", "https://example.com")
        assert "Navigated through" not in summary
        assert "strategic clicks" not in summary
        assert "form fields" not in summary

    def test_counts_are_reported(self):
        """遷移・クリック・入力の件数行が出ること。"""
        summary = generate_summary(
            _log_with(navigations=2, clicks=3, types=1), "d", "https://example.com",
        )
        assert "🔄 Navigated through 2 pages" in summary
        assert "🖱️ 3 strategic clicks" in summary
        assert "⌨️ Filled 1 form fields" in summary

    def test_key_moments_first_three_events(self):
        """キーモーメントは先頭3イベントのみ列挙されること。"""
        log = InteractionLog()
        log.record_navigate("https://example.com/docs/intro?x=1", description="Started demo")
        log.record_click("Sign in")
        log.record_type("Email", "user@example.com")
        log.record_click("Submit")

        summary = generate_summary(log, "d", "https://example.com/docs/intro?x=1")

        assert "✨ Key moments:" in summary
        assert "1. Navigated to /docs/intro" in summary
        assert '2. Clicked "Sign in"' in summary
        assert '3. Entered data in "Email"' in summary
        assert '"Submit"' not in summary

    def test_navigation_without_path_shows_root(self):
        """パスの無い URL は "/" として表示されること。"""
        log = InteractionLog()
        log.record_navigate("https://example.com")
        summary = generate_summary(log, "d", "https://example.com")
        assert "1. Navigated to /" in summary

    def test_trailer(self):
        """ハッシュタグと誘導文で終わること。"""
        summary = generate_summary(_log_with(clicks=1), "d", "https://example.com")
        lines = summary.split("\n")
        assert lines[-1] == "👇 Watch the full video to see it in action!"
        assert lines[-3] == "#Demo #WebAutomation #Tutorial #TechDemo #Playwright"

    def test_deterministic(self):
        """同じログからは同じ文字列が生成されること。"""
        log = _log_with(navigations=2, clicks=2, types=2)
        assert generate_summary(log, "d", "u") == generate_summary(log, "d", "u")


class TestEngagementLine:
    """操作数に応じた締めの行のテスト。"""

    def test_simple(self):
        summary = generate_summary(_log_with(navigations=1, clicks=4), "d", "u")
        assert "⚡ Simple 5-step process - easy to follow!" in summary

    def test_quick(self):
        summary = generate_summary(_log_with(navigations=1, clicks=5), "d", "u")
        assert "💡 Quick 6-step demo showing the essentials!" in summary

    def test_comprehensive(self):
        summary = generate_summary(_log_with(navigations=1, clicks=5, types=5), "d", "u")
        assert "🔥 11 total actions in this comprehensive walkthrough!" in summary
