"""
demorec — ナレーション付きブラウザデモ録画ツール

AI エージェントの操作を可視カーソル付きで録画し、
操作ログから要約文を生成する。
"""

__version__ = "0.1.0"
