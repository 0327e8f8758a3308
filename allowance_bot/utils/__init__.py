"""
ユーティリティ
"""
