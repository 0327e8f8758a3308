"""
定期実行処理
"""
