"""
お小遣いBot - 家族向けのお小遣い台帳とSlackボット
"""

__version__ = "1.0.0"
