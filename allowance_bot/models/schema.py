"""
テーブル定義 - 取引テーブルと最低残高テーブル
"""

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TransactionRow(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender = Column(String(128), nullable=True, index=True)  # NULLは発行（初期残高）
    receiver = Column(String(128), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)  # セント単位、常に正の値
    date = Column(DateTime, nullable=False)  # UTC
    memo = Column(Text, nullable=True)


class MinimumBalanceRow(Base):
    __tablename__ = "users"

    user_id = Column(String(128), primary_key=True)
    min_balance = Column(BigInteger, nullable=False, default=0)
