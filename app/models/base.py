"""Базовый декларативный класс для таблиц турнира."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Базовый класс для всех ORM моделей.
    pass
