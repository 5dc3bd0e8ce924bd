# ridehail/core/__init__.py
"""
Доменный слой (Core Domain).
Поездки, водители, предложения цены, оценки, кошельки и платежи.
Сервисы получают хранилища и инфраструктуру через конструктор.
"""

from ridehail.core.identity import Identity

__all__ = ["Identity"]
