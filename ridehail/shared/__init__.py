# ridehail/shared/__init__.py
"""
Общий код между сервисами: схемы доменных событий.
"""
