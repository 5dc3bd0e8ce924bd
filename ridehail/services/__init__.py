# ridehail/services/__init__.py
"""
HTTP сервисы поверх ядра.

Архитектура:
- Каждый сервис является независимым FastAPI-приложением
- Общая PostgreSQL, события в RabbitMQ, дедупликация уведомлений в Redis
- Личность вызывающего приходит в заголовках X-User-Id / X-User-Role

Сервисы:
- trip_service: поездки, доска водителя, принятие, статусы, оценки, предложения цены
- driver_service: местоположение, доступность, водители поблизости, заработок
- payments: оплата поездок, вебхук провайдера, кошелёк и выводы
- combined: три сервиса в одном процессе с общим lifespan
"""

__all__: list[str] = []
