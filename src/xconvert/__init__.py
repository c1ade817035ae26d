# src/xconvert/__init__.py
"""
xConvert - Currency Conversion REST Service

A small service that stores exchange rates, converts amounts between
currencies, logs every conversion, refreshes rates from CoinGecko and
OpenExchangeRates on a schedule, renders daily/monthly reports and publishes
conversion and rate events to RabbitMQ and live WebSocket subscribers.
"""

__version__ = "1.0.0"
__author__ = "Masih Sadri"
