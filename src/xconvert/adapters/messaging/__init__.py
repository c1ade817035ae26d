# src/xconvert/adapters/messaging/__init__.py
"""
Messaging Adapters - Durable Queue

This package contains the RabbitMQ client used for conversion and rate events.
"""

from xconvert.adapters.messaging.rabbitmq import QueueInfo, RabbitMQClient

__all__ = ["RabbitMQClient", "QueueInfo"]
