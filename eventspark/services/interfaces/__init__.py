"""
Service interfaces for dependency inversion.
Lets a host swap how outcomes reach the user without touching coordinators.
"""

from .notifier import Notifier
from .collecting_notifier import CollectingNotifier, Notification

__all__ = ['Notifier', 'CollectingNotifier', 'Notification']
