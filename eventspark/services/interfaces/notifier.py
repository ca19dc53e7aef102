"""
Notifier interface.
The headless stand-in for the dashboards' toast messages.
"""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """
    Surface for user-visible outcomes of an action.

    Implementations:
    - CollectingNotifier: keeps every notification in order for the host to show
    """

    @abstractmethod
    def success(self, message: str) -> None:
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass
