"""Change notification for index consumers."""

from notify.channel import ChangeEvent, ChangeNotifier, Subscription

__all__ = ["ChangeEvent", "ChangeNotifier", "Subscription"]
