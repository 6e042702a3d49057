"""Push-style sensor stream types"""
from typing import Callable, Generic, Optional, Sequence, TypeVar

from navigation.core.data_types import FixSample, HeadingSample, MotionSample
from navigation.core.subscriptions import SubscriberList, Subscription

T = TypeVar('T')


class SensorStream(Generic[T]):
    """
    Base class for sensor sources

    Consumers subscribe and receive every published sample in publish order.
    Subscribing returns a handle; unsubscribe() is idempotent.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self._subscribers: SubscriberList[T] = SubscriberList(self.name)
        self.published = 0

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        return self._subscribers.add(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, sample: T):
        self.published += 1
        self._subscribers.publish(sample)


class FixSource(SensorStream[FixSample]):
    """Absolute position fixes (latitude, longitude, accuracy radius)"""

    def publish_fix(self, latitude: float, longitude: float, accuracy_m: float,
                    timestamp_ms: float) -> FixSample:
        sample = FixSample(latitude=latitude, longitude=longitude,
                           accuracy_m=accuracy_m, timestamp_ms=timestamp_ms)
        self.publish(sample)
        return sample


class MotionSource(SensorStream[MotionSample]):
    """Linear acceleration samples with device orientation"""

    def publish_motion(self, acceleration: Sequence[float], timestamp_ms: float,
                       heading: Optional[float] = None,
                       rotation_matrix: Optional[Sequence[Sequence[float]]] = None) -> MotionSample:
        sample = MotionSample(acceleration=tuple(acceleration), timestamp_ms=timestamp_ms,
                              heading=heading, rotation_matrix=rotation_matrix)
        self.publish(sample)
        return sample


class HeadingSource(SensorStream[HeadingSample]):
    """Compass heading readings"""

    def publish_heading(self, heading: float, timestamp_ms: float) -> HeadingSample:
        sample = HeadingSample(heading=heading, timestamp_ms=timestamp_ms)
        self.publish(sample)
        return sample
