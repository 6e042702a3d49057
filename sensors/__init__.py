"""Sensor push streams for navigation sessions"""
from .streams import SensorStream, FixSource, MotionSource, HeadingSource, Subscription
from .nmea_source import NMEAFixSource

__all__ = ['SensorStream', 'FixSource', 'MotionSource', 'HeadingSource',
           'Subscription', 'NMEAFixSource']
