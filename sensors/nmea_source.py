"""Absolute fix source fed by NMEA GGA sentences"""
import logging
import time
from typing import Callable, Iterable, Optional, Union

from pynmeagps import NMEAMessage, NMEAReader
from pynmeagps.exceptions import NMEAMessageError, NMEAParseError, NMEATypeError

from config.settings import nmea_config
from navigation.core.data_types import FixSample
from .streams import FixSource

logger = logging.getLogger(__name__)

# GGA quality indicator values
QUALITY_NO_FIX = 0
QUALITY_RTK_FIXED = 4
QUALITY_RTK_FLOAT = 5
USABLE_QUALITIES = {1, 2, 3, QUALITY_RTK_FIXED, QUALITY_RTK_FLOAT}


class NMEAFixSource(FixSource):
    """
    Turns GGA sentences into FixSample pushes

    Accuracy radius is estimated as HDOP x UERE. RTK fixed solutions report
    their nominal precision and float solutions never go below theirs. Sentences that
    fail the checksum, carry no fix or hold out-of-range coordinates are
    dropped and counted in ``rejected_sentences``.
    """

    RTK_FIXED_FLOOR_M = 0.05
    RTK_FLOAT_FLOOR_M = 0.5

    def __init__(self, uere_m: Optional[float] = None, clock: Optional[Callable[[], float]] = None):
        """
        Initialize NMEA fix source

        Args:
            uere_m: User equivalent range error used to scale HDOP (meters);
                defaults to NMEA_UERE_M
            clock: Receive time source in milliseconds (defaults to time.time())
        """
        super().__init__("NMEAFixSource")
        self.uere_m = uere_m if uere_m is not None else nmea_config["uere_m"]
        self._clock = clock or (lambda: time.time() * 1000.0)
        self.rejected_sentences = 0
        self._last_quality: Optional[int] = None

    def feed(self, sentence: Union[str, bytes]) -> Optional[FixSample]:
        """
        Parse one raw NMEA sentence and publish a fix if it yields one

        Returns:
            Published FixSample, or None when the sentence was not usable
        """
        if isinstance(sentence, str):
            sentence = sentence.encode('ascii', errors='replace')
        sentence = sentence.strip()
        if not sentence:
            return None

        try:
            message = NMEAReader.parse(sentence)
        except (NMEAParseError, NMEAMessageError, NMEATypeError) as e:
            self.rejected_sentences += 1
            logger.warning(f"📡 Rejected NMEA sentence: {e}")
            return None

        return self.handle_message(message)

    def consume(self, stream, max_fixes: Optional[int] = None) -> int:
        """
        Read sentences from a byte stream (serial port, file) until it is exhausted

        Args:
            stream: Object with read()/readline(), as accepted by NMEAReader
            max_fixes: Stop after publishing this many fixes

        Returns:
            Number of fixes published
        """
        published = 0
        reader = NMEAReader(stream)
        for _, parsed in reader:
            if parsed is None:
                continue
            if self.handle_message(parsed) is not None:
                published += 1
                if max_fixes is not None and published >= max_fixes:
                    break
        return published

    def feed_lines(self, lines: Iterable[Union[str, bytes]]) -> int:
        """Feed several sentences; returns number of fixes published"""
        return sum(1 for line in lines if self.feed(line) is not None)

    def handle_message(self, message: NMEAMessage) -> Optional[FixSample]:
        if getattr(message, 'msgID', None) != 'GGA':
            return None

        fix = self._parse_gga(message)
        if fix is None:
            self.rejected_sentences += 1
            return None

        self.publish(fix)
        return fix

    def accuracy_from_gga(self, quality: int, hdop: Optional[float]) -> Optional[float]:
        """Estimated accuracy radius in meters for a GGA solution"""
        if quality == QUALITY_RTK_FIXED:
            return self.RTK_FIXED_FLOOR_M
        if hdop is None or hdop <= 0:
            return self.RTK_FLOAT_FLOOR_M if quality == QUALITY_RTK_FLOAT else None

        accuracy = hdop * self.uere_m
        if quality == QUALITY_RTK_FLOAT:
            return max(self.RTK_FLOAT_FLOOR_M, accuracy)
        return accuracy

    def _parse_gga(self, gga: NMEAMessage) -> Optional[FixSample]:
        quality = self._int_field(gga, 'quality')
        if quality is None or quality == QUALITY_NO_FIX:
            logger.debug("📡 GGA: No fix available")
            return None
        if quality not in USABLE_QUALITIES:
            logger.debug(f"📡 GGA: Unusable quality indicator {quality}")
            return None

        if gga.lat in (None, '') or gga.lon in (None, ''):
            logger.debug("📡 GGA message has empty lat/lon data")
            return None

        try:
            lat = float(gga.lat)
            lon = float(gga.lon)
        except (ValueError, TypeError) as e:
            logger.warning(f"📡 GGA: Invalid lat/lon format - lat={gga.lat}, lon={gga.lon}: {e}")
            return None

        if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
            logger.warning(f"📡 GGA: Coordinates out of range ({lat}, {lon})")
            return None

        hdop = self._float_field(gga, 'HDOP')
        accuracy = self.accuracy_from_gga(quality, hdop)
        if accuracy is None:
            logger.warning(f"📡 GGA: No HDOP for quality {quality} fix")
            return None

        if quality != self._last_quality:
            if quality == QUALITY_RTK_FIXED:
                logger.info(f"🎯 RTK FIXED! Lat={lat:.7f}, Lon={lon:.7f}")
            elif quality == QUALITY_RTK_FLOAT:
                logger.info(f"🔶 RTK FLOAT: Lat={lat:.7f}, Lon={lon:.7f}")
            else:
                logger.info(f"📍 GGA fix quality {quality}: accuracy ~{accuracy:.1f}m")
            self._last_quality = quality

        return FixSample(latitude=lat, longitude=lon, accuracy_m=accuracy,
                         timestamp_ms=self._clock())

    @staticmethod
    def _int_field(message: NMEAMessage, name: str) -> Optional[int]:
        value = getattr(message, name, None)
        if value in (None, ''):
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _float_field(message: NMEAMessage, name: str) -> Optional[float]:
        value = getattr(message, name, None)
        if value in (None, ''):
            return None
        try:
            return float(value)
        except (ValueError, TypeError):
            return None
