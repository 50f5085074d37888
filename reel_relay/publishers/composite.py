from __future__ import annotations

from reel_relay.errors import AllStrategiesExhaustedError
from reel_relay.models import MediaAsset, MediaDescriptor, PublishOptions
from reel_relay.publishers.base import StoryPublisher
from reel_relay.utils.logger import logger


class CompositeStoryPublisher(StoryPublisher):
    """Tries the primary strategy, then the fallback.

    A missing primary is not a failure. The call only fails when nothing is
    left to try, with AllStrategiesExhaustedError.
    """

    name = "composite"

    def __init__(self, primary: StoryPublisher | None = None, fallback: StoryPublisher | None = None):
        self.primary = primary
        self.fallback = fallback

    def publish(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        options: PublishOptions | None = None,
    ) -> None:
        failures: list[BaseException] = []

        if self.primary is not None:
            try:
                self.primary.publish(asset, descriptor, options)
                return
            except Exception as e:
                failures.append(e)
                logger.warning(f"Primary story publisher ({self.primary.name}) failed, attempting fallback: {e}")

        if self.fallback is None:
            raise AllStrategiesExhaustedError("No available Telegram story publisher strategies", failures)

        try:
            self.fallback.publish(asset, descriptor, options)
        except Exception as e:
            failures.append(e)
            raise AllStrategiesExhaustedError(
                f"All story publisher strategies failed; last error: {e}", failures
            ) from e

    def close(self) -> None:
        for strategy in (self.primary, self.fallback):
            if strategy is None:
                continue
            try:
                strategy.close()
            except Exception as e:
                logger.warning(f"Failed to close {strategy.name} publisher: {e}")
