"""
发布策略基类
"""
from abc import ABC, abstractmethod

from reel_relay.models import MediaAsset, MediaDescriptor, PublishOptions


def resolve_caption(descriptor: MediaDescriptor, options: PublishOptions | None) -> str:
    if options is not None and options.caption is not None:
        return options.caption
    return descriptor.caption or ""


class StoryPublisher(ABC):
    """One way of getting a media file onto Telegram as a story."""

    name: str = "publisher"

    @abstractmethod
    def publish(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        options: PublishOptions | None = None,
    ) -> None:
        pass

    def close(self) -> None:
        """Release long-lived connections. Most strategies hold none."""


class PreviewSender(ABC):
    @abstractmethod
    def send_preview(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        caption: str | None = None,
    ) -> None:
        pass
