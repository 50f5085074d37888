"""
媒体获取器基类
"""
from abc import ABC, abstractmethod

from reel_relay.models import AcquisitionResult, MediaRequest
from reel_relay.utils.process import ProcessRunner


class BaseExtractor(ABC):
    """Downloads one piece of media and describes it."""

    def __init__(self, runner: ProcessRunner | None = None):
        self.runner = runner or ProcessRunner()

    @abstractmethod
    def acquire(self, request: MediaRequest) -> AcquisitionResult:
        """
        Fetch the media behind request.source_url into a local file.

        Returns:
            AcquisitionResult(asset, descriptor); asset.local_path exists on return
            and the caller is responsible for deleting it.
        """
        pass
