# interfaces/classifier.py
"""
Contract of the classifier service used by the resolver and API detector.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.api import CapturedRequest
from ..models.detection import ApiVerdict, SelectorVerdict, TypeVerdict


class ClassifierService(ABC):
    """
    Assisted detection backed by a language model.

    Implementations must return None instead of raising when the model is
    unavailable, times out or answers with something unusable.
    """

    @abstractmethod
    async def classify_type(self, url: str, html: str) -> Optional[TypeVerdict]:
        pass

    @abstractmethod
    async def detect_selectors(self, url: str, html: str) -> Optional[SelectorVerdict]:
        pass

    @abstractmethod
    async def detect_api(
        self, url: str, requests: List[CapturedRequest]
    ) -> Optional[ApiVerdict]:
        pass
