from abc import ABC, abstractmethod
from typing import Any


class AutomationPort(ABC):
    @abstractmethod
    def trigger(self, payload: dict[str, Any]) -> None:
        """Fire a CRM-side automation. Completion happens out of band."""
        raise NotImplementedError
