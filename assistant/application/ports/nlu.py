from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from assistant.domain.entities.extracted_data import ExtractedData
from assistant.domain.entities.parsed_action import MissingField, ParsedAction


@dataclass(frozen=True)
class NLUContext:
    extracted_data: ExtractedData = field(default_factory=ExtractedData)
    pending_fields: tuple[MissingField, ...] = ()


class NLUPort(ABC):
    @abstractmethod
    async def parse(self, transcript: str, context: NLUContext) -> ParsedAction:
        """
        Convert one transcript into a structured action.

        The adapter is stateless per call: everything it knows about earlier
        turns arrives in `context`.

        Raises:
            NLUUpstreamError: networking/provider failures
            NLUContractError: the provider answered with an unusable shape
        """
        raise NotImplementedError
