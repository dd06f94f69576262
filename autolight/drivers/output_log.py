from __future__ import annotations
import logging
from typing import Optional

from ..domain.models import LightOutput, OutputPair, StatusMessage

logger = logging.getLogger(__name__)


class LoggingOutputSink:
    sink_id = "log"

    def __init__(self) -> None:
        self.last_primary: Optional[LightOutput] = None
        self.last_status: Optional[StatusMessage] = None
        self.sent: list[OutputPair] = []

    async def send(self, outputs: OutputPair) -> None:
        self.sent.append(outputs)
        self.last_status = outputs.status
        if outputs.primary is not None:
            self.last_primary = outputs.primary
            logger.info(
                "LIGHT light=%s reason=%s",
                outputs.primary.light.value,
                outputs.primary.reason.value,
            )
        logger.info("STATUS %s [%s]", outputs.status.text, outputs.status.color_hint)
