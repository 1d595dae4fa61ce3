"""Description: Artifact observation analysis through an OpenAI-compatible chat API."""

import logging
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from models.inference_result import InferenceResult
from services.inference.media_inputs import build_messages
from services.inference.prompts import build_instruction
from services.inference.response_parser import parse_model_output
from services.inference.response_utils import extract_message_text, response_to_text


class ObservationAnalyzer:
    """Class for asking the inference API to label and date an image."""

    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        """Initialize the analyzer with an async client and model name."""
        if client is None:
            raise ValueError("Inference client must be provided.")
        self.client = client
        self.model = model
        self.instruction = build_instruction()

    async def analyze(self, image_b64: str, mime_type: str) -> InferenceResult:
        """Send one image to the model and parse its answer.

        Unparseable output degrades to a `RawFallback`; errors from the API
        call itself are logged and propagated.
        """
        start_time = time.time()
        messages = build_messages(self.instruction, image_b64, mime_type)
        response = await self._create_completion(messages)
        logging.info("Inference latency: %.3fs", time.time() - start_time)

        result = parse_model_output(extract_message_text(response), response_to_text(response))
        if not result.parsed:
            logging.warning("Inference output was not valid JSON; storing raw response.")
        return result

    async def _create_completion(self, messages: List[Dict[str, Any]]) -> Any:
        """Send the multimodal request, once, with the client's default transport settings."""
        try:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except Exception as exc:
            logging.error("Error during inference API call: %s", exc)
            raise
