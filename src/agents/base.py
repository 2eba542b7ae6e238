"""
Inference client adapter: the only component that talks to the vision provider.
One call per invocation, bounded by a wall-clock timeout, no retries.
"""

import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Any, Dict, List, Optional

from huggingface_hub import InferenceClient, InferenceTimeoutError

from src.exceptions import (
    ConfigurationError,
    InferenceProviderError,
    InferenceTimeout,
    InvalidArgument,
)
from src.schemas.models import ImageRef
from src.storage.uploads import UploadStore
from utils.config import config
from utils.image_utils import encode_image_data_uri
from utils.logger import setup_logger
from utils.prompts import DESCRIPTIVE_INSTRUCTION


class InferenceClientAdapter:
    """
    Wraps a single chat-completion call to the vision provider.

    Images are resolved through the upload store and sent as data URIs,
    each preceded by an ``id: <image id>`` text part so the model can echo it.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        store: Optional[UploadStore] = None,
        model_id: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ):
        self.model_id = model_id or config.vlm_model
        self.timeout = timeout or config.api_timeout
        self.temperature = config.vlm_temperature if temperature is None else temperature
        self.top_p = config.vlm_top_p if top_p is None else top_p
        self.store = store or UploadStore()
        self.logger = setup_logger(
            "agent.inference",
            level=config.log_level,
            component="INFERENCE"
        )
        self.client = client or self._build_client()

        self.logger.info(f"Initialized inference client for model: {self.model_id}")

    def _build_client(self) -> InferenceClient:
        if not config.huggingface_api_key:
            raise ConfigurationError(
                "HUGGINGFACE_API_KEY is required to reach the inference provider. "
                "Get one from: https://huggingface.co/settings/tokens"
            )
        if config.huggingface_api_endpoint:
            return InferenceClient(
                base_url=config.huggingface_api_endpoint,
                api_key=config.huggingface_api_key,
                timeout=self.timeout,
            )
        return InferenceClient(api_key=config.huggingface_api_key, timeout=self.timeout)

    def check_images(self, images: List[ImageRef]) -> None:
        """Raise InvalidArgument unless every image resolves in the upload store."""
        self.store.verify(images)

    def _encode(self, ref: ImageRef) -> str:
        try:
            return encode_image_data_uri(self.store.read_bytes(ref))
        except (OSError, ValueError) as e:
            raise InvalidArgument(f"Image '{ref.id}' could not be loaded: {e}") from e

    def encode_images(self, images: List[ImageRef]) -> List[Dict[str, Any]]:
        """
        Encode images into message parts, each preceded by its id label.

        The result can be passed to several `infer` calls over the same chunk.
        """
        parts: List[Dict[str, Any]] = []
        for ref in images:
            parts.append({"type": "text", "text": f"id: {ref.id}"})
            parts.append({
                "type": "image_url",
                "image_url": {"url": self._encode(ref), "detail": "high"}
            })
        return parts

    def build_messages(
        self,
        system_prompt: str,
        images: List[ImageRef],
        instruction: str = DESCRIPTIVE_INSTRUCTION,
        image_parts: Optional[List[Dict[str, Any]]] = None
    ) -> List[Dict[str, Any]]:
        """Build the chat messages for one call."""
        if image_parts is None:
            image_parts = self.encode_images(images)
        content: List[Dict[str, Any]] = [{"type": "text", "text": instruction}] + image_parts

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ]

    def _complete(self, messages: List[Dict[str, Any]], max_output_tokens: int) -> str:
        completion = self.client.chat.completions.create(
            model=self.model_id,
            messages=messages,
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=max_output_tokens
        )
        content = completion.choices[0].message.content if completion.choices else None
        return content or "{}"

    def infer(
        self,
        system_prompt: str,
        images: List[ImageRef],
        max_output_tokens: int,
        instruction: str = DESCRIPTIVE_INSTRUCTION,
        image_parts: Optional[List[Dict[str, Any]]] = None
    ) -> str:
        """
        Send one prompt plus images to the provider.

        Args:
            system_prompt: System message for the pass
            images: Images for this call (at most one chunk)
            max_output_tokens: Completion token limit
            instruction: User-side instruction preceding the images
            image_parts: Parts from `encode_images`; encoded here when omitted

        Returns:
            Raw model text (not guaranteed to be JSON)

        Raises:
            InferenceTimeout: If the call exceeds the timeout
            InferenceProviderError: On any transport or provider failure
        """
        messages = self.build_messages(system_prompt, images, instruction, image_parts)

        self.logger.debug(f"Calling provider with {len(images)} image(s)...")
        start_time = time.time()

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._complete, messages, max_output_tokens)
        try:
            text = future.result(timeout=self.timeout)
        except FuturesTimeout:
            future.cancel()
            self.logger.error(f"Provider call exceeded {self.timeout}s, abandoning it")
            raise InferenceTimeout(self.timeout)
        except InferenceTimeoutError as e:
            self.logger.error(f"Provider reported a timeout: {e}")
            raise InferenceTimeout(self.timeout, str(e)) from e
        except Exception as e:
            self.logger.error(f"Provider call failed: {e}")
            raise InferenceProviderError(str(e)) from e
        finally:
            # Never block on an abandoned call
            executor.shutdown(wait=False)

        elapsed = time.time() - start_time
        self.logger.info(f"Provider response received in {elapsed:.2f}s")
        self.logger.debug(f"Raw response (first 300 chars): {text[:300]}...")
        return text

    def health_check(self) -> bool:
        """Perform health check on the provider."""
        try:
            self.logger.info(f"Health check: {self.model_id}")

            completion = self.client.chat.completions.create(
                model=self.model_id,
                messages=[{"role": "user", "content": "Respond with only the word 'OK'"}],
                max_tokens=10
            )

            response = completion.choices[0].message.content
            if response:
                self.logger.info("✓ Inference provider is healthy")
                return True
            return False

        except Exception as e:
            self.logger.error(f"✗ Inference provider health check failed: {e}")
            return False
