# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Model Bridge — optional local language model via Ollama.

Runs on localhost:11434. Entirely optional: when Ollama is down or the
model isn't pulled, the bridge reports itself unavailable and feedback
stays rule-based. Nothing else breaks.

Bridge state lives on the instance. The feedback composer is handed one.

    bridge = ModelBridge()
    if bridge.init():
        result = bridge.try_generate("Say something kind.")
        if result.ok:
            print(result.text)
"""

import http.client
import json
import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger("mogle.bridge")

DEFAULT_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2:1b"
DEFAULT_TIMEOUT = 20.0  # seconds
PROBE_TIMEOUT = 5.0


class BridgeError(Exception):
    """Raised by ModelBridge.generate on any failure."""


@dataclass(frozen=True)
class BridgeResult:
    """Normalized generation outcome: exactly one of text / error is set."""
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class BridgeStatus:
    has_files: bool
    runtime_ready: bool
    model_loaded: bool
    last_error: Optional[str]


class ModelBridge:
    """One Ollama server + one model. Construct once, pass by reference."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url.rstrip("/")
        self.model = model
        self.timeout = timeout

        self._lock = threading.Lock()
        self._initialized = False
        self._has_files = False
        self._runtime_ready = False
        self._model_loaded = False
        self._last_error: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "ModelBridge":
        return cls(url=config.bridge_url, model=config.bridge_model,
                   timeout=config.bridge_timeout)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        endpoint: str,
        payload: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Raw HTTP call. GET without payload, POST with. Raises BridgeError."""
        url = f"{self.url}{endpoint}"
        if payload is None:
            req = urllib.request.Request(url, method="GET")
        else:
            req = urllib.request.Request(
                url,
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                method="POST",
            )
        try:
            with urllib.request.urlopen(req, timeout=timeout or self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as e:
            raise BridgeError(f"{endpoint}: {e}") from e
        except (ValueError, UnicodeDecodeError) as e:
            raise BridgeError(f"{endpoint}: bad response ({e})") from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def probe(self) -> bool:
        """Server reachable and the configured model is pulled."""
        try:
            tags = self._request("/api/tags", timeout=PROBE_TIMEOUT)
        except BridgeError as e:
            logger.debug("Ollama probe failed: %s", e)
            self._runtime_ready = False
            self._has_files = False
            self._last_error = str(e)
            return False

        models = tags.get("models", []) if isinstance(tags, dict) else None
        if not isinstance(models, list):
            self._runtime_ready = False
            self._has_files = False
            self._last_error = "/api/tags: unexpected response"
            logger.warning("Ollama returned an unexpected tag list: %r", tags)
            return False

        self._runtime_ready = True
        names = {m.get("name") for m in models if isinstance(m, dict)}
        self._has_files = self.model in names or f"{self.model}:latest" in names
        if not self._has_files:
            self._last_error = f"model {self.model} not found"
            logger.info("Ollama is up but %s is not pulled", self.model)
        return self._has_files

    def init(self) -> bool:
        """Probe, then load the model into memory. Never raises."""
        with self._lock:
            if self._initialized:
                return self.available
            self._initialized = True

            if not self.probe():
                return False

            try:
                # Empty prompt makes Ollama load the model without generating
                self._request("/api/generate", {"model": self.model, "prompt": "", "stream": False})
            except BridgeError as e:
                self._last_error = str(e)
                logger.warning("Model load failed for %s: %s", self.model, e)
                return False

            self._model_loaded = True
            self._last_error = None
            logger.info("Model bridge ready (%s @ %s)", self.model, self.url)
            return True

    @property
    def available(self) -> bool:
        return self._initialized and self._model_loaded and self._last_error is None

    def status(self) -> BridgeStatus:
        return BridgeStatus(
            has_files=self._has_files,
            runtime_ready=self._runtime_ready,
            model_loaded=self._model_loaded,
            last_error=self._last_error,
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(self, prompt: str, temperature: float = 0.7, max_tokens: int = 200) -> str:
        """
        Generate text for `prompt`.

        Raises BridgeError if the bridge was never initialized, the call
        fails, or the model returns no text. A transport failure marks
        the bridge unavailable until it is re-created.
        """
        if not self._initialized or not self._model_loaded:
            raise BridgeError("model bridge not initialized")

        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        try:
            result = self._request("/api/generate", payload)
        except BridgeError as e:
            self._last_error = str(e)
            raise

        text = result.get("response") if isinstance(result, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise BridgeError("empty response")
        return text.strip()

    def try_generate(self, prompt: str) -> BridgeResult:
        """generate() folded into a BridgeResult. Never raises."""
        try:
            return BridgeResult(text=self.generate(prompt))
        except BridgeError as e:
            return BridgeResult(error=str(e))
        except Exception as e:
            logger.warning("Model bridge unexpected error: %s", e)
            return BridgeResult(error=str(e))
