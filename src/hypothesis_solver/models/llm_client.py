"""
Reasoning oracle client.

The oracle is a black box that maps a text prompt to a text response (or
failure), tagged with an opaque call id. The call id doubles as the
independence group of every evidence item parsed from that response.

The default implementation shells out to the Ollama CLI.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from hypothesis_solver.config import get_settings

logger = logging.getLogger(__name__)

# Default model for Ollama
DEFAULT_OLLAMA_MODEL = "gpt-oss:20b"


class OracleResponse(BaseModel):
    """Response from the oracle."""

    content: str = Field(..., description="Generated text content")
    call_id: str = Field(..., description="Opaque id of the oracle call")


class OracleError(Exception):
    """Exception raised when the oracle CLI fails."""

    def __init__(self, message: str, return_code: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.return_code = return_code
        self.stderr = stderr


class OracleBase(ABC):
    """Abstract base class for reasoning oracles."""

    @abstractmethod
    def call(self, prompt: str) -> OracleResponse | None:
        """
        Send a prompt to the oracle.

        Args:
            prompt: Prompt text.

        Returns:
            The response, or None when the oracle failed. Failure means
            "no information gained", never an abort.
        """
        ...


class LLMClient(OracleBase):
    """
    Ollama-based oracle.

    Runs ``ollama run <model>`` with the prompt on stdin. Every call gets a
    sequential id ``oracle-call-<n>``.
    """

    def __init__(
        self,
        model: str | None = None,
        command: str | None = None,
        max_retries: int | None = None,
        timeout: int | None = None,
    ) -> None:
        """
        Initialize the Ollama oracle.

        Args:
            model: Model name (defaults to settings, then gpt-oss:20b).
            command: Ollama executable (defaults to settings).
            max_retries: Number of retries on failure (defaults to settings).
            timeout: Timeout in seconds per call (defaults to settings).
        """
        settings = get_settings()
        self._model = model or settings.oracle_model_name or DEFAULT_OLLAMA_MODEL
        self._command = command or settings.oracle_command
        self._max_retries = settings.oracle_max_retries if max_retries is None else max_retries
        self._timeout = timeout or settings.oracle_timeout
        self._debug = settings.debug
        self._call_count = 0

        logger.info(f"Initialized Ollama oracle with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def call_count(self) -> int:
        """Get the number of oracle calls made so far."""
        return self._call_count

    def reset_count(self) -> None:
        """Reset the call counter (call ids restart at 1)."""
        self._call_count = 0

    def _run_ollama_sync(self, prompt: str) -> str:
        """
        Run Ollama CLI synchronously with retry logic.

        Args:
            prompt: The prompt to send to the model.

        Returns:
            The model's response text, stripped of whitespace.

        Raises:
            OracleError: If Ollama fails after all retries.
        """
        cmd = [self._command, "run", self._model]

        last_error: OracleError | None = None
        attempts = 0

        while attempts <= self._max_retries:
            attempts += 1
            try:
                logger.debug(f"Running Ollama (attempt {attempts}): {' '.join(cmd)}")

                process = subprocess.run(
                    cmd,
                    input=prompt,
                    capture_output=True,
                    text=True,
                    timeout=self._timeout,
                )

                if process.returncode != 0:
                    error_msg = process.stderr.strip() or f"Exit code: {process.returncode}"
                    logger.warning(f"Ollama failed (attempt {attempts}): {error_msg}")
                    last_error = OracleError(
                        f"Ollama exited with code {process.returncode}",
                        return_code=process.returncode,
                        stderr=process.stderr,
                    )
                    continue

                response = process.stdout.strip()
                logger.debug(f"Ollama response length: {len(response)} chars")
                return response

            except subprocess.TimeoutExpired:
                logger.warning(f"Ollama timed out after {self._timeout}s (attempt {attempts})")
                last_error = OracleError(f"Ollama timed out after {self._timeout} seconds")

            except FileNotFoundError:
                error_msg = f"Ollama CLI not found at '{self._command}'. Please install Ollama: https://ollama.ai"
                logger.error(error_msg)
                raise OracleError(error_msg)

            except OSError as e:
                logger.warning(f"Ollama error (attempt {attempts}): {e}")
                last_error = OracleError(str(e))

        raise last_error or OracleError("Ollama failed after all retries")

    def call(self, prompt: str) -> OracleResponse | None:
        """
        Send a prompt to Ollama.

        Args:
            prompt: Prompt text.

        Returns:
            The response, or None on failure.
        """
        self._call_count += 1
        call_id = f"oracle-call-{self._call_count}"

        if self._debug:
            preview = prompt[:80].replace("\n", " ")
            logger.debug(f"[{call_id}] {preview}...")

        try:
            content = self._run_ollama_sync(prompt)
        except OracleError as e:
            logger.warning(f"Oracle call {call_id} failed: {e}")
            return None

        return OracleResponse(content=content, call_id=call_id)
