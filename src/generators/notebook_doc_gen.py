"""Notebook documentation pipeline.

Runs the five stages that turn a notebook script into a Markdown
document: load the credential bundle, decrypt the credential, build the
prompt, call the completion service, and hand back the result. The
pipeline is fail-fast: the first classified error ends the run.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from src.generators.llm_client import GenerationResult, LLMClient
from src.generators.prompt_builder import build_prompt, count_tokens, read_source
from src.generators.template_manager import TemplateManager
from src.security.cipher import open_credential
from src.security.secret_store import SecretStore
from src.utils.config import AppConfig, load_config
from src.utils.errors import DoxcerError

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Stages of a pipeline run, in the order they are reached."""

    START = "start"
    CONFIG_LOADED = "config_loaded"
    CREDENTIAL_DECRYPTED = "credential_decrypted"
    PROMPT_BUILT = "prompt_built"
    RESPONSE_RECEIVED = "response_received"
    DONE = "done"
    FAILED = "failed"


_ORDER = [
    PipelineState.START,
    PipelineState.CONFIG_LOADED,
    PipelineState.CREDENTIAL_DECRYPTED,
    PipelineState.PROMPT_BUILT,
    PipelineState.RESPONSE_RECEIVED,
    PipelineState.DONE,
]


@dataclass
class DryRunReport:
    """What a run would send, without decrypting or calling the service.

    Attributes:
        notebook: Path of the notebook.
        prompt_chars: Length of the prompt in characters.
        estimated_tokens: Heuristic token count of the prompt.
        model: Model the request would use.
    """

    notebook: str
    prompt_chars: int
    estimated_tokens: int
    model: str


class NotebookDocGenerator:
    """Generates notebook documentation through the completion service.

    A generator instance handles one run. ``state`` records how far the
    run got and ``error`` holds the failure that stopped it, if any.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        template_manager: Optional[TemplateManager] = None,
        secret_store: Optional[SecretStore] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            llm_client: The LLM client for API calls.
            template_manager: Template manager for the instructions.
            secret_store: Source of the encrypted credential bundle.
            config: Application configuration.
        """
        self.config = config or load_config()
        self.llm = llm_client or LLMClient(config=self.config.api)
        self.templates = template_manager or TemplateManager(
            templates_dir=self.config.prompt.templates_dir
        )
        self.secrets = secret_store or SecretStore(config=self.config.secrets)
        self.state = PipelineState.START
        self.failed_stage: Optional[PipelineState] = None
        self.error: Optional[DoxcerError] = None

    def run(
        self,
        notebook_path: Union[str, Path],
        env_file: Optional[Union[str, Path]] = None,
        model: Optional[str] = None,
    ) -> GenerationResult:
        """Generate documentation for a notebook.

        Args:
            notebook_path: Path of the notebook script to document.
            env_file: Explicit .env file. Searched for when omitted.
            model: Model override.

        Returns:
            The completion holding the generated Markdown.

        Raises:
            DoxcerError: The first classified failure, unchanged.
        """
        self._reset()
        try:
            bundle = self.secrets.load(env_file)
            self._advance(PipelineState.CONFIG_LOADED)

            with open_credential(bundle) as credential:
                self._advance(PipelineState.CREDENTIAL_DECRYPTED)

                prompt = self.build_prompt(notebook_path)
                self._advance(PipelineState.PROMPT_BUILT)

                result = self.llm.complete(credential, prompt, model=model)
                self._advance(PipelineState.RESPONSE_RECEIVED)
        except DoxcerError as e:
            self._fail(e)
            raise

        self._advance(PipelineState.DONE)
        logger.info("Generated documentation for %s", notebook_path)
        return result

    def dry_run(
        self,
        notebook_path: Union[str, Path],
        model: Optional[str] = None,
    ) -> DryRunReport:
        """Build the prompt and report its size without sending it.

        Skips the credential stages entirely, so no secret is read.

        Raises:
            IoError: If the notebook or template cannot be read.
        """
        self._reset()
        try:
            prompt = self.build_prompt(notebook_path)
        except DoxcerError as e:
            self._fail(e, stage=PipelineState.PROMPT_BUILT)
            raise
        self.state = PipelineState.PROMPT_BUILT

        return DryRunReport(
            notebook=str(notebook_path),
            prompt_chars=len(prompt),
            estimated_tokens=count_tokens(prompt),
            model=model or self.config.api.model,
        )

    def build_prompt(self, notebook_path: Union[str, Path]) -> str:
        """Render the instructions and append the notebook source.

        Raises:
            IoError: If the notebook or template cannot be read.
        """
        source = read_source(notebook_path)
        instructions = self.templates.render_instructions(
            self.config.prompt.template, author=self.config.prompt.author
        )
        return build_prompt(instructions, source)

    def _reset(self) -> None:
        self.state = PipelineState.START
        self.failed_stage = None
        self.error = None

    def _advance(self, state: PipelineState) -> None:
        expected = _ORDER[_ORDER.index(self.state) + 1]
        if state is not expected:
            raise RuntimeError(f"Invalid pipeline transition {self.state} -> {state}")
        self.state = state
        logger.debug("Pipeline state: %s", state.value)

    def _fail(
        self, error: DoxcerError, stage: Optional[PipelineState] = None
    ) -> None:
        failed_stage = stage or _ORDER[_ORDER.index(self.state) + 1]
        self.failed_stage = failed_stage
        self.state = PipelineState.FAILED
        self.error = error
        logger.debug(
            "Pipeline failed while reaching %s: %s", failed_stage.value, error
        )
