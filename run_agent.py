#!/usr/bin/env python3
"""
Onboarding Agent Runner

Playful CLI onboarding agent on the OpenAI Responses API, with optional
Conversations API memory that survives restarts.

Each run starts a fresh conversation unless CONVERSATION_ID is set or
--resume is passed, in which case the id saved in .openai_conversation_id
is reused.

Usage:
    python run_agent.py
    python run_agent.py --message="ada@example.com"
    python run_agent.py --resume --verbose
"""

import dataclasses
import logging
import sys
from typing import Optional

import fire
from openai import OpenAI
from rich.console import Console

from agent.config_documents import ConfigDocumentStore
from agent.config_validator import ConfigValidationError, validate_settings
from agent.prompt_assembler import PromptAssembler
from agent.session_store import SessionStore, create_conversation
from agent.turn_orchestrator import TurnOrchestrator
from onboard_cli.config import load_env, load_settings
from onboard_cli.shell import InteractiveShell, resolve_conversation
from tools.enrichment_tool import check_enrichment_requirements

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        for noisy in ("httpx", "httpcore", "openai"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


def main(
    message: Optional[str] = None,
    resume: bool = False,
    verbose: bool = False,
    model: Optional[str] = None,
    web_search: Optional[bool] = None,
    auto_enrich: Optional[bool] = None,
):
    """
    Run the interactive onboarding agent.

    Args:
        message (str): Optional first message (e.g. the user's work email).
        resume (bool): Reuse the saved conversation instead of starting fresh.
        verbose (bool): Enable debug logging.
        model (str): Override OPENAI_MODEL / config.yaml model.
        web_search (bool): Declare the hosted web search tool.
        auto_enrich (bool): Enrich any email the user types before each turn.
    """
    setup_logging(verbose)
    load_env()
    settings = load_settings()

    overrides = {}
    if model:
        overrides["model"] = model
    if web_search is not None:
        overrides["web_search"] = bool(web_search)
    if auto_enrich is not None:
        overrides["auto_enrich"] = bool(auto_enrich)
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    console = Console(highlight=False)
    try:
        validate_settings(settings)
    except ConfigValidationError as e:
        console.print(str(e), style="red", markup=False)
        sys.exit(1)

    if not check_enrichment_requirements(settings.mixrank_key):
        console.print("MIXRANK_KEY not set: email lookups are unavailable.", style="dim", markup=False)

    client = OpenAI(api_key=settings.openai_api_key)
    assembler = PromptAssembler(ConfigDocumentStore(settings.config_dir))
    instructions = assembler.build()
    store = SessionStore(
        settings.conversation_file,
        create_fn=lambda: create_conversation(client, assembler.build()),
    )

    if not settings.conversation_id and not resume:
        store.forget()
    conversation_id = resolve_conversation(store, settings.conversation_id)

    orchestrator = TurnOrchestrator(
        client,
        settings,
        instructions=instructions,
        conversation_id=conversation_id,
        tool_progress_callback=lambda name, preview: logger.info("Tool %s(%s)", name, preview),
    )
    shell = InteractiveShell(orchestrator, store, assembler, console=console)
    shell.run(initial_message=message)


def cli() -> None:
    try:
        fire.Fire(main)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
