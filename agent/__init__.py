"""Agent internals -- the modules behind the onboarding shell.

Module Overview
---------------
**turn_orchestrator.py**
    The core loop for one turn: stream the model's reply, execute any
    function calls it requested, submit their outputs as a follow-up, and
    hand back the id the next turn chains from.

**stream_events.py**
    Tagged turn events (text deltas, tool invocations/results, follow-up
    text, errors, completion) and the translation from provider stream
    events.

**tool_executor.py**
    Executes a turn's function calls through ``model_tools`` and pairs every
    output with its call id.

**session_store.py**
    Persists the single conversation handle between runs.

**prompt_builder.py / prompt_assembler.py**
    Renders the system prompt from the agent and onboarding documents, and
    caches it for the lifetime of a conversation.

**config_documents.py**
    Typed views over ``config/agent.json`` and ``config/onboarding.json``.

**config_validator.py**
    Startup checks for required credentials.

Architecture
------------
1. **Stateless utilities**: prompt rendering, event translation and argument
   parsing are pure functions that take all needed state as arguments.

2. **No circular imports**: modules depend on external packages,
   ``onboard_constants``, ``model_tools`` and ``tools``, never on
   ``run_agent.py``.

3. **Explicit settings**: one frozen Settings object is built at startup and
   passed in; nothing reads credentials from module globals.
"""
