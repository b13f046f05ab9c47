from __future__ import annotations

import argparse
import asyncio
import json
import logging

from llm_brain import (
    Brain,
    CallbackConfirmationSurface,
    ChatSessionTracker,
    ConfirmationGate,
    ConfirmationRequest,
    LoggingEventChannel,
    MCPToolProvider,
    create_llm,
    load_config,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def ask_operator(request: ConfirmationRequest) -> bool:
    """Print the pending action and read y/n from the terminal."""
    print(f"\n[{request.type.value}]")
    print(json.dumps(request.payload, ensure_ascii=False, indent=2, default=str))
    return input("Approve? [y/N] ").strip().lower() in ("y", "yes")


async def run_prompt(name: str, arguments: dict[str, str]) -> None:
    config = load_config()
    llm = create_llm(config.provider, timeout=config.request_timeout)

    # input() blocks, so keep it off the event loop
    surface = CallbackConfirmationSurface(lambda req: asyncio.to_thread(ask_operator, req))
    gate = ConfirmationGate(surface, timeout=config.confirmation_timeout)
    tracker = ChatSessionTracker(LoggingEventChannel())

    async with llm:
        async with MCPToolProvider.connect(
            config.tool_server_url, name=config.default_tool_provider
        ) as provider:
            brain = Brain(
                llm=llm,
                providers={provider.name: provider},
                gate=gate,
                tracker=tracker,
                config=config,
            )
            provider.sampling_handler = brain.handle_sampling

            result = await brain.use_prompt(name, arguments)

    if result is None:
        logger.error("Run failed; see the log above")
        return
    logger.info("Model says: %s", result.content)
    if result.exhausted:
        logger.warning("Stopped after %d completion(s)", result.completions)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a prompt template with operator approval.")
    parser.add_argument("prompt", help="Name of the prompt template on the tool-provider")
    parser.add_argument(
        "--arg",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Prompt template argument (repeatable)",
    )
    args = parser.parse_args()

    prompt_args = dict(item.split("=", 1) for item in args.arg)
    asyncio.run(run_prompt(args.prompt, prompt_args))
