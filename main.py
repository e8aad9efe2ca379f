"""CLI entry point for the knowledge chatbot: ask from the terminal or serve the API."""

import argparse
import asyncio
import logging
import sys
import time
import uuid

from src.agent.graph import run_workflow
from src.agent.state import AI, HUMAN, Message
from src.errors import AppError
from src.security.guardrails import validate_message
from src.services import Services, build_services
from src.tools.base import ANONYMOUS_USER
from src.utils.config import settings, validate_environment
from src.utils.logger import get_logger

log = get_logger(__name__)


async def run_query(services: Services, query: str, conversation_id: str, file_id=None) -> None:
    """Run a single query through the workflow and print the answer."""
    ok, reason = validate_message(query)
    if not ok:
        print(f"\nError: {reason}\n")
        return

    print(f"\nQuery: {query}")
    print("Processing...\n")

    start = time.perf_counter()
    history = await services.conversations.load(ANONYMOUS_USER, conversation_id)
    try:
        result = await run_workflow(
            services.graph,
            conversation_id=conversation_id,
            user_query=query,
            file_id=file_id,
            history=history,
        )
    except AppError as exc:
        print(f"\nError: {exc.error}: {exc.message}\n")
        return
    answer = result.get("final_response", "")
    await services.conversations.append(
        ANONYMOUS_USER,
        conversation_id,
        Message(role=HUMAN, content=query),
        Message(role=AI, content=answer),
    )
    elapsed_ms = (time.perf_counter() - start) * 1000

    print(f"Route: {result.get('selected_node', 'unknown')} "
          f"({result.get('routing_metadata', {}).get('reason', '')})")
    print(f"\nResponse:\n{answer or '(no response)'}\n")

    tools = result.get("tools_used") or []
    if tools:
        print(f"Tools used: {', '.join(tools)}")

    print(f"\nPerformance: {elapsed_ms:.0f}ms\n")


async def interactive_mode(services: Services, file_id=None) -> None:
    """REPL loop; every turn shares one conversation id."""
    conversation_id = str(uuid.uuid4())
    print("Knowledge Chatbot  (type 'quit' or 'exit' to stop)\n")
    while True:
        try:
            query = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if query.lower() in ("quit", "exit", "q"):
            print("Goodbye.")
            break
        if not query:
            continue
        await run_query(services, query, conversation_id, file_id)


async def run_cli(args: argparse.Namespace) -> None:
    validate_environment()
    services = build_services(settings)
    try:
        if args.interactive:
            await interactive_mode(services, args.file_id)
        else:
            await run_query(services, args.query, str(uuid.uuid4()), args.file_id)
    finally:
        await services.close()


def serve() -> None:
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(create_app(), host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


def main() -> None:
    parser = argparse.ArgumentParser(description="Universal knowledge chatbot")
    parser.add_argument("query", nargs="?", help="Single query to run")
    parser.add_argument("--interactive", "-i", action="store_true",
                        help="Start interactive REPL mode")
    parser.add_argument("--file-id", help="Ask about a previously uploaded document")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API server")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable DEBUG logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.serve:
        serve()
    elif args.interactive or args.query:
        asyncio.run(run_cli(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
