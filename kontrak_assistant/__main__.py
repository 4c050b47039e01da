"""Main entry point for the KontrakPro assistant chat."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markdown import Markdown

from .errors import StoreError

RESET_COMMAND = "/reset"
QUIT_COMMANDS = {"/quit", "/exit"}


async def _chat_loop(orchestrator, user_id: str, console: Console) -> None:
    while True:
        try:
            text = await asyncio.to_thread(click.prompt, "You", prompt_suffix="> ")
        except (EOFError, click.Abort):
            break

        text = text.strip()
        if not text:
            continue
        if text in QUIT_COMMANDS:
            break
        if text == RESET_COMMAND:
            try:
                await orchestrator.clear_history(user_id)
            except StoreError as e:
                click.echo(click.style(f"Error: {e}", fg="red"))
            else:
                click.echo(click.style("Conversation cleared.", fg="cyan"))
            continue

        answer = await orchestrator.process_turn(user_id, text)
        console.print(Markdown(answer))


@click.command()
@click.option("--user-id", required=True, help="User whose conversation to continue")
@click.option(
    "--store-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory for stored sessions (default: ~/.config/kontrak-assistant/sessions)",
)
@click.option(
    "--contracts",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    default=None,
    help="JSON file of contracts the assistant can look up",
)
@click.option("--model", default=None, help="Gemini model id override")
@click.option("--debug", is_flag=True, help="Enable debug mode")
def main(
    user_id: str,
    store_dir: Optional[Path],
    contracts: Optional[Path],
    model: Optional[str],
    debug: bool,
) -> None:
    """Chat with the KontrakPro assistant. Type /reset to start over, /quit to leave."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        from .app import build_assistant, load_contracts
        from .config.settings import load_settings
        from .store.backends import JsonFileSessionBackend

        settings = load_settings(model=model)
        backend = JsonFileSessionBackend(store_dir) if store_dir else None
        orchestrator = build_assistant(
            settings, backend=backend, contracts=load_contracts(contracts)
        )

        asyncio.run(_chat_loop(orchestrator, user_id, Console()))

    except KeyboardInterrupt:
        click.echo("\nExiting...")
        sys.exit(0)
    except Exception as e:
        if debug:
            raise
        click.echo(click.style(f"Error: {e}", fg="red"))
        sys.exit(1)


if __name__ == "__main__":
    main()
