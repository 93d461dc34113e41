"""Entry point: python -m nani

Opens the workspace in the configured directory, establishes the provider
session and runs the interactive REPL.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from nani.config import NaniConfig, load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_provider(config: NaniConfig):
    name = config.provider.name
    if name == "anthropic_api":
        from nani.providers.anthropic_api import AnthropicProvider

        kwargs: dict = {
            "timeout": config.provider.timeout,
            "max_tokens": config.provider.max_tokens,
        }
        if config.provider.model:
            kwargs["model"] = config.provider.model
        return AnthropicProvider(**kwargs)
    raise ValueError(f"Unknown provider: {name}")


async def _run(config: NaniConfig) -> None:
    from nani.connectors.cli import CLIConnector
    from nani.core import Nani
    from nani.workspace import Workspace

    workspace = Workspace(config.workspace.dir)
    workspace.init(config.workspace.project, config.workspace.owner, config.workspace.repository)

    nani = Nani(workspace, _build_provider(config), config)
    await nani.establish()

    await CLIConnector(nani).start()


def main() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
