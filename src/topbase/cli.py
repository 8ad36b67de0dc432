#!/usr/bin/env python3
"""topbase CLI - reconcile split-out branches with their targets."""

import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from topbase.command.rebase import RebaseCommand
from topbase.command.topbase import TopbaseCommand
from topbase.core.config import State
from topbase.core.log import logger


class CliState(State):
    """Bring a target branch up to date with a source branch.

    topbase finds where the two histories agree by patch content,
    then fast-forwards target or replays the new source commits on
    top of it. rebase does the same starting from the shared
    merge-base. Merge commits are never carried over, and target
    is only moved once the whole series has applied.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.log-level debug)
    2. topbase.yaml in the current directory, plus --include files
    3. .env file
    4. Environment variables (TOPBASE_CONFIG__GIT__WORKDIR=path)
    """

    topbase: CliSubCommand[TopbaseCommand]
    rebase: CliSubCommand[RebaseCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closes log sinks on the way out
        with logger:
            raise SystemExit(subcommand.run(self))


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
