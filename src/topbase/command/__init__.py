"""CLI command modules for topbase."""

from topbase.command.rebase import RebaseCommand
from topbase.command.topbase import TopbaseCommand

__all__ = ["RebaseCommand", "TopbaseCommand"]
