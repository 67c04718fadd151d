"""Interactive choosers: fzf when available, numbered prompts otherwise."""

import logging
import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape

from ..exceptions import PromptCanceledError
from ..utils.subprocess_utils import check_command_exists

logger = logging.getLogger(__name__)


@dataclass
class Choice:
    """One selectable line; ``value`` is what the chooser returns."""
    value: str
    label: str
    hint: str = ""


class PromptChooser:
    """Numbered-list chooser built on click prompts."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def _print_choices(self, choices: Sequence[Choice], marked: Optional[Iterable[str]] = None) -> None:
        marked_values = set(marked) if marked is not None else None
        for i, choice in enumerate(choices, 1):
            box = ""
            if marked_values is not None:
                box = escape("[x] ") if choice.value in marked_values else escape("[ ] ")
            hint = f"  [dim]{escape(choice.hint)}[/]" if choice.hint else ""
            self.console.print(f"  {i:>3}. {box}[cyan]{escape(choice.label)}[/]{hint}")

    def choose(self, choices: Sequence[Choice], prompt: str, header: Optional[str] = None) -> Optional[str]:
        """
        Let the user pick one choice.

        Returns:
            The chosen ``value``, or None when canceled or nothing to choose
        """
        if not choices:
            return None
        if header:
            self.console.print(f"[dim]{escape(header)}[/]")
        self._print_choices(choices)
        try:
            index = click.prompt(prompt, type=click.IntRange(1, len(choices)), default=1)
        except click.Abort:
            return None
        return choices[index - 1].value

    def choose_many(
        self,
        choices: Sequence[Choice],
        prompt: str,
        preselected: Iterable[str] = (),
    ) -> Optional[List[str]]:
        """
        Let the user pick any number of choices.

        Pressing enter keeps the pre-selection; ``none`` clears it.

        Returns:
            Chosen values, or None when canceled
        """
        if not choices:
            return []
        preselected = [c.value for c in choices if c.value in set(preselected)]
        self._print_choices(choices, marked=preselected)

        while True:
            try:
                answer = click.prompt(
                    f"{prompt} (numbers separated by commas, enter keeps [x], 'none' clears)",
                    default="",
                    show_default=False,
                )
            except click.Abort:
                return None

            answer = answer.strip().lower()
            if not answer:
                return preselected
            if answer == "none":
                return []

            try:
                indexes = sorted({int(part) for part in answer.replace(" ", "").split(",") if part})
            except ValueError:
                self.console.print("[yellow]Enter numbers like 1,3,4[/]")
                continue
            if any(i < 1 or i > len(choices) for i in indexes):
                self.console.print(f"[yellow]Numbers must be between 1 and {len(choices)}[/]")
                continue
            return [choices[i - 1].value for i in indexes]

    def confirm(self, message: str, default: bool = False) -> bool:
        """
        Raises:
            PromptCanceledError: If the prompt is aborted
        """
        try:
            return click.confirm(message, default=default)
        except click.Abort as e:
            raise PromptCanceledError("Canceled.") from e


class FzfChooser(PromptChooser):
    """Single choice through fzf; multi-select keeps the numbered prompt."""

    def __init__(self, console: Optional[Console] = None, executable: str = "fzf"):
        super().__init__(console)
        self.executable = executable

    def choose(self, choices: Sequence[Choice], prompt: str, header: Optional[str] = None) -> Optional[str]:
        if not choices:
            return None
        lines = [
            "\t".join([c.value, c.label, c.hint]).rstrip("\t") for c in choices
        ]
        args = [
            self.executable,
            "--prompt", f"{prompt} > ",
            "--delimiter", "\t",
            "--with-nth", "2..",
        ]
        if header:
            args += ["--header", header]

        # fzf draws on the terminal; only stdout (the selection) is captured
        result = subprocess.run(
            args,
            input="\n".join(lines),
            stdout=subprocess.PIPE,
            text=True,
        )
        if result.returncode != 0:
            logger.debug(f"fzf exited with {result.returncode}; treating as canceled")
            return None
        selection = result.stdout.strip()
        return selection.split("\t")[0] if selection else None


def make_chooser(console: Optional[Console] = None) -> PromptChooser:
    """fzf when installed, numbered prompts otherwise."""
    if check_command_exists("fzf"):
        return FzfChooser(console)
    return PromptChooser(console)
