"""Terminal interaction: status output and choosers."""

from .chooser import Choice, FzfChooser, PromptChooser, make_chooser
from .output import Output

__all__ = ["Choice", "FzfChooser", "Output", "PromptChooser", "make_chooser"]
