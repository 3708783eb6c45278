"""Small modal prompts used by the inspector app."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static

PROMPT_CSS = """
PromptScreen, FavoritesScreen {
    align: center middle;
    background: transparent;
}

.prompt-dialog {
    width: 60;
    height: auto;
    max-height: 20;
    border: solid $primary;
    background: $surface;
    padding: 0 1;
}

.prompt-description {
    margin-bottom: 1;
    color: $text-muted;
    height: auto;
}
"""


class PromptScreen(ModalScreen):
    """Single-line text prompt. Dismisses with the entered text, or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
    ]

    CSS = PROMPT_CSS

    def __init__(self, description: str, *, value: str = "", placeholder: str = "") -> None:
        super().__init__()
        self._description = description
        self._value = value
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(classes="prompt-dialog"):
            yield Static(self._description, classes="prompt-description", markup=False)
            yield Input(value=self._value, placeholder=self._placeholder, id="prompt-input")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class FavoritesScreen(ModalScreen):
    """Pick one of the favourite queries. Dismisses with its text, or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
    ]

    CSS = PROMPT_CSS

    def __init__(self, favorites: list[str]) -> None:
        super().__init__()
        self._favorites = favorites

    def compose(self) -> ComposeResult:
        with Vertical(classes="prompt-dialog"):
            yield Static("Choose from previous queries", classes="prompt-description")
            yield OptionList(*(Text(query) for query in self._favorites), id="favorites-list")

    def on_mount(self) -> None:
        self.query_one("#favorites-list", OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self._favorites[event.option_index])

    def action_cancel(self) -> None:
        self.dismiss(None)
