"""GRIF TUI Widgets - Custom panels for the GRIF viewer."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static


class SummaryPanel(Static):
    """Sidebar panel showing file dialect and key counts."""

    DEFAULT_CSS = """
    SummaryPanel {
        width: 28;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    SummaryPanel .summary-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    SummaryPanel .summary-key {
        color: $text-muted;
    }
    SummaryPanel .summary-val {
        color: $text;
    }
    """

    def __init__(self, dialect: str, total: int, scripts: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._dialect = dialect
        self._total = total
        self._scripts = scripts

    def compose(self) -> ComposeResult:
        yield Label("GRIF data", classes="summary-title")
        for name, val in (("dialect", self._dialect), ("keys", self._total), ("scripts", self._scripts)):
            yield Label(f"{name}:", classes="summary-key")
            yield Label(f"  {val}", classes="summary-val")


class KeyList(ListView):
    """Keys in export order. Supports keyboard navigation."""

    DEFAULT_CSS = """
    KeyList {
        width: 40;
        border: solid $accent;
    }
    KeyList > ListItem {
        padding: 0 1;
    }
    KeyList > ListItem.--highlight {
        background: $accent;
    }
    """

    class KeySelected(Message):
        """Fired when a key is highlighted or selected."""

        def __init__(self, key: str, key_index: int) -> None:
            self.key = key
            self.key_index = key_index
            super().__init__()

    def __init__(self, keys: list[str], **kwargs) -> None:
        self._keys = keys
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for key in self._keys:
            yield ListItem(Label(key, markup=False))

    def set_keys(self, keys: list[str]) -> None:
        """Swap in a new set of keys, e.g. search results."""
        self._keys = keys
        self.clear()
        self.extend(ListItem(Label(key, markup=False)) for key in keys)
        self.index = 0 if keys else None

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._keys):
            self.post_message(self.KeySelected(self._keys[idx], idx))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class ValuePanel(Static):
    """Shows the value of the current key; scripts are shown pretty-printed."""

    DEFAULT_CSS = """
    ValuePanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ValuePanel .value-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ValuePanel .value-body {
        color: $text;
    }
    """

    current_key = reactive("")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a key", classes="value-title", markup=False)
        self._body_widget = Static("", classes="value-body", markup=False)
        yield self._title_widget
        yield self._body_widget

    def show_value(self, key: str, value: str) -> None:
        self.current_key = key
        if self._title_widget:
            self._title_widget.update(f"--- {key} ---")
        if self._body_widget:
            self._body_widget.update(value)
        self.scroll_home()
