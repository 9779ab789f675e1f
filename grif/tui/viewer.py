"""GRIF TUI Viewer - Browse keys and values of a GRIF file."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from grif.document import GRIFDocument
from grif.errors import MalformedInputError
from grif.keys import sort_keys
from grif.reader import GRIFReader
from grif.script import DagsFormatter
from grif.spec import is_script_value
from grif.tui.widgets import KeyList, SummaryPanel, ValuePanel


class GRIFViewerApp(App):
    """TUI viewer for GRIF files. Summary, key list and value panels."""

    TITLE = "GRIF Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Search", show=True),
        Binding("escape", "close_search", "Close search", show=False),
        Binding("j", "next_key", "Next", show=True),
        Binding("k", "prev_key", "Prev", show=True),
    ]

    def __init__(self, path: str | Path, **kwargs) -> None:
        super().__init__(**kwargs)
        self._path = Path(path)
        # Scripts are pretty-printed on load so the value panel shows them indented
        self._doc = GRIFDocument()
        GRIFReader.load(self._path, self._doc, formatter=DagsFormatter())
        self._dialect = GRIFReader.detect(self._path).value
        self._all_keys = sort_keys(self._doc.keys())

    def compose(self) -> ComposeResult:
        self.title = f"GRIF Viewer - {self._path.name}"

        yield Header()

        with Horizontal(id="main-area"):
            yield SummaryPanel(
                dialect=self._dialect,
                total=len(self._all_keys),
                scripts=sum(1 for key in self._all_keys if is_script_value(self._doc[key])),
                id="summary",
            )
            yield KeyList(keys=self._all_keys, id="keys")
            yield ValuePanel(id="value")

        yield Input(placeholder="Search keys and values... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Show the first key on mount."""
        if self._all_keys:
            self._show(self._all_keys[0])
            self.query_one("#keys", KeyList).focus()

    def on_key_list_key_selected(self, event: KeyList.KeySelected) -> None:
        self._show(event.key)

    def _show(self, key: str) -> None:
        panel = self.query_one("#value", ValuePanel)
        panel.show_value(key, self._doc.get(key, ""))

    def action_next_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_down()

    def action_prev_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_up()

    def action_toggle_search(self) -> None:
        """Show/hide the search bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._update_key_list(self._all_keys)
        self.query_one("#keys", KeyList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter keys as the user types."""
        if event.input.id != "search-bar":
            return
        query = event.value.lower().strip()
        if not query:
            self._update_key_list(self._all_keys)
            return
        self._update_key_list([k for k in self._all_keys if query in k.lower()])

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Search values as well as keys."""
        if event.input.id != "search-bar":
            return
        query = event.value.lower().strip()
        if not query:
            return
        matches = [
            k for k in self._all_keys
            if query in k.lower() or query in self._doc[k].lower()
        ]
        self._update_key_list(matches)

    def _update_key_list(self, keys: list[str]) -> None:
        """Replace the key list with the given keys."""
        self.query_one("#keys", KeyList).set_keys(keys)
        if keys:
            self._show(keys[0])


def run_viewer(path: str | Path) -> None:
    """Launch the GRIF TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        app = GRIFViewerApp(path)
    except MalformedInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    app.run()
