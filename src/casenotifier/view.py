from __future__ import annotations

from packaging.version import parse as parse_version
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Input, Static

from . import __version__
from .controller import Controller
from .shared import DISPLAY_FMT, format_date, log_msg

VERSION = parse_version(__version__)

LIME_GREEN = "#32FF4B"
RED = "#FF324B"
DARK_ORANGE = "#FF8C00"
DARK_GRAY = "#A9A9A9"

READY_COLOR = LIME_GREEN
WAITING_COLOR = RED
FEEDBACK_BAD = DARK_ORANGE
DIM_COLOR = DARK_GRAY


class EditAccountScreen(ModalScreen[bool]):
    """
    Edit the name and last drop of one account.

    Every keystroke is handed to the controller: a name is applied as typed,
    a last drop as soon as it parses. Closing the screen (ENTER or ESC)
    saves whatever was last applied. CTRL+Z is the separate discard action:
    it puts back the values the account had when the screen opened.
    """

    DEFAULT_CSS = """
    EditAccountScreen {
        align: center middle;
    }
    #edit_box {
        width: 60;
        height: auto;
        border: round $accent;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        Binding("ctrl+z", "discard", "Discard changes", priority=True),
    ]

    def __init__(self, controller: Controller, name: str, draft_text: str):
        super().__init__()
        self.controller = controller
        self._name = name
        self._draft = draft_text

    def compose(self) -> ComposeResult:
        with Vertical(id="edit_box"):
            yield Static("Edit account", classes="title-class")
            yield Static("Account name:")
            yield Input(value=self._name, id="name_input")
            yield Static("Last drop:")
            yield Input(value=self._draft, placeholder=DISPLAY_FMT, id="date_input")
            yield Static("", id="date_feedback")
            yield Static(
                f"[{DIM_COLOR}]ENTER or ESC to close and save, "
                f"CTRL+Z to discard changes[/{DIM_COLOR}]",
                id="edit_help",
            )

    def on_mount(self) -> None:
        self.query_one("#name_input", Input).focus()
        self._show_feedback(self.controller.edit_draft(self._draft))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "name_input":
            self.controller.edit_name(event.value)
        elif event.input.id == "date_input":
            self._show_feedback(self.controller.edit_draft(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_close()

    def action_close(self) -> None:
        self.controller.commit_edit()
        self.dismiss(True)

    def action_discard(self) -> None:
        self.controller.cancel_edit()
        self.dismiss(False)

    def _show_feedback(self, timestamp: int | None) -> None:
        feedback = self.query_one("#date_feedback", Static)
        if timestamp is None:
            feedback.update(f"[{FEEDBACK_BAD}]↳ not applied[/{FEEDBACK_BAD}]")
        else:
            feedback.update(f"↳ {format_date(timestamp)}")


class NotifierApp(App):
    """Account list that redraws its remaining times on a fixed cadence."""

    TITLE = "Cases Notifier"

    BINDINGS = [
        ("a", "add_account", "Add"),
        ("e", "edit_account", "Edit"),
        ("d", "delete_account", "Delete"),
        ("r", "reset_account", "Reset timer"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, controller: Controller, refresh_seconds: float = 1.0) -> None:
        super().__init__()
        self.controller = controller
        self.refresh_seconds = max(1.0, refresh_seconds)
        self.sub_title = f"v{VERSION}"

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="summary")
        yield DataTable(id="accounts", cursor_type="row", zebra_stripes=True)
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#accounts", DataTable)
        table.add_columns("Name", "Last drop", "Next drop", "Remaining")
        self.refresh_accounts()
        self.set_interval(self.refresh_seconds, self.refresh_accounts)

    def refresh_accounts(self) -> None:
        table = self.query_one("#accounts", DataTable)
        cursor = table.cursor_row
        table.clear()
        now = self.controller.clock.now()
        for row in self.controller.rows(now):
            color = READY_COLOR if row.ready else WAITING_COLOR
            table.add_row(
                Text(row.name, style="bold"),
                row.last_event_display,
                row.next_occurrence_display,
                Text(row.remaining_display, style=color),
                key=str(row.id),
            )
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))

        eligible, total = self.controller.summary(now)
        self.query_one("#summary", Static).update(f"Accounts ready: {eligible}/{total}")

        for msg in self.controller.pop_warnings():
            self.notify(msg, severity="warning")

    def _selected_index(self) -> int | None:
        table = self.query_one("#accounts", DataTable)
        if not table.row_count:
            return None
        return table.cursor_row

    def _open_editor(self) -> None:
        index = self.controller.editing_index
        if index is None:
            return
        account = self.controller.store[index]
        screen = EditAccountScreen(
            self.controller, account.name, self.controller.guard.draft_text or ""
        )
        self.push_screen(screen, lambda _saved: self.refresh_accounts())

    # Actions
    def action_add_account(self) -> None:
        if self.controller.is_locked():
            return
        index = self.controller.add_account(edit=True)
        log_msg(f"added account at {index = }")
        self.refresh_accounts()
        self._open_editor()

    def action_edit_account(self) -> None:
        index = self._selected_index()
        if index is None or self.controller.is_locked():
            return
        if self.controller.begin_edit(index):
            self._open_editor()

    def action_delete_account(self) -> None:
        index = self._selected_index()
        if index is None or self.controller.is_locked():
            return
        self.controller.remove_account(index)
        self.refresh_accounts()

    def action_reset_account(self) -> None:
        index = self._selected_index()
        if index is None or self.controller.is_locked():
            return
        self.controller.reset_account(index)
        self.refresh_accounts()
