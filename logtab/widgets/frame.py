from __future__ import annotations

from rich.console import RenderableType
from textual import events
from textual.message import Message
from textual.widget import Widget

from ..config import LogView
from ..viewer import Event, Key, Quit, Resize, SaveViews, Theme, Viewer, ViewState


class ViewFrame(Widget, can_focus=True):
    """Feeds keys and resizes into a `Viewer` and paints whatever it renders."""

    DEFAULT_CSS = """
    ViewFrame {
        height: 1fr;
        border: round #585858;
        padding: 0;
        overflow: hidden;
    }

    ViewFrame:focus {
        border: round $accent 60%;
    }
    """

    def __init__(self, viewer: Viewer, theme: Theme | None = None, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.viewer = viewer
        self.view_theme = theme if theme is not None else Theme()

    def render(self) -> RenderableType:
        return self.viewer.render(self.view_theme)

    def on_resize(self, event: events.Resize) -> None:
        self.feed(Resize(self.size.width, self.size.height))

    def on_key(self, event: events.Key) -> None:
        # Every key belongs to the viewer; keep app/screen bindings out of it.
        event.stop()
        event.prevent_default()
        character = event.character if event.is_printable else None
        self.feed(Key(event.key, character))

    def feed(self, event: Event) -> None:
        previous = self.viewer.state
        for effect in self.viewer.handle(event):
            if isinstance(effect, Quit):
                self.post_message(self.QuitRequested())
            elif isinstance(effect, SaveViews):
                self.post_message(self.SaveRequested(effect.view))
        self.post_message(self.Changed(previous, self.viewer.state))
        self.refresh()

    class QuitRequested(Message):
        def __init__(self) -> None:
            super().__init__()

    class SaveRequested(Message):
        def __init__(self, view: LogView) -> None:
            super().__init__()
            self.view = view

    class Changed(Message):
        """Emitted after every handled event so the app can refresh chrome."""

        def __init__(self, previous: ViewState, state: ViewState) -> None:
            super().__init__()
            self.previous = previous
            self.state = state
