"""Hierarchical step tracker rendered as a rich tree."""

from typing import Callable, Optional

from rich.markup import escape
from rich.tree import Tree

_SYMBOLS = {
    "pending": "[green dim]○[/green dim]",
    "running": "[cyan]○[/cyan]",
    "done": "[green]●[/green]",
    "error": "[red]●[/red]",
    "skipped": "[yellow]○[/yellow]",
}


class StepTracker:
    """Track the steps of a project creation run.

    Steps are kept in insertion order. A refresh callback can be attached so a
    ``rich.live.Live`` display redraws whenever a step changes.
    """

    def __init__(self, title: str):
        self.title = title
        self.steps: list[dict] = []  # {key, label, status, detail}
        self._refresh_cb: Optional[Callable[[], None]] = None

    def attach_refresh(self, cb: Callable[[], None]):
        self._refresh_cb = cb

    def add(self, key: str, label: str):
        if self.get(key) is None:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})
            self._maybe_refresh()

    def get(self, key: str) -> Optional[dict]:
        for step in self.steps:
            if step["key"] == key:
                return step
        return None

    def start(self, key: str, detail: str = ""):
        self._update(key, "running", detail)

    def complete(self, key: str, detail: str = ""):
        self._update(key, "done", detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, "error", detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, "skipped", detail)

    def _update(self, key: str, status: str, detail: str):
        step = self.get(key)
        if step is None:
            step = {"key": key, "label": key, "status": status, "detail": ""}
            self.steps.append(step)
        step["status"] = status
        if detail:
            step["detail"] = detail
        self._maybe_refresh()

    def _maybe_refresh(self):
        if self._refresh_cb:
            self._refresh_cb()

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            status = step["status"]
            symbol = _SYMBOLS.get(status, " ")
            label = escape(step["label"])
            detail = escape(step["detail"].strip())

            if status == "pending":
                text = f"{label} ({detail})" if detail else label
                tree.add(f"{symbol} [bright_black]{text}[/bright_black]")
            elif detail:
                tree.add(f"{symbol} [white]{label}[/white] [bright_black]({detail})[/bright_black]")
            else:
                tree.add(f"{symbol} [white]{label}[/white]")
        return tree
