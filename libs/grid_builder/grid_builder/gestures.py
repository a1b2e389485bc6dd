"""
Gestes et raccourcis globaux du builder.

ListenerRegistry tient lieu des écouteurs globaux (pointermove, pointerup,
keydown…). Un geste de redimensionnement est un objet de contexte explicite,
vivant le temps du geste : il enregistre ses écouteurs au départ et les
retire toujours à la fin (relâchement, annulation ou exception).
Les raccourcis clavier n'agissent qu'entre mount() et unmount().
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

from .cells import find_cell, is_leaf
from .errors import NotABranch, SaveInProgress
from .mutations import clamp_ratio, resize_cell

if TYPE_CHECKING:
    from .session import BuilderSession

log = logging.getLogger(__name__)

DEFAULT_CONTAINER_SIZE = 1000


class ListenerRegistry:
    """Écouteurs globaux par type d'événement."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    def add(self, event: str, handler: Callable) -> None:
        self._handlers[event].append(handler)

    def remove(self, event: str, handler: Callable) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event: str, payload=None) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(payload)

    def count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(h) for h in self._handlers.values())


@dataclass
class PointerEvent:
    x: float
    y: float


@dataclass
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    default_prevented: bool = False


class ResizeGesture:
    """
    Déplacement d'un séparateur.

    Le ratio suit le pointeur en aperçu (sans historique) ; au relâchement
    il est committé une seule fois. Delta toujours mesuré depuis le point de
    départ et ajouté au ratio initial, jamais accumulé événement par événement.

    Usage:
        >>> with ResizeGesture(session, cell_id, x, y, container_size, listeners):
        ...     listeners.dispatch("pointermove", PointerEvent(x + 50, y))
        ...     listeners.dispatch("pointerup", PointerEvent(x + 50, y))
    """

    def __init__(self, session: "BuilderSession", cell_id: str, start_x: float, start_y: float,
                 container_size: Optional[float], listeners: ListenerRegistry):
        cell = find_cell(session.tree, cell_id)
        if is_leaf(cell):
            raise NotABranch(cell_id)
        self.session = session
        self.cell_id = cell_id
        self.axis = "y" if cell.split == "horizontal" else "x"
        self.start_x = start_x
        self.start_y = start_y
        self.start_ratio = cell.split_ratio
        self.container_size = container_size or DEFAULT_CONTAINER_SIZE
        self.listeners = listeners
        self.ratio = self.start_ratio
        self.active = False
        self._start_tree = session.tree

    # ── Cycle de vie ───────────────────────────────────────────────────────

    def start(self) -> "ResizeGesture":
        self.listeners.add("pointermove", self.move)
        self.listeners.add("pointerup", self.end)
        self.active = True
        return self

    def _release(self) -> None:
        self.listeners.remove("pointermove", self.move)
        self.listeners.remove("pointerup", self.end)
        self.active = False

    def __enter__(self) -> "ResizeGesture":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.active:
            if exc_type is None:
                self.end()
            else:
                self.cancel()

    # ── Événements ─────────────────────────────────────────────────────────

    def ratio_at(self, x: float, y: float) -> float:
        delta = (y - self.start_y) if self.axis == "y" else (x - self.start_x)
        return clamp_ratio(self.start_ratio + delta / self.container_size * 100)

    def move(self, event: PointerEvent) -> None:
        if not self.active:
            return
        self.ratio = self.ratio_at(event.x, event.y)
        self.session.preview(resize_cell(self._start_tree, self.cell_id, self.ratio))

    def end(self, event: Optional[PointerEvent] = None) -> None:
        """Relâchement : commit du ratio final (si changé), écouteurs retirés quoi qu'il arrive."""
        try:
            if event is not None and self.active:
                self.ratio = self.ratio_at(event.x, event.y)
            if self.ratio != self.start_ratio:
                self.session.commit(resize_cell(self._start_tree, self.cell_id, self.ratio))
            else:
                self.session.preview(self._start_tree)
        finally:
            self._release()

    def cancel(self) -> None:
        """Annulation : l'arbre d'avant le geste est restauré, rien n'est committé."""
        try:
            self.session.preview(self._start_tree)
        finally:
            self._release()


class ShortcutScope:
    """
    Raccourcis undo / redo / save, actifs uniquement pendant le montage.

    Ctrl/Cmd+Z → undo ; Ctrl/Cmd+Y ou Ctrl/Cmd+Shift+Z → redo ; Ctrl/Cmd+S → save.
    Les sauvegardes lancées sur la boucle courante sont suivies jusqu'à leur
    fin ; leur résultat (ou exception) est journalisé, jamais perdu.
    """

    def __init__(self, session: "BuilderSession", listeners: ListenerRegistry,
                 schedule: Optional[Callable] = None):
        self.session = session
        self.listeners = listeners
        self.schedule = schedule or self._schedule
        self.mounted = False
        self.tasks: Set[asyncio.Task] = set()

    def _schedule(self, coro) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._report(asyncio.run(coro))
            return None
        task = loop.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if isinstance(exc, SaveInProgress):
            log.debug("raccourci save ignoré : %s", exc)
        elif exc is not None:
            log.error("Sauvegarde %s (raccourci) en erreur : %r", self.session.page_id, exc)
        else:
            self._report(task.result())

    def _report(self, result: dict) -> None:
        if not result.get("ok"):
            log.warning("Sauvegarde %s (raccourci) refusée : %s", self.session.page_id, result.get("message"))

    @property
    def save_pending(self) -> bool:
        return self.session.is_saving or any(not t.done() for t in self.tasks)

    def mount(self) -> "ShortcutScope":
        if not self.mounted:
            self.listeners.add("keydown", self.on_keydown)
            self.mounted = True
        return self

    def unmount(self) -> None:
        self.listeners.remove("keydown", self.on_keydown)
        self.mounted = False

    def __enter__(self) -> "ShortcutScope":
        return self.mount()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def on_keydown(self, event: KeyEvent) -> Optional[str]:
        if not self.mounted or not (event.ctrl or event.meta):
            return None
        key = event.key.lower()
        if key == "z" and not event.shift:
            action = "undo"
            self.session.undo()
        elif key == "y" or (key == "z" and event.shift):
            action = "redo"
            self.session.redo()
        elif key == "s":
            action = "save"
            # Sauvegarde en vol ou déjà planifiée : raccourci absorbé, pas de second envoi
            if not self.save_pending:
                self.schedule(self.session.save())
        else:
            return None
        event.default_prevented = True
        log.debug("raccourci %s", action)
        return action
