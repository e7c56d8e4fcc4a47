"""
Contexte applicatif explicite : ministère actif, année et sélection courante.

Construit pour chaque requête (dépendance get_app_state) et passé explicitement
aux services ; les changements sont notifiés aux observateurs abonnés.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Set

from fastapi import Header, Query

logger = logging.getLogger(__name__)

Listener = Callable[["AppState", str], None]


@dataclass
class AppState:
    active_ministry_id: Optional[int] = None
    year: int = field(default_factory=lambda: date.today().year)
    selected_ids: Set[int] = field(default_factory=set)
    _listeners: List[Listener] = field(default_factory=list, repr=False)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Abonne un observateur ; retourne la fonction de désabonnement."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: str) -> None:
        for listener in list(self._listeners):
            listener(self, change)

    def select_ministry(self, ministry_id: Optional[int]) -> None:
        if ministry_id == self.active_ministry_id:
            return
        self.active_ministry_id = ministry_id
        self.selected_ids.clear()
        logger.debug("Ministère actif : %s", ministry_id)
        self._notify("ministry")

    def toggle(self, record_id: int) -> None:
        if record_id in self.selected_ids:
            self.selected_ids.discard(record_id)
        else:
            self.selected_ids.add(record_id)
        self._notify("selection")

    def select_all(self, record_ids: List[int]) -> None:
        """Sélectionne tout, ou désélectionne tout si tout était déjà sélectionné."""
        if record_ids and all(i in self.selected_ids for i in record_ids):
            self.selected_ids.difference_update(record_ids)
        else:
            self.selected_ids.update(record_ids)
        self._notify("selection")

    def clear_selection(self) -> None:
        if self.selected_ids:
            self.selected_ids.clear()
            self._notify("selection")


def get_app_state(
    ministry_id: Optional[int] = Query(None, description="Ministère actif"),
    x_ministry_id: Optional[int] = Header(None),
) -> AppState:
    """Dépendance FastAPI. Le paramètre de requête prime sur l'en-tête X-Ministry-Id."""
    state = AppState()
    state.select_ministry(ministry_id if ministry_id is not None else x_ministry_id)
    return state
