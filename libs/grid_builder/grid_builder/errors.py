"""
Erreurs typées du builder.

Structurelles (id inconnu, split sur une branche, arbre incohérent) → levées
immédiatement, l'arbre d'origine reste intact.
Persistance (chargement / sauvegarde) → remontées à la session qui notifie.
"""
from typing import Optional


class GridError(ValueError):
    """Erreur de base du builder."""


class CellNotFound(GridError):
    def __init__(self, cell_id: str):
        self.cell_id = cell_id
        super().__init__(f"Cellule introuvable : {cell_id!r}")


class BlockNotFound(GridError):
    def __init__(self, cell_id: str, block_id: str):
        self.cell_id = cell_id
        self.block_id = block_id
        super().__init__(f"Bloc introuvable : {block_id!r} dans la cellule {cell_id!r}")


class NotALeaf(GridError):
    """Opération réservée aux feuilles (split, ajout de bloc) appelée sur une branche."""

    def __init__(self, cell_id: str):
        self.cell_id = cell_id
        super().__init__(f"La cellule {cell_id!r} est déjà divisée — cibler une feuille")


class NotABranch(GridError):
    """Redimensionnement demandé sur une feuille (splitRatio sans objet)."""

    def __init__(self, cell_id: str):
        self.cell_id = cell_id
        super().__init__(f"La cellule {cell_id!r} n'est pas divisée")


class InvalidTree(GridError):
    def __init__(self, detail: str, cell_id: Optional[str] = None):
        self.cell_id = cell_id
        self.detail = detail
        super().__init__(f"Arbre invalide : {detail}")


class PersistenceError(Exception):
    """Échec réseau / serveur lors du chargement ou de la sauvegarde."""


class PageNotFound(PersistenceError):
    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Page introuvable : {page_id!r}")


class SaveInProgress(PersistenceError):
    """Une sauvegarde est déjà en vol pour ce document."""

    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Sauvegarde déjà en cours pour la page {page_id!r}")
