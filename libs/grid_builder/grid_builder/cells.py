"""
Modèle de l'arbre de cellules.

Arène plate : toutes les cellules dans un dict id → Cell, parent / enfants
référencés par id (jamais imbriqués par valeur). Un GridTree n'est jamais
modifié en place : chaque mutation (voir mutations.py) en produit un nouveau.

Invariant : une cellule est soit une feuille (split None, children vide,
blocks éventuels), soit une branche (split horizontal|vertical, exactement
2 enfants, blocks vide). Arbre acyclique, parent_id cohérent avec children.
"""
from typing import Dict, Iterable, Iterator, List, Literal, Optional

from pydantic import Field, field_validator

from .blocks import BlockUnion, BuilderModel, new_id
from .errors import CellNotFound, InvalidTree

SplitOrientation = Literal["horizontal", "vertical"]

MIN_RATIO            = 10
MAX_RATIO            = 90
DEFAULT_RATIO        = 50
DEFAULT_CELL_PADDING = 20


def clamp_ratio(value: float) -> float:
    return max(MIN_RATIO, min(MAX_RATIO, value))


class Cell(BuilderModel):
    """Nœud de l'arbre de mise en page (format gridCells du document)."""
    cell_id:          str                        = Field(default_factory=new_id)
    parent_id:        Optional[str]              = None
    split:            Optional[SplitOrientation] = None
    split_ratio:      float                      = DEFAULT_RATIO
    children:         List[str]                  = Field(default_factory=list)
    blocks:           List[BlockUnion]           = Field(default_factory=list)
    background_color: str                        = ""
    padding:          int                        = DEFAULT_CELL_PADDING

    @field_validator("split_ratio")
    @classmethod
    def _ratio_bounds(cls, v: float) -> float:
        # Ratio stocké ou reçu hors bornes : ramené dans [10, 90]
        return clamp_ratio(v)


def is_leaf(cell: Cell) -> bool:
    return cell.split is None


def new_cell(parent_id: Optional[str] = None, **attrs) -> Cell:
    """Feuille vide, présentation par défaut, id frais."""
    return Cell(parent_id=parent_id, **attrs)


class GridTree:
    """Arène immuable de cellules, ordre d'insertion conservé (ordre du document)."""

    __slots__ = ("_cells",)

    def __init__(self, cells: Iterable[Cell] = ()):
        self._cells: Dict[str, Cell] = {}
        for cell in cells:
            if cell.cell_id in self._cells:
                raise InvalidTree(f"id dupliqué {cell.cell_id!r}", cell.cell_id)
            self._cells[cell.cell_id] = cell

    # ── Lecture ────────────────────────────────────────────────────────────

    def __contains__(self, cell_id: str) -> bool:
        return cell_id in self._cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridTree):
            return NotImplemented
        return self.to_cells() == other.to_cells()

    def __repr__(self) -> str:
        return f"GridTree({len(self)} cellules, {len(self.roots())} racines)"

    def get(self, cell_id: str) -> Optional[Cell]:
        return self._cells.get(cell_id)

    def roots(self) -> List[Cell]:
        return [c for c in self._cells.values() if c.parent_id is None]

    def to_cells(self) -> List[Cell]:
        return list(self._cells.values())

    def dump(self) -> list:
        """Liste gridCells sérialisable (camelCase)."""
        return [c.model_dump(by_alias=True, mode="json") for c in self._cells.values()]

    # ── Construction de nouveaux arbres ────────────────────────────────────

    def replace(self, *cells: Cell) -> "GridTree":
        """Nouvel arbre où chaque cellule donnée remplace celle de même id (ou s'ajoute en fin)."""
        merged = dict(self._cells)
        for cell in cells:
            merged[cell.cell_id] = cell
        return GridTree(merged.values())

    def without(self, cell_ids: Iterable[str]) -> "GridTree":
        dropped = set(cell_ids)
        return GridTree(c for c in self._cells.values() if c.cell_id not in dropped)

    @classmethod
    def from_dump(cls, grid_cells: list) -> "GridTree":
        return cls(c if isinstance(c, Cell) else Cell.model_validate(c) for c in grid_cells)


def find_cell(tree: GridTree, cell_id: str) -> Cell:
    cell = tree.get(cell_id)
    if cell is None:
        raise CellNotFound(cell_id)
    return cell


def descendants(tree: GridTree, cell_id: str) -> List[str]:
    """cell_id + tous les ids imbriqués (ensemble à supprimer avant un delete)."""
    result: List[str] = []
    seen = set()
    stack = [cell_id]
    while stack:
        current = stack.pop()
        if current in seen:
            raise InvalidTree(f"cycle via {current!r}", current)
        seen.add(current)
        cell = find_cell(tree, current)
        result.append(current)
        stack.extend(reversed(cell.children))
    return result


def default_grid() -> GridTree:
    """Canevas par défaut : une racine feuille vide."""
    return GridTree([new_cell()])


def validate(tree: GridTree) -> GridTree:
    """Vérifie l'invariant feuille-ou-binaire, les références et l'acyclicité."""
    owners: Dict[str, str] = {}
    for cell in tree:
        if is_leaf(cell):
            if cell.children:
                raise InvalidTree(f"feuille {cell.cell_id!r} avec enfants", cell.cell_id)
            continue
        if len(cell.children) != 2:
            raise InvalidTree(
                f"branche {cell.cell_id!r} avec {len(cell.children)} enfant(s)", cell.cell_id)
        if cell.blocks:
            raise InvalidTree(f"branche {cell.cell_id!r} avec des blocs", cell.cell_id)
        for child_id in cell.children:
            child = tree.get(child_id)
            if child is None:
                raise InvalidTree(f"référence pendante {child_id!r} dans {cell.cell_id!r}", child_id)
            if child_id in owners:
                raise InvalidTree(f"{child_id!r} a plusieurs parents", child_id)
            if child.parent_id != cell.cell_id:
                raise InvalidTree(
                    f"parentId de {child_id!r} = {child.parent_id!r}, attendu {cell.cell_id!r}", child_id)
            owners[child_id] = cell.cell_id

    for cell in tree:
        if cell.parent_id is not None and owners.get(cell.cell_id) != cell.parent_id:
            raise InvalidTree(
                f"{cell.cell_id!r} absent des enfants de {cell.parent_id!r}", cell.cell_id)

    # Remontée bornée : au-delà de len(tree) pas, on tourne en rond
    for cell in tree:
        current, steps = cell, 0
        while current.parent_id is not None:
            steps += 1
            if steps > len(tree):
                raise InvalidTree(f"cycle au-dessus de {cell.cell_id!r}", cell.cell_id)
            current = tree.get(current.parent_id)
    return tree
