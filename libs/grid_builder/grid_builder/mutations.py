"""
Moteur de mutation de l'arbre de cellules.

Toutes les opérations sont pures : (arbre, paramètres) → nouvel arbre.
L'arbre d'entrée n'est jamais modifié ; en cas d'erreur structurelle rien
n'est produit (tout ou rien). L'appelant enregistre le résultat dans
l'historique (voir session.BuilderSession).

Politique silencieuse : ratio hors [10, 90] → borné ; type de bloc inconnu →
contenu minimal. Tout le reste lève une GridError typée.
"""
import logging
from typing import Optional, Tuple

from pydantic import TypeAdapter

from .blocks import BaseBlock, BlockUnion, merged_dump, new_block
from .cells import (
    DEFAULT_RATIO,
    Cell, GridTree, SplitOrientation, clamp_ratio, descendants, find_cell, is_leaf, new_cell,
)
from .errors import BlockNotFound, GridError, InvalidTree, NotABranch, NotALeaf

log = logging.getLogger(__name__)

_BLOCK_ADAPTER = TypeAdapter(BlockUnion)

_ORIENTATIONS = ("horizontal", "vertical")
_CELL_EDITABLE = ("background_color", "padding")


def _block_index(cell: Cell, block_id: str) -> int:
    for i, block in enumerate(cell.blocks):
        if block.block_id == block_id:
            return i
    raise BlockNotFound(cell.cell_id, block_id)


def _with_blocks(cell: Cell, blocks: list) -> Cell:
    return cell.model_copy(update={"blocks": blocks})


# ── Structure ──────────────────────────────────────────────────────────────────

def add_root_cell(tree: GridTree) -> GridTree:
    """Ajoute une racine feuille vide (action « première cellule » d'un canevas vide)."""
    cell = new_cell()
    log.debug("add_root_cell %s", cell.cell_id)
    return tree.replace(cell)


def split_cell(tree: GridTree, cell_id: str, orientation: SplitOrientation) -> GridTree:
    """
    Transforme une feuille en branche à deux enfants.

    Le premier enfant reçoit les blocs, le fond et le padding du parent
    (transfert : le parent n'a plus de blocs) ; le second démarre vide.
    """
    if orientation not in _ORIENTATIONS:
        raise GridError(f"Orientation inconnue : {orientation!r}")
    cell = find_cell(tree, cell_id)
    if not is_leaf(cell):
        raise NotALeaf(cell_id)

    first = new_cell(
        parent_id=cell_id,
        blocks=list(cell.blocks),
        background_color=cell.background_color,
        padding=cell.padding,
    )
    second = new_cell(parent_id=cell_id)
    branch = cell.model_copy(update={
        "split":       orientation,
        "split_ratio": DEFAULT_RATIO,
        "children":    [first.cell_id, second.cell_id],
        "blocks":      [],
    })
    log.debug("split_cell %s (%s) → %s, %s", cell_id, orientation, first.cell_id, second.cell_id)
    return tree.replace(branch, first, second)


def delete_cell(tree: GridTree, cell_id: str) -> GridTree:
    """
    Supprime une cellule et tous ses descendants.

    Si le parent n'a plus qu'un enfant, il est fusionné avec lui : le parent
    garde son id et prend split / ratio / enfants / blocs / présentation du
    survivant, dont les enfants sont rattachés au parent.
    """
    cell = find_cell(tree, cell_id)
    remaining = tree.without(descendants(tree, cell_id))
    if cell.parent_id is None:
        log.debug("delete_cell racine %s", cell_id)
        return remaining

    parent = tree.get(cell.parent_id)
    if parent is None:
        raise InvalidTree(f"parent {cell.parent_id!r} de {cell_id!r} introuvable", cell_id)
    siblings = [c for c in parent.children if c != cell_id]

    if len(siblings) != 1:
        update = {"children": siblings}
        if not siblings:
            update.update(split=None, split_ratio=DEFAULT_RATIO)
        return remaining.replace(parent.model_copy(update=update))

    survivor = remaining.get(siblings[0])
    if survivor is None:
        raise InvalidTree(f"enfant {siblings[0]!r} de {parent.cell_id!r} introuvable", siblings[0])
    collapsed = parent.model_copy(update={
        "split":            survivor.split,
        "split_ratio":      survivor.split_ratio,
        "children":         list(survivor.children),
        "blocks":           list(survivor.blocks),
        "background_color": survivor.background_color,
        "padding":          survivor.padding,
    })
    adopted = [
        find_cell(remaining, gid).model_copy(update={"parent_id": parent.cell_id})
        for gid in survivor.children
    ]
    log.debug("delete_cell %s : fusion de %s dans %s", cell_id, survivor.cell_id, parent.cell_id)
    return remaining.without([survivor.cell_id]).replace(collapsed, *adopted)


def resize_cell(tree: GridTree, cell_id: str, ratio: float) -> GridTree:
    """Fixe le splitRatio d'une branche, borné à [10, 90]."""
    cell = find_cell(tree, cell_id)
    if is_leaf(cell):
        raise NotABranch(cell_id)
    return tree.replace(cell.model_copy(update={"split_ratio": clamp_ratio(ratio)}))


def update_cell(tree: GridTree, cell_id: str, **attrs) -> GridTree:
    """Met à jour la présentation d'une cellule (background_color, padding)."""
    unknown = set(attrs) - set(_CELL_EDITABLE)
    if unknown:
        raise GridError(f"Attributs de cellule non modifiables : {sorted(unknown)}")
    cell = find_cell(tree, cell_id)
    # Revalidé : un padding non entier ou nul est refusé, l'arbre reste inchangé
    return tree.replace(Cell.model_validate(merged_dump(cell, attrs)))


# ── Blocs ──────────────────────────────────────────────────────────────────────

def add_block(tree: GridTree, cell_id: str, block_type: str) -> GridTree:
    """Ajoute en fin de feuille un bloc au contenu par défaut de son type."""
    cell = find_cell(tree, cell_id)
    if not is_leaf(cell):
        raise NotALeaf(cell_id)
    block = new_block(block_type)
    log.debug("add_block %s → %s (%s)", block.block_id, cell_id, block_type)
    return tree.replace(_with_blocks(cell, [*cell.blocks, block]))


def update_block(tree: GridTree, cell_id: str, block_id: str, updates: dict) -> GridTree:
    """Remplace les champs d'un bloc (fusion superficielle ; blockId et type immuables)."""
    cell = find_cell(tree, cell_id)
    index = _block_index(cell, block_id)
    block: BaseBlock = cell.blocks[index]
    new_type = updates.get("type", block.type)
    if new_type != block.type:
        raise GridError(f"Type de bloc immuable ({block.type!r} → {new_type!r})")

    data = merged_dump(block, updates)
    data["blockId"] = block.block_id
    replaced = _BLOCK_ADAPTER.validate_python(data)
    blocks = list(cell.blocks)
    blocks[index] = replaced
    return tree.replace(_with_blocks(cell, blocks))


def update_block_content(tree: GridTree, cell_id: str, block_id: str, content_updates: dict) -> GridTree:
    """Fusion superficielle de mises à jour partielles dans le contenu d'un bloc."""
    cell = find_cell(tree, cell_id)
    index = _block_index(cell, block_id)
    block = cell.blocks[index]
    blocks = list(cell.blocks)
    blocks[index] = block.model_copy(update={"content": block.content.merged(content_updates)})
    return tree.replace(_with_blocks(cell, blocks))


def delete_block(tree: GridTree, cell_id: str, block_id: str) -> GridTree:
    cell = find_cell(tree, cell_id)
    index = _block_index(cell, block_id)
    blocks = list(cell.blocks)
    del blocks[index]
    return tree.replace(_with_blocks(cell, blocks))


def move_block(tree: GridTree, source_cell_id: str, block_id: str,
               target_cell_id: str, target_index: int) -> GridTree:
    """
    Retire le bloc de la source et l'insère à target_index dans la cible.

    Même cellule + même index → l'arbre d'entrée est renvoyé tel quel
    (aucun snapshot à enregistrer).
    """
    source = find_cell(tree, source_cell_id)
    index = _block_index(source, block_id)
    target = find_cell(tree, target_cell_id)
    if not is_leaf(target):
        raise NotALeaf(target_cell_id)

    if source_cell_id == target_cell_id:
        target_index = max(0, min(target_index, len(source.blocks) - 1))
        if target_index == index:
            return tree
        blocks = list(source.blocks)
        blocks.insert(target_index, blocks.pop(index))
        return tree.replace(_with_blocks(source, blocks))

    block = source.blocks[index]
    source_blocks = [b for b in source.blocks if b.block_id != block_id]
    target_blocks = list(target.blocks)
    target_blocks.insert(max(0, min(target_index, len(target_blocks))), block)
    log.debug("move_block %s : %s → %s[%d]", block_id, source_cell_id, target_cell_id, target_index)
    return tree.replace(_with_blocks(source, source_blocks), _with_blocks(target, target_blocks))


def resolve_drop_target(tree: GridTree, over_id: Optional[str],
                        over_data: Optional[dict] = None) -> Optional[Tuple[str, int]]:
    """
    Résout la cible d'un drop en (cellId, index).

    Sur un bloc (over_data porte cellId + index) → position de ce bloc ;
    sur une feuille → fin de ses blocs ; tout le reste (séparateur, branche,
    id inconnu) → None, le drop est ignoré.
    """
    if over_data and over_data.get("cellId"):
        cell = tree.get(over_data["cellId"])
        index = over_data.get("index")
        if cell is not None and is_leaf(cell) and isinstance(index, int):
            return cell.cell_id, index
        return None
    if over_id is None:
        return None
    cell = tree.get(over_id)
    if cell is None or not is_leaf(cell):
        return None
    return cell.cell_id, len(cell.blocks)
