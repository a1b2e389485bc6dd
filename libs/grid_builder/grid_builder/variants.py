"""
Sélection de variante (bloc productAttributeSelector).

Une variante correspond seulement si chaque attribut choisi est égal à sa
valeur dans attributeCombination ET si la combinaison a exactement autant
d'entrées que la sélection. Sélection partielle → None, jamais d'à-peu-près.
"""
from typing import Any, Dict, List, Mapping, Optional


def _combination(variant: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(variant.get("attributeCombination") or {})


def is_complete_selection(selected: Mapping[str, str], attribute_definitions: Optional[Mapping[str, list]]) -> bool:
    """Tous les attributs définis par le produit sont choisis."""
    return bool(selected) and len(selected) >= len(attribute_definitions or {})


def match_variant(selected: Mapping[str, str], variants: List[Mapping[str, Any]],
                  attribute_definitions: Optional[Mapping[str, list]] = None) -> Optional[Mapping[str, Any]]:
    """
    Variante correspondant exactement à la sélection, ou None.

    Si attribute_definitions est fourni, une sélection qui n'en couvre pas
    tous les attributs renvoie None sans parcourir les variantes.
    """
    if not selected:
        return None
    if attribute_definitions is not None and not is_complete_selection(selected, attribute_definitions):
        return None
    for variant in variants or []:
        combo = _combination(variant)
        if len(combo) != len(selected):
            continue
        if all(combo.get(name) == value for name, value in selected.items()):
            return variant
    return None


def is_value_available(attribute: str, value: str, selected: Mapping[str, str],
                       variants: List[Mapping[str, Any]]) -> bool:
    """
    Le bouton `attribute=value` est actif si la première variante compatible
    avec la sélection ainsi complétée est active et en stock.
    """
    probe = {**selected, attribute: value}
    for variant in variants or []:
        combo = _combination(variant)
        if all(combo.get(k) == v for k, v in probe.items()):
            return bool(variant.get("isActive")) and (variant.get("stockQuantity") or 0) > 0
    return False
