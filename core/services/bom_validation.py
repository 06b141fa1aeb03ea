# core/services/bom_validation.py
from __future__ import annotations

import logging
import math
import os
from decimal import Decimal
from typing import List

from core.domain.models import ValidationWarning
from core.services.bom_tree import BomTree

_LOG = logging.getLogger(__name__)
_DEBUG_DIAG = os.getenv("BOM_DEBUG_DIAGNOSTICS", "0").strip() in {"1", "true", "True"}


def _valid_quantity(q: object) -> bool:
    return isinstance(q, int) and not isinstance(q, bool) and q >= 1


def _valid_cost(c: object) -> bool:
    if isinstance(c, bool) or c is None:
        return False
    if isinstance(c, Decimal):
        return c.is_finite() and c >= 0
    if isinstance(c, (int, float)):
        return math.isfinite(c) and c >= 0
    return False


def validate_bom(tree: BomTree) -> List[ValidationWarning]:
    """
    Sweep completo (parts poi assemblies), mai bloccante.

    The tree's edit operations already coerce quantity/cost; these checks
    catch nodes whose attributes were assigned directly.
    """
    warnings: List[ValidationWarning] = []
    if tree.is_empty:
        return warnings

    for part in tree.get_all_parts():
        label = part.name or "Unnamed"
        if not (part.name or "").strip():
            warnings.append(ValidationWarning(
                code="PART_NAME_MISSING",
                message="Part missing required field: name",
                item_id=part.id,
            ))
        if not _valid_quantity(part.quantity):
            warnings.append(ValidationWarning(
                code="PART_QTY_INVALID",
                message=f'Part "{label}" has invalid quantity (must be >= 1)',
                item_id=part.id,
            ))
        if not _valid_cost(part.cost):
            warnings.append(ValidationWarning(
                code="PART_COST_INVALID",
                message=f'Part "{label}" has invalid cost (must be >= 0)',
                item_id=part.id,
            ))

    for asm in tree.get_all_assemblies():
        if not (asm.name or "").strip():
            warnings.append(ValidationWarning(
                code="ASSEMBLY_NAME_MISSING",
                message="Assembly missing required field: name",
                item_id=asm.id,
            ))

    if warnings and _DEBUG_DIAG:
        _LOG.debug("[diag] BOM validation: %s warning(s)", len(warnings))
    return warnings
