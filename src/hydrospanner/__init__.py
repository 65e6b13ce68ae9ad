"""
hydrospanner: mod profiles for Star Wars: X-Wing vs. TIE Fighter.

Overlays warehouse mod files onto a game install, merges mission list (.LST)
files instead of overwriting them, and switches between mod profiles while
keeping the pristine list files restorable.
"""

from hydrospanner.applicator import ModApplicator
from hydrospanner.backup_registry import BaseLstRegistry
from hydrospanner.lst import LstDocument, Mission, Section, merge_lst, parse_lst, render_lst
from hydrospanner.models import FileModification, ModCategory, ModPackage, ModProfile, WarehouseFile
from hydrospanner.path_resolver import resolve_case
from hydrospanner.profile_switch import ProfileOperator
from hydrospanner.profiles import ProfileError, ProfileStore
from hydrospanner.warehouse import Warehouse, WarehouseError

__version__ = "1.0.0"

__all__ = ["ModApplicator", "BaseLstRegistry", "LstDocument", "Mission", "Section",
           "merge_lst", "parse_lst", "render_lst", "FileModification", "ModCategory",
           "ModPackage", "ModProfile", "WarehouseFile", "resolve_case", "ProfileOperator",
           "ProfileError", "ProfileStore", "Warehouse", "WarehouseError"]
