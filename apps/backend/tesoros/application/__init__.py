"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - ensure_dev_admin: aprovisionamiento del admin de desarrollo

Nota:
  - Los casos de uso del Profile Store se importan desde `usecases/`.
===============================================================================
"""

from .dev_seed_admin import ensure_dev_admin

__all__ = ["ensure_dev_admin"]
