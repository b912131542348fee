from . import plan, render, reconcile, validate

__all__ = ['plan', 'render', 'reconcile', 'validate']
