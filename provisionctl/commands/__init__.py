from . import create

__all__ = ['create']
